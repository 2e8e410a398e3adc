import logging

from fastapi import Depends, FastAPI

from ..config import settings
from ..domain.models import Activity
from ..services.bot import DemoBot
from .dependencies import get_bot
from .schemas import HealthResponse, TurnResponse

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = FastAPI(title="Dialog Engine Demo Bot")

# --- Endpoints ---

@app.post("/api/messages", response_model=TurnResponse, response_model_exclude_none=True)
async def post_activity(
    activity: Activity,
    bot: DemoBot = Depends(get_bot),
):
    """
    Runs one turn for the incoming activity. The bot's replies are returned
    in the response body instead of being pushed to a channel.
    """
    activities = await bot.handle_turn(activity)
    return TurnResponse(activities=activities)


@app.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok", storage=settings.STORAGE_BACKEND)
