from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # State Storage
    # "memory" loses every conversation on restart; use "sql" for anything real
    STORAGE_BACKEND: Literal["memory", "sql"] = "memory"
    DATABASE_URL: str = "sqlite:///./dialog_state.db"
    DATABASE_ECHO: bool = False

    # Turn Processing
    # Serialize turns of the same conversation (per process)
    SERIALIZE_TURNS: bool = True

    # Bot Identity & Copy
    BOT_ID: str = "dialog-engine-bot"
    WELCOME_MESSAGE: str = (
        "Welcome to the Demo bot. This bot will introduce you to several "
        "concepts and features of multi-turn dialogs."
    )
    ERROR_MESSAGE: str = "Sorry, it looks like something went wrong."

    LOG_LEVEL: str = "INFO"

    # Loads from a .env file in the root directory
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

# Singleton instance
settings = Settings()
