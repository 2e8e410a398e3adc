"""
API Layer - Request/Response Schemas

Pydantic models for API request and response validation. Incoming requests
are plain Activities (see domain.models).
"""

from typing import List

from pydantic import BaseModel

from ..domain.models import Activity


class TurnResponse(BaseModel):
    """The activities the bot sent while handling one incoming activity."""
    activities: List[Activity]


class HealthResponse(BaseModel):
    status: str
    storage: str
