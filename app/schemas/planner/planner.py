from pydantic import BaseModel, Field
from typing import Any, Dict, Optional


class PlannerChatRequest(BaseModel):
    prompt: str = Field(..., min_length=1, max_length=4000)


class PlannerChatResponse(BaseModel):
    reply: str


class TripDraftRequest(BaseModel):
    conversation: str = Field(..., min_length=1, max_length=20000)


class TripDraftResponse(BaseModel):
    trip: Optional[Dict[str, Any]] = None
    raw: Optional[str] = None
