from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional


class ParticipantOut(BaseModel):
    id: int
    username: str
    name: Optional[str] = None
    email: str

    model_config = {"from_attributes": True}


class TripMemberOut(BaseModel):
    user_id: int
    username: str
    name: Optional[str] = None
    email: str
    role: str
    joined_at: Optional[datetime] = None


class TripMemberResponse(BaseModel):
    trip_id: int
    members: List[TripMemberOut]
