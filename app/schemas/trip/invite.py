from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime


# When a participant invites someone
class InvitationCreate(BaseModel):
    email: EmailStr


class InvitationDecline(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


# What we return to the invitee or the trip creator
class InvitationResponse(BaseModel):
    id: int
    trip_id: int
    email: str
    status: str
    sender_id: Optional[int] = None
    decline_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    trip_name: Optional[str] = None
    sender_name: Optional[str] = None
