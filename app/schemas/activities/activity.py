from pydantic import BaseModel, Field
from typing import Optional, List
import datetime as dt
from app.models.activities.activity import ActivityCategory


class ActivityBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    date: dt.date
    time: Optional[str] = Field(None, pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    category: ActivityCategory = ActivityCategory.other
    estimated_cost: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class ActivityCreate(ActivityBase):
    pass


class ActivityUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    date: Optional[dt.date] = None
    time: Optional[str] = Field(None, pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    category: Optional[ActivityCategory] = None
    estimated_cost: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class VoteCreate(BaseModel):
    is_upvote: bool


class VoteOut(BaseModel):
    user_id: int
    is_upvote: bool

    model_config = {"from_attributes": True}


class ActivityResponse(BaseModel):
    id: int
    trip_id: int
    creator_id: int
    creator_name: Optional[str] = None
    title: str
    date: dt.date
    time: Optional[str] = None
    category: str
    estimated_cost: Optional[float] = None
    notes: Optional[str] = None
    upvotes: int = 0
    downvotes: int = 0
    votes: List[VoteOut] = []
    created_at: Optional[dt.datetime] = None

    model_config = {"from_attributes": True}
