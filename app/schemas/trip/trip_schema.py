from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import date, datetime
from app.schemas.trip.trip_member import ParticipantOut


class TripBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    start_date: date
    end_date: date
    budget: Optional[float] = Field(None, ge=0)

    @model_validator(mode="after")
    def check_date_range(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date")
        return self


class TripCreate(TripBase):
    pass


class TripUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[float] = Field(None, ge=0)


class TripJoin(BaseModel):
    trip_code: str = Field(..., min_length=1)


class TripResponse(BaseModel):
    id: int
    name: str
    start_date: date
    end_date: date
    budget: Optional[float] = None
    trip_code: str
    creator_id: int
    status: str
    created_at: Optional[datetime] = None
    participants: List[ParticipantOut] = []

    model_config = {"from_attributes": True}
