from pydantic import BaseModel
from typing import List, Optional
import datetime as dt


class DashboardStats(BaseModel):
    total_trips: int
    upcoming_trips: int
    ongoing_trips: int
    past_trips: int
    total_activities: int
    pending_invitations: int


class DashboardTrip(BaseModel):
    id: int
    name: str
    start_date: dt.date
    end_date: dt.date
    status: str
    participant_count: int


class DashboardActivity(BaseModel):
    id: int
    trip_id: int
    trip_name: str
    title: str
    date: dt.date
    time: Optional[str] = None
    category: str
    upvotes: int
    downvotes: int


class DashboardResponse(BaseModel):
    stats: DashboardStats
    recent_trips: List[DashboardTrip]
    upcoming_activities: List[DashboardActivity]
