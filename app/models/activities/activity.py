from sqlalchemy import Column, Integer, String, ForeignKey, Date, DateTime, Float, Text
from sqlalchemy.orm import relationship
from datetime import datetime
from app.core.database import Base
import enum


class ActivityCategory(str, enum.Enum):
    adventure = "Adventure"
    food = "Food"
    sightseeing = "Sightseeing"
    other = "Other"


class Activity(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    creator_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    time = Column(String, nullable=True)
    category = Column(String, nullable=False, default=ActivityCategory.other.value)
    estimated_cost = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    trip = relationship("Trip", back_populates="activities")
    creator = relationship("User")
    votes = relationship("Vote", back_populates="activity", cascade="all, delete-orphan")

    @property
    def upvotes(self) -> int:
        return sum(1 for vote in self.votes if vote.is_upvote)

    @property
    def downvotes(self) -> int:
        return sum(1 for vote in self.votes if not vote.is_upvote)

    @property
    def creator_name(self):
        return self.creator.display_name if self.creator else None
