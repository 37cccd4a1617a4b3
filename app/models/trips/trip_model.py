from sqlalchemy import Column, Integer, String, Date, Float, ForeignKey, DateTime, func
from app.core.database import Base
from sqlalchemy.orm import relationship
from app.utils.dates import trip_status


class Trip(Base):
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    budget = Column(Float, nullable=True)

    creator_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    creator = relationship("User", back_populates="created_trips")

    trip_code = Column(String, unique=True, index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    members = relationship("TripMember", back_populates="trip", cascade="all, delete-orphan")
    # Membership is written through TripMember only
    participants = relationship("User", secondary="trip_members", viewonly=True, order_by="User.id")
    invitations = relationship("Invitation", back_populates="trip", cascade="all, delete-orphan")
    activities = relationship("Activity", back_populates="trip", cascade="all, delete-orphan")

    def participant_ids(self) -> set:
        return {user.id for user in self.participants}

    @property
    def status(self) -> str:
        return trip_status(self.start_date, self.end_date)
