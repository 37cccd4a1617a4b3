from sqlalchemy import Integer, Column, String, ForeignKey, Enum, DateTime, Text, Index, text
from sqlalchemy.orm import relationship
from app.core.database import Base
from datetime import datetime
import enum


class InviteStatus(str, enum.Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"


class Invitation(Base):
    __tablename__ = "invitations"

    id = Column(Integer, primary_key=True, index=True)
    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False)
    email = Column(String, index=True, nullable=False)
    status = Column(Enum(InviteStatus, name="invitestatus"), nullable=False, default=InviteStatus.pending)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    decline_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    trip = relationship("Trip", back_populates="invitations")
    sender = relationship("User", back_populates="sent_invitations")

    # At most one pending invitation per (trip, email)
    __table_args__ = (
        Index(
            "uq_invitation_trip_email_pending",
            "trip_id",
            "email",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )
