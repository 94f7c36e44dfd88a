import enum
import uuid

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum as SQLEnum, func
from sqlalchemy.orm import relationship
from database import Base


class TripStatus(enum.Enum):
    PLANNING = "planning"
    VOTING = "voting"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    ARCHIVED = "archived"


def enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Trip(Base):
    __tablename__ = "trips"

    trip_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    trip_name = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    num_days = Column(Integer, nullable=False)
    invite_code = Column(String(6), unique=True, index=True, nullable=False)
    invite_link = Column(String(500), nullable=False)
    status = Column(
        SQLEnum(TripStatus, name="trip_status", values_callable=enum_values),
        default=TripStatus.PLANNING,
        nullable=False,
    )
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)

    owner = relationship("User", lazy="joined")
    members = relationship("TripMember", back_populates="trip", cascade="all, delete-orphan", passive_deletes=True)
    availability_ranges = relationship("AvailabilityRange", cascade="all, delete-orphan", passive_deletes=True)
    voting_sessions = relationship("DateVotingSession", cascade="all, delete-orphan", passive_deletes=True)
    budget_votes = relationship("BudgetVote", cascade="all, delete-orphan", passive_deletes=True)
    location_votes = relationship("LocationVote", cascade="all, delete-orphan", passive_deletes=True)
    notifications = relationship("Notification", cascade="all, delete-orphan", passive_deletes=True)
