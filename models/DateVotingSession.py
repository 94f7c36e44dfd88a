import enum
import uuid

from sqlalchemy import Column, String, DateTime, ForeignKey, Index, Enum as SQLEnum, func, text
from database import Base
from models.Trip import enum_values


class VotingStatus(enum.Enum):
    ACTIVE = "active"
    CLOSED = "closed"


class DateVotingSession(Base):
    __tablename__ = "date_voting_sessions"
    __table_args__ = (
        # at most one active session per trip
        Index(
            "uq_active_date_voting",
            "trip_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    date_voting_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    trip_id = Column(String(36), ForeignKey("trips.trip_id", ondelete="CASCADE"), nullable=False, index=True)
    started_by = Column(String(36), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    status = Column(
        SQLEnum(VotingStatus, name="voting_status", values_callable=enum_values),
        default=VotingStatus.ACTIVE,
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    closed_at = Column(DateTime(timezone=True), nullable=True)
