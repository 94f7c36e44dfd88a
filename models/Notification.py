import enum
import uuid

from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Enum as SQLEnum, func
from database import Base
from models.Trip import enum_values


class NotificationType(enum.Enum):
    TRIP_INVITATION = "trip_invitation"
    NEW_VOTING_SESSION = "new_voting_session"
    VOTING_CLOSED = "voting_closed"
    TRIP_CONFIRMED = "trip_confirmed"
    TRIP_COMPLETED = "trip_completed"
    TRIP_ARCHIVED = "trip_archived"
    MEMBER_JOINED = "member_joined"
    MEMBER_REMOVED = "member_removed"


class Notification(Base):
    __tablename__ = "notifications"

    notification_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    trip_id = Column(String(36), ForeignKey("trips.trip_id", ondelete="CASCADE"), nullable=True, index=True)
    notification_type = Column(
        SQLEnum(NotificationType, name="notification_type", values_callable=enum_values),
        nullable=False,
    )
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=True)
    is_read = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    read_at = Column(DateTime(timezone=True), nullable=True)
