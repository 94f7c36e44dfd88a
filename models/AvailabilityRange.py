import uuid

from sqlalchemy import Column, String, Date, DateTime, ForeignKey, Index, func
from database import Base


class AvailabilityRange(Base):
    __tablename__ = "availability_ranges"
    __table_args__ = (
        Index("ix_availability_trip_user", "trip_id", "user_id"),
    )

    range_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    trip_id = Column(String(36), ForeignKey("trips.trip_id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
