import uuid

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, func
from database import Base


class LocationVote(Base):
    __tablename__ = "location_votes"
    __table_args__ = (
        UniqueConstraint("trip_id", "user_id", "rank", name="uq_location_vote_rank"),
    )

    location_vote_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    trip_id = Column(String(36), ForeignKey("trips.trip_id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    province_name = Column(String(100), nullable=False)
    rank = Column(Integer, nullable=False)  # 1 = first choice
    score = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
