import enum
import uuid

from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey, UniqueConstraint, Enum as SQLEnum, func
from database import Base
from models.Trip import enum_values


class BudgetCategory(enum.Enum):
    ACCOMMODATION = "accommodation"
    TRANSPORT = "transport"
    FOOD = "food"
    OTHER = "other"


class BudgetVote(Base):
    __tablename__ = "budget_votes"
    __table_args__ = (
        UniqueConstraint("trip_id", "user_id", "category", name="uq_budget_vote"),
    )

    budget_vote_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    trip_id = Column(String(36), ForeignKey("trips.trip_id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    category = Column(SQLEnum(BudgetCategory, name="budget_category", values_callable=enum_values), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
