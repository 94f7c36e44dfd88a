# schemas.py (Pydantic v2)
from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Dict
from datetime import date, datetime

from models.Trip import TripStatus
from models.TripMember import MemberRole
from models.DateVotingSession import VotingStatus
from models.BudgetVote import BudgetCategory
from models.Notification import NotificationType


# ---------- Auth / Users ----------
class GoogleLoginRequest(BaseModel):
    access_token: str = Field(..., min_length=1)

class UserRead(BaseModel):
    user_id: str
    email: EmailStr
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True

class TokenUser(BaseModel):
    id: str
    email: EmailStr
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None

class TokenResponse(BaseModel):
    token: str
    user: TokenUser


# ---------- Trips ----------
class TripWrite(BaseModel):
    trip_name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    num_days: int = Field(..., ge=1)

class TripRead(BaseModel):
    trip_id: str
    owner_id: str
    trip_name: str
    description: Optional[str] = None
    num_days: int
    invite_code: str
    invite_link: str
    status: TripStatus
    is_active: bool
    created_at: datetime
    confirmed_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class TripSummaryRead(BaseModel):
    """Row of the "my trips" dashboard"""
    trip_id: str
    trip_name: str
    owner_id: str
    status: TripStatus
    role: MemberRole
    num_members: int
    created_at: datetime

class TripDetailRead(TripRead):
    member_count: int

class TripIdRequest(BaseModel):
    trip_id: str = Field(..., min_length=1)

class JoinByCodeRequest(BaseModel):
    invite_code: str = Field(..., min_length=1)

class JoinResult(BaseModel):
    trip_id: str
    member_id: str
    joined: bool  # False when the user was already an active member


# ---------- Trip Members ----------
class TripMemberRead(BaseModel):
    member_id: str
    trip_id: str
    user_id: str
    role: MemberRole
    joined_at: datetime
    full_name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None


# ---------- Availability ----------
class DateRange(BaseModel):
    start_date: date
    end_date: date

class AvailabilityWrite(BaseModel):
    trip_id: str = Field(..., min_length=1)
    ranges: List[DateRange]

class DateRankingRead(BaseModel):
    rank: int
    date: date
    num_available: int
    total_members: int
    matching_score: float


# ---------- Voting sessions ----------
class VotingSessionRead(BaseModel):
    voting_id: str
    trip_id: str
    status: VotingStatus
    created_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None


# ---------- Budget ----------
class BudgetWrite(BaseModel):
    category: BudgetCategory
    amount: float = Field(..., ge=0, lt=10**10)

class BudgetUpdateResult(BaseModel):
    old_amount: float
    new_amount: float

class BudgetEntryRead(BaseModel):
    user_id: str
    amount: float
    updated_at: Optional[datetime] = None

class BudgetCategoryStats(BaseModel):
    votes: List[BudgetEntryRead] = []
    count: int = 0
    min: Optional[float] = None
    max: Optional[float] = None
    average: Optional[float] = None


# ---------- Location voting ----------
class LocationVoteWrite(BaseModel):
    votes: List[str]  # provinces in preference order, first choice first

class RankDistribution(BaseModel):
    rank_1: int = 0
    rank_2: int = 0
    rank_3: int = 0

class LocationScoreRead(BaseModel):
    place: str
    total_score: int
    vote_count: int
    rank_distribution: RankDistribution


# ---------- Notifications ----------
class NotificationRead(BaseModel):
    notification_id: str
    user_id: str
    trip_id: Optional[str] = None
    notification_type: NotificationType
    title: str
    message: Optional[str] = None
    is_read: bool
    created_at: datetime
    read_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---------- Envelopes ----------
class MessageResponse(BaseModel):
    success: bool = True
    message: str

class HeatmapResponse(BaseModel):
    success: bool = True
    data: Dict[str, List[str]]
