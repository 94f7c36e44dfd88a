"""
Voting for a trip: date availability and its heatmap, the date voting
session, budgets per category and ranked destination voting.
"""
import logging
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import settings
from errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from models.AvailabilityRange import AvailabilityRange
from models.BudgetVote import BudgetVote, BudgetCategory
from models.DateVotingSession import DateVotingSession, VotingStatus
from models.LocationVote import LocationVote
from models.Trip import Trip, TripStatus
from models.TripMember import TripMember
from services import notification_service
from services.trip_service import count_active_members, require_member, require_owner

logger = logging.getLogger(__name__)

# Borda points by rank position: first choice 3, second 2, third 1
BORDA_POINTS = (3, 2, 1)

# NUMERIC(12, 2) holds at most ten integer digits
MAX_BUDGET_AMOUNT = Decimal(10) ** 10
CENT = Decimal("0.01")


def _active_member_of(vote_model):
    # rows of removed members stay stored but drop out of every aggregate
    return and_(
        TripMember.trip_id == vote_model.trip_id,
        TripMember.user_id == vote_model.user_id,
        TripMember.is_active.is_(True),
    )


# ---------- availability ----------

def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r}")


def _normalize_ranges(ranges: Iterable) -> List[Tuple[date, date]]:
    normalized = []
    for r in ranges:
        if isinstance(r, dict):
            start, end = r.get("start_date"), r.get("end_date")
        else:
            start, end = getattr(r, "start_date", None), getattr(r, "end_date", None)
        if start is None or end is None:
            raise ValidationError("Each range must have start_date and end_date")

        start, end = _as_date(start), _as_date(end)
        if start > end:
            raise ValidationError(f"start_date {start.isoformat()} is after end_date {end.isoformat()}")
        if (end - start).days + 1 > settings.MAX_AVAILABILITY_DAYS:
            raise ValidationError(f"A range may not span more than {settings.MAX_AVAILABILITY_DAYS} days")
        normalized.append((start, end))

    if not normalized:
        raise ValidationError("ranges must be a non-empty array")
    return normalized


def submit_availability(db: Session, trip_id: str, user_id: str, ranges: Iterable) -> int:
    """Replace every range the user submitted for the trip.

    All ranges are validated before anything is written; the delete and the
    inserts commit together. Returns the number of ranges stored.
    """
    require_member(db, trip_id, user_id)
    normalized = _normalize_ranges(ranges)

    try:
        db.query(AvailabilityRange).filter(
            AvailabilityRange.trip_id == trip_id,
            AvailabilityRange.user_id == user_id,
        ).delete(synchronize_session=False)
        db.add_all(
            AvailabilityRange(trip_id=trip_id, user_id=user_id, start_date=start, end_date=end)
            for start, end in normalized
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("User %s submitted %d availability ranges for trip %s", user_id, len(normalized), trip_id)
    return len(normalized)


def get_trip_heatmap(db: Session, trip_id: str) -> Dict[str, List[str]]:
    """Map each ISO date to the sorted ids of users available that day."""
    rows = (
        db.query(AvailabilityRange.user_id, AvailabilityRange.start_date, AvailabilityRange.end_date)
        .join(TripMember, _active_member_of(AvailabilityRange))
        .filter(AvailabilityRange.trip_id == trip_id)
        .all()
    )

    days: Dict[date, set] = defaultdict(set)
    for user_id, start, end in rows:
        day = start
        while day <= end:
            days[day].add(user_id)
            day += timedelta(days=1)

    return {day.isoformat(): sorted(users) for day, users in sorted(days.items())}


def rank_trip_dates(db: Session, trip_id: str) -> List[dict]:
    heatmap = get_trip_heatmap(db, trip_id)
    total_members = count_active_members(db, trip_id)

    ordered = sorted(heatmap.items(), key=lambda item: (-len(item[1]), item[0]))
    ranking = []
    for position, (day, users) in enumerate(ordered, start=1):
        ranking.append({
            "rank": position,
            "date": day,
            "num_available": len(users),
            "total_members": total_members,
            "matching_score": round(len(users) / total_members, 4) if total_members else 0.0,
        })
    return ranking


# ---------- voting session ----------

def _active_session(db: Session, trip_id: str) -> Optional[DateVotingSession]:
    return db.query(DateVotingSession).filter(
        DateVotingSession.trip_id == trip_id,
        DateVotingSession.status == VotingStatus.ACTIVE,
    ).first()


def start_voting_session(db: Session, trip_id: str, user_id: str) -> DateVotingSession:
    """Open the trip's date voting session and move the trip to `voting`.

    The trip row is locked for the duration of the check and insert; the
    partial unique index on active sessions catches anything that slips past.
    """
    # owner is eager-joined; lock only the trips row
    trip = db.query(Trip).filter(Trip.trip_id == trip_id).with_for_update(of=Trip).first()
    if not trip:
        db.rollback()
        raise NotFoundError("Trip not found")

    try:
        require_owner(db, trip_id, user_id)

        if _active_session(db, trip_id):
            raise ConflictError("A voting session is already active for this trip")

        if trip.status not in (TripStatus.PLANNING, TripStatus.VOTING):
            raise InvalidStateError(f"Cannot start voting on a {trip.status.value} trip")

        voting = DateVotingSession(trip_id=trip_id, started_by=user_id, status=VotingStatus.ACTIVE)
        db.add(voting)
        trip.status = TripStatus.VOTING
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("A voting session is already active for this trip")
    except Exception:
        db.rollback()
        raise

    db.refresh(voting)
    logger.info("Voting session %s started on trip %s", voting.date_voting_id, trip_id)
    notification_service.notify_voting_started(db, trip, user_id)
    return voting


def close_voting_session(db: Session, trip_id: str, user_id: str) -> DateVotingSession:
    trip = require_owner(db, trip_id, user_id)

    voting = _active_session(db, trip_id)
    if not voting:
        raise NotFoundError("No active voting session for this trip")

    voting.status = VotingStatus.CLOSED
    voting.closed_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(voting)
    logger.info("Voting session %s closed on trip %s", voting.date_voting_id, trip_id)

    notification_service.notify_voting_closed(db, trip, user_id)
    return voting


def get_voting_session(db: Session, trip_id: str) -> Optional[DateVotingSession]:
    """The active session, else the most recent one."""
    voting = _active_session(db, trip_id)
    if voting:
        return voting
    return (
        db.query(DateVotingSession)
        .filter(DateVotingSession.trip_id == trip_id)
        .order_by(DateVotingSession.created_at.desc())
        .first()
    )


# ---------- budget ----------

def _as_category(category) -> BudgetCategory:
    if isinstance(category, BudgetCategory):
        return category
    try:
        return BudgetCategory(str(category).strip().lower())
    except ValueError:
        allowed = ", ".join(c.value for c in BudgetCategory)
        raise ValidationError(f"category must be one of: {allowed}")


def update_budget(db: Session, trip_id: str, user_id: str, category, amount) -> Tuple[float, float]:
    """Set the user's amount for a category. Returns (old_amount, new_amount)."""
    require_member(db, trip_id, user_id)
    category = _as_category(category)
    try:
        new_amount = Decimal(str(amount))
    except ArithmeticError:
        raise ValidationError("amount must be a number")
    if not new_amount.is_finite():
        raise ValidationError("amount must be a number")
    if new_amount < 0:
        raise ValidationError("amount must not be negative")
    # quantize only once the value is known to fit the decimal context
    if new_amount >= MAX_BUDGET_AMOUNT or new_amount.quantize(CENT) >= MAX_BUDGET_AMOUNT:
        raise ValidationError(f"amount must be less than {MAX_BUDGET_AMOUNT:,.0f}")
    new_amount = new_amount.quantize(CENT)

    def _existing():
        return db.query(BudgetVote).filter(
            BudgetVote.trip_id == trip_id,
            BudgetVote.user_id == user_id,
            BudgetVote.category == category,
        ).first()

    vote = _existing()
    old_amount = float(vote.amount) if vote else 0.0
    if vote:
        vote.amount = new_amount
    else:
        db.add(BudgetVote(trip_id=trip_id, user_id=user_id, category=category, amount=new_amount))

    try:
        db.commit()
    except IntegrityError:
        # concurrent first write for the same category
        db.rollback()
        vote = _existing()
        old_amount = float(vote.amount)
        vote.amount = new_amount
        db.commit()

    return old_amount, float(new_amount)


def get_budget_summary(db: Session, trip_id: str) -> Dict[str, dict]:
    votes = (
        db.query(BudgetVote)
        .join(TripMember, _active_member_of(BudgetVote))
        .filter(BudgetVote.trip_id == trip_id)
        .all()
    )

    summary = {}
    for category in BudgetCategory:
        entries = [v for v in votes if v.category == category]
        positive = [float(v.amount) for v in entries if v.amount > 0]
        summary[category.value] = {
            "votes": [
                {"user_id": v.user_id, "amount": float(v.amount), "updated_at": v.updated_at}
                for v in entries
            ],
            "count": len(positive),
            "min": min(positive) if positive else None,
            "max": max(positive) if positive else None,
            "average": round(sum(positive) / len(positive), 2) if positive else None,
        }
    return summary


# ---------- destination (ranked) voting ----------

def _normalize_provinces(provinces) -> List[str]:
    if not isinstance(provinces, (list, tuple)) or len(provinces) != len(BORDA_POINTS):
        raise ValidationError(f"votes must be an array of {len(BORDA_POINTS)} provinces")

    cleaned = [str(p).strip() if p is not None else "" for p in provinces]
    if any(not p for p in cleaned):
        raise ValidationError("Every ranked province must be non-empty")
    if len({p.casefold() for p in cleaned}) != len(cleaned):
        raise ValidationError("Ranked provinces must all be different")
    return cleaned


def vote_location(db: Session, trip_id: str, user_id: str, provinces) -> List[dict]:
    """Replace the user's ranking and return the updated scores."""
    require_member(db, trip_id, user_id)
    ranked = _normalize_provinces(provinces)

    try:
        db.query(LocationVote).filter(
            LocationVote.trip_id == trip_id,
            LocationVote.user_id == user_id,
        ).delete(synchronize_session=False)
        for position, (province, points) in enumerate(zip(ranked, BORDA_POINTS), start=1):
            db.add(LocationVote(
                trip_id=trip_id,
                user_id=user_id,
                province_name=province,
                rank=position,
                score=points,
            ))
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("User %s ranked %s for trip %s", user_id, ranked, trip_id)
    return get_location_scores(db, trip_id)


def get_location_scores(db: Session, trip_id: str) -> List[dict]:
    votes = (
        db.query(LocationVote)
        .join(TripMember, _active_member_of(LocationVote))
        .filter(LocationVote.trip_id == trip_id)
        .all()
    )

    places: Dict[str, dict] = {}
    for vote in votes:
        entry = places.setdefault(vote.province_name, {
            "place": vote.province_name,
            "total_score": 0,
            "vote_count": 0,
            "rank_distribution": {"rank_1": 0, "rank_2": 0, "rank_3": 0},
        })
        entry["total_score"] += vote.score
        entry["vote_count"] += 1
        entry["rank_distribution"][f"rank_{vote.rank}"] += 1

    return sorted(
        places.values(),
        key=lambda e: (-e["total_score"], -e["rank_distribution"]["rank_1"], e["place"]),
    )
