"""
Trip lifecycle: creation with invite code/link, joining, member removal,
deletion and the forward-only status transitions.
"""
import logging
import secrets
import string
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import settings
from errors import (
    ConflictError,
    InvalidInviteError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
)
from models.Trip import Trip, TripStatus
from models.TripMember import TripMember, MemberRole
from models.User import User
from services import notification_service

logger = logging.getLogger(__name__)

INVITE_CODE_ALPHABET = string.digits + string.ascii_uppercase
INVITE_CODE_LENGTH = 6
INVITE_CODE_ATTEMPTS = 5

# archived sits outside the order: reachable from anywhere, never left
STATUS_ORDER = {
    TripStatus.PLANNING: 0,
    TripStatus.VOTING: 1,
    TripStatus.CONFIRMED: 2,
    TripStatus.COMPLETED: 3,
}


def generate_invite_code() -> str:
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))


def generate_invite_link(trip_id: str) -> str:
    return f"{settings.FRONTEND_BASE_URL.rstrip('/')}/join/{trip_id}"


def _unique_invite_code(db: Session) -> str:
    for _ in range(INVITE_CODE_ATTEMPTS):
        code = generate_invite_code()
        if not db.query(Trip.trip_id).filter(Trip.invite_code == code).first():
            return code
    raise ConflictError("Could not generate a unique invite code, please try again")


# ---------- lookups & role checks ----------

def get_trip_or_404(db: Session, trip_id: str) -> Trip:
    trip = db.query(Trip).filter(Trip.trip_id == trip_id).first()
    if not trip:
        raise NotFoundError("Trip not found")
    return trip


def get_active_membership(db: Session, trip_id: str, user_id: str) -> Optional[TripMember]:
    return db.query(TripMember).filter(
        TripMember.trip_id == trip_id,
        TripMember.user_id == user_id,
        TripMember.is_active.is_(True),
    ).first()


def require_member(db: Session, trip_id: str, user_id: str) -> TripMember:
    get_trip_or_404(db, trip_id)
    membership = get_active_membership(db, trip_id, user_id)
    if not membership:
        raise PermissionDeniedError("Access denied. You are not a member of this trip.")
    return membership


def require_owner(db: Session, trip_id: str, user_id: str) -> Trip:
    trip = get_trip_or_404(db, trip_id)
    membership = get_active_membership(db, trip_id, user_id)
    if not membership or membership.role != MemberRole.OWNER or trip.owner_id != user_id:
        raise PermissionDeniedError("Access denied. Only trip owner can perform this action.")
    return trip


# ---------- create / delete ----------

def create_trip(db: Session, owner: User, trip_name: str, num_days: int,
                description: Optional[str] = None) -> Trip:
    """Insert the trip and its owner membership in one transaction."""
    trip_id = str(uuid.uuid4())
    trip = Trip(
        trip_id=trip_id,
        owner_id=owner.user_id,
        trip_name=trip_name,
        description=description,
        num_days=num_days,
        invite_code=_unique_invite_code(db),
        invite_link=generate_invite_link(trip_id),
        status=TripStatus.PLANNING,
    )
    owner_member = TripMember(
        trip_id=trip_id,
        user_id=owner.user_id,
        role=MemberRole.OWNER,
    )

    try:
        db.add(trip)
        db.flush()
        db.add(owner_member)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(trip)
    logger.info("Trip %s created by %s", trip.trip_id, owner.user_id)
    return trip


def delete_trip(db: Session, trip_id: str, user_id: str) -> None:
    trip = require_owner(db, trip_id, user_id)
    db.delete(trip)
    db.commit()
    logger.info("Trip %s deleted by %s", trip_id, user_id)


# ---------- joining ----------

def _add_member_if_not_exists(db: Session, trip: Trip, user: User) -> Tuple[TripMember, bool]:
    """Return (membership, joined) where joined is False for an existing active member."""
    existing = db.query(TripMember).filter(
        TripMember.trip_id == trip.trip_id,
        TripMember.user_id == user.user_id,
    ).first()

    if existing:
        if existing.is_active:
            return existing, False
        existing.is_active = True
        existing.joined_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(existing)
        return existing, True

    member = TripMember(trip_id=trip.trip_id, user_id=user.user_id, role=MemberRole.MEMBER)
    db.add(member)
    try:
        db.commit()
    except IntegrityError:
        # a concurrent join won the unique (trip_id, user_id) race
        db.rollback()
        existing = db.query(TripMember).filter(
            TripMember.trip_id == trip.trip_id,
            TripMember.user_id == user.user_id,
        ).one()
        return existing, False

    db.refresh(member)
    return member, True


def _join(db: Session, trip: Trip, user: User) -> Tuple[TripMember, bool]:
    if trip.status == TripStatus.ARCHIVED:
        raise InvalidStateError("This trip is archived and can no longer be joined")

    member, joined = _add_member_if_not_exists(db, trip, user)
    if joined:
        logger.info("User %s joined trip %s", user.user_id, trip.trip_id)
        notification_service.notify_member_joined(db, trip, user)
    return member, joined


def join_by_code(db: Session, invite_code: str, user: User) -> Tuple[TripMember, bool]:
    code = (invite_code or "").strip().upper()
    trip = db.query(Trip).filter(Trip.invite_code == code, Trip.is_active.is_(True)).first() if code else None
    if not trip:
        raise InvalidInviteError("Invalid invite code")
    return _join(db, trip, user)


def join_by_link(db: Session, trip_id: str, user: User) -> Tuple[TripMember, bool]:
    trip = db.query(Trip).filter(Trip.trip_id == trip_id, Trip.is_active.is_(True)).first()
    if not trip:
        raise InvalidInviteError("Invalid invite link")
    return _join(db, trip, user)


# ---------- members ----------

def remove_member(db: Session, trip_id: str, member_id: str, user_id: str) -> TripMember:
    trip = require_owner(db, trip_id, user_id)

    member = db.query(TripMember).filter(
        TripMember.trip_id == trip_id,
        TripMember.member_id == member_id,
        TripMember.is_active.is_(True),
    ).first()
    if not member:
        raise NotFoundError("Member not found in this trip")

    if member.role == MemberRole.OWNER or member.user_id == trip.owner_id:
        raise InvalidStateError("The trip owner cannot be removed")

    member.is_active = False
    db.commit()
    db.refresh(member)
    logger.info("Member %s removed from trip %s by %s", member_id, trip_id, user_id)

    notification_service.notify_member_removed(db, trip, member.user)
    return member


def list_members(db: Session, trip_id: str) -> List[dict]:
    rows = (
        db.query(TripMember, User)
        .join(User, TripMember.user_id == User.user_id)
        .filter(TripMember.trip_id == trip_id, TripMember.is_active.is_(True))
        .order_by(TripMember.joined_at)
        .all()
    )
    return [
        {
            "member_id": m.member_id,
            "trip_id": m.trip_id,
            "user_id": m.user_id,
            "role": m.role,
            "joined_at": m.joined_at,
            "full_name": u.full_name,
            "email": u.email,
            "avatar_url": u.avatar_url,
        }
        for m, u in rows
    ]


def count_active_members(db: Session, trip_id: str) -> int:
    return db.query(TripMember).filter(
        TripMember.trip_id == trip_id,
        TripMember.is_active.is_(True),
    ).count()


# ---------- queries ----------

def list_my_trips(db: Session, user_id: str) -> List[dict]:
    member_counts = (
        db.query(TripMember.trip_id, func.count(TripMember.member_id).label("num_members"))
        .filter(TripMember.is_active.is_(True))
        .group_by(TripMember.trip_id)
        .subquery()
    )
    rows = (
        db.query(Trip, TripMember.role, member_counts.c.num_members)
        .join(TripMember, TripMember.trip_id == Trip.trip_id)
        .join(member_counts, member_counts.c.trip_id == Trip.trip_id)
        .filter(
            TripMember.user_id == user_id,
            TripMember.is_active.is_(True),
            Trip.is_active.is_(True),
        )
        .order_by(Trip.created_at.desc())
        .all()
    )
    return [
        {
            "trip_id": trip.trip_id,
            "trip_name": trip.trip_name,
            "owner_id": trip.owner_id,
            "status": trip.status,
            "role": role,
            "num_members": num_members,
            "created_at": trip.created_at,
        }
        for trip, role, num_members in rows
    ]


def get_trip_detail(db: Session, trip_id: str, user_id: str) -> dict:
    require_member(db, trip_id, user_id)
    trip = get_trip_or_404(db, trip_id)
    return {
        "trip_id": trip.trip_id,
        "owner_id": trip.owner_id,
        "trip_name": trip.trip_name,
        "description": trip.description,
        "num_days": trip.num_days,
        "invite_code": trip.invite_code,
        "invite_link": trip.invite_link,
        "status": trip.status,
        "is_active": trip.is_active,
        "created_at": trip.created_at,
        "confirmed_at": trip.confirmed_at,
        "member_count": count_active_members(db, trip_id),
    }


# ---------- status transitions ----------

def _transition(db: Session, trip: Trip, target: TripStatus) -> bool:
    """Move the trip to `target`. Returns False when it already was there."""
    current = trip.status
    if current == target:
        return False
    if current == TripStatus.ARCHIVED:
        raise InvalidStateError("Archived trips cannot change status")
    if target != TripStatus.ARCHIVED and STATUS_ORDER[target] < STATUS_ORDER[current]:
        raise InvalidStateError(f"Cannot move trip from {current.value} back to {target.value}")

    trip.status = target
    if target == TripStatus.CONFIRMED:
        trip.confirmed_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(trip)
    logger.info("Trip %s moved from %s to %s", trip.trip_id, current.value, target.value)
    return True


def confirm_trip(db: Session, trip_id: str, user_id: str) -> Trip:
    trip = require_owner(db, trip_id, user_id)
    if _transition(db, trip, TripStatus.CONFIRMED):
        notification_service.notify_trip_confirmed(db, trip)
    return trip


def complete_trip(db: Session, trip_id: str, user_id: str) -> Trip:
    trip = require_owner(db, trip_id, user_id)
    if _transition(db, trip, TripStatus.COMPLETED):
        notification_service.notify_trip_completed(db, trip)
    return trip


def archive_trip(db: Session, trip_id: str, user_id: str) -> Trip:
    trip = require_owner(db, trip_id, user_id)
    if _transition(db, trip, TripStatus.ARCHIVED):
        notification_service.notify_trip_archived(db, trip)
    return trip
