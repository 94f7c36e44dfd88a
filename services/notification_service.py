"""
Notification fan-out for trip lifecycle events, plus the user-side inbox
operations (list, unread count, mark read, delete).

Fan-out policy is log-and-continue: every recipient is written and committed
on its own, a failed write is logged and recorded in the DispatchReport, and
the loop carries on with the next member. Dispatch never raises into the
lifecycle operation that triggered it.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from errors import NotFoundError
from models.Notification import Notification, NotificationType
from models.Trip import Trip
from models.TripMember import TripMember
from models.User import User
from services import email_service

logger = logging.getLogger(__name__)


@dataclass
class DispatchReport:
    created: int = 0
    emailed: int = 0
    failed: List[str] = field(default_factory=list)
    error: Optional[str] = None  # message of the first failed write

    @property
    def success(self) -> bool:
        return not self.failed and self.error is None


def _write_notification(db: Session, user_id: str, trip_id: Optional[str],
                        notification_type: NotificationType, title: str, message: str) -> Notification:
    notification = Notification(
        user_id=user_id,
        trip_id=trip_id,
        notification_type=notification_type,
        title=title,
        message=message,
    )
    db.add(notification)
    db.commit()
    return notification


def active_member_users(db: Session, trip_id: str) -> List[User]:
    return (
        db.query(User)
        .join(TripMember, TripMember.user_id == User.user_id)
        .filter(TripMember.trip_id == trip_id, TripMember.is_active.is_(True))
        .all()
    )


def dispatch(
    db: Session,
    trip_id: str,
    notification_type: NotificationType,
    title: str,
    message: str,
    recipients: Optional[Iterable[User]] = None,
    exclude_user_id: Optional[str] = None,
    email_subject: Optional[str] = None,
    trip_name: Optional[str] = None,
) -> DispatchReport:
    """Write one notification per recipient and optionally email them.

    `recipients` defaults to the active members of the trip. When
    `email_subject` is given, recipients with an email address also get a
    templated email once their row is stored.
    """
    report = DispatchReport()

    try:
        users = list(recipients) if recipients is not None else active_member_users(db, trip_id)
        # plain values so a rollback further down can't expire what we iterate
        targets = [(u.user_id, u.email, u.full_name) for u in users if u.user_id != exclude_user_id]
    except SQLAlchemyError as exc:
        logger.error("Could not load recipients for %s on trip %s: %s", notification_type.value, trip_id, exc)
        db.rollback()
        report.error = str(exc)
        return report

    for user_id, email, full_name in targets:
        try:
            _write_notification(db, user_id, trip_id, notification_type, title, message)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning("Notification %s for user %s on trip %s failed: %s",
                           notification_type.value, user_id, trip_id, exc)
            report.failed.append(user_id)
            if report.error is None:
                report.error = str(exc)
            continue

        report.created += 1

        if email_subject and email:
            html_content = email_service.trip_event_template(full_name, title, message, trip_name)
            if email_service.send_email(email, email_subject, html_content):
                report.emailed += 1

    logger.info("Dispatched %s on trip %s: created=%d emailed=%d failed=%d",
                notification_type.value, trip_id, report.created, report.emailed, len(report.failed))
    return report


# ---------- lifecycle events ----------

def notify_member_joined(db: Session, trip: Trip, joined_user: User) -> DispatchReport:
    who = joined_user.full_name or joined_user.email
    return dispatch(
        db,
        trip.trip_id,
        NotificationType.MEMBER_JOINED,
        "A new member has joined your trip",
        f"{who} joined {trip.trip_name}",
        exclude_user_id=joined_user.user_id,
    )


def notify_member_removed(db: Session, trip: Trip, removed_user: User) -> DispatchReport:
    return dispatch(
        db,
        trip.trip_id,
        NotificationType.MEMBER_REMOVED,
        "You were removed from a trip",
        f"The trip owner removed you from {trip.trip_name}",
        recipients=[removed_user],
    )


def notify_voting_started(db: Session, trip: Trip, started_by: str) -> DispatchReport:
    return dispatch(
        db,
        trip.trip_id,
        NotificationType.NEW_VOTING_SESSION,
        "Voting is open",
        f"Voting has started for {trip.trip_name}. Submit your available dates.",
        exclude_user_id=started_by,
    )


def notify_voting_closed(db: Session, trip: Trip, closed_by: str) -> DispatchReport:
    return dispatch(
        db,
        trip.trip_id,
        NotificationType.VOTING_CLOSED,
        "Voting closed",
        f"Voting for {trip.trip_name} has been closed by the trip owner.",
        exclude_user_id=closed_by,
    )


def notify_trip_confirmed(db: Session, trip: Trip) -> DispatchReport:
    return dispatch(
        db,
        trip.trip_id,
        NotificationType.TRIP_CONFIRMED,
        "Trip confirmed",
        "The trip owner has confirmed your trip successfully.",
        email_subject="TripMate: your trip is confirmed",
        trip_name=trip.trip_name,
    )


def notify_trip_completed(db: Session, trip: Trip) -> DispatchReport:
    return dispatch(
        db,
        trip.trip_id,
        NotificationType.TRIP_COMPLETED,
        "Trip completed",
        "All members have voted. The trip is now completed.",
        email_subject="TripMate: your trip is completed",
        trip_name=trip.trip_name,
    )


def notify_trip_archived(db: Session, trip: Trip) -> DispatchReport:
    return dispatch(
        db,
        trip.trip_id,
        NotificationType.TRIP_ARCHIVED,
        "Trip archived",
        "This trip has been archived by the trip owner.",
        email_subject="TripMate: trip archived",
        trip_name=trip.trip_name,
    )


# ---------- inbox ----------

def get_user_notifications(db: Session, user_id: str) -> List[Notification]:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc())
        .all()
    )


def get_unread_count(db: Session, user_id: str) -> int:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .count()
    )


def mark_notification_as_read(db: Session, notification_id: str, user_id: str) -> Notification:
    notification = db.query(Notification).filter(
        Notification.notification_id == notification_id,
        Notification.user_id == user_id,
    ).first()
    if not notification:
        raise NotFoundError("Notification not found")

    if not notification.is_read:
        notification.is_read = True
        notification.read_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(notification)
    return notification


def mark_all_as_read(db: Session, user_id: str, trip_id: Optional[str] = None) -> int:
    query = db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read.is_(False),
    )
    if trip_id:
        query = query.filter(Notification.trip_id == trip_id)

    updated = query.update(
        {Notification.is_read: True, Notification.read_at: datetime.now(timezone.utc)},
        synchronize_session=False,
    )
    db.commit()
    return updated


def delete_notification(db: Session, notification_id: str, user_id: str) -> None:
    notification = db.query(Notification).filter(
        Notification.notification_id == notification_id,
        Notification.user_id == user_id,
    ).first()
    if not notification:
        raise NotFoundError("Notification not found or not authorized")

    db.delete(notification)
    db.commit()
