import re

import pytest

from errors import ConflictError, InvalidInviteError, InvalidStateError, NotFoundError, PermissionDeniedError
from models.AvailabilityRange import AvailabilityRange
from models.Notification import Notification, NotificationType
from models.Trip import Trip, TripStatus
from models.TripMember import TripMember, MemberRole
from services import trip_service, vote_service


def test_generate_invite_code_format():
    for _ in range(50):
        assert re.fullmatch(r"[0-9A-Z]{6}", trip_service.generate_invite_code())


def test_create_trip_makes_owner_a_member(db, trip, owner):
    assert re.fullmatch(r"[0-9A-Z]{6}", trip.invite_code)
    assert trip.invite_link.endswith(f"/join/{trip.trip_id}")
    assert trip.status == TripStatus.PLANNING

    members = db.query(TripMember).filter(TripMember.trip_id == trip.trip_id).all()
    assert len(members) == 1
    assert members[0].user_id == owner.user_id
    assert members[0].role == MemberRole.OWNER


def test_join_by_code_is_idempotent(db, trip, alice):
    first, joined = trip_service.join_by_code(db, trip.invite_code, alice)
    second, joined_again = trip_service.join_by_code(db, trip.invite_code, alice)

    assert joined is True
    assert joined_again is False
    assert first.member_id == second.member_id
    assert trip_service.count_active_members(db, trip.trip_id) == 2


def test_join_by_code_ignores_case_and_whitespace(db, trip, alice):
    member, joined = trip_service.join_by_code(db, f"  {trip.invite_code.lower()} ", alice)
    assert joined
    assert member.role == MemberRole.MEMBER


@pytest.mark.parametrize("code", ["ZZZZZZ", "", None])
def test_join_by_unknown_code(db, trip, alice, code):
    with pytest.raises(InvalidInviteError) as exc_info:
        trip_service.join_by_code(db, code, alice)
    assert exc_info.value.message == "Invalid invite code"


def test_join_by_link(db, trip, alice):
    member, joined = trip_service.join_by_link(db, trip.trip_id, alice)
    assert joined
    assert member.trip_id == trip.trip_id

    with pytest.raises(InvalidInviteError):
        trip_service.join_by_link(db, "not-a-trip", alice)


def test_archived_trip_cannot_be_joined(db, trip, owner, alice):
    trip_service.archive_trip(db, trip.trip_id, owner.user_id)
    with pytest.raises(InvalidStateError):
        trip_service.join_by_code(db, trip.invite_code, alice)


def test_owner_cannot_be_removed(db, trip, owner):
    owner_member = trip_service.get_active_membership(db, trip.trip_id, owner.user_id)
    with pytest.raises(InvalidStateError):
        trip_service.remove_member(db, trip.trip_id, owner_member.member_id, owner.user_id)


def test_remove_member(db, trip, owner, alice):
    member, _ = trip_service.join_by_code(db, trip.invite_code, alice)

    trip_service.remove_member(db, trip.trip_id, member.member_id, owner.user_id)

    remaining = [m["user_id"] for m in trip_service.list_members(db, trip.trip_id)]
    assert remaining == [owner.user_id]
    removed_notice = db.query(Notification).filter(
        Notification.user_id == alice.user_id,
        Notification.notification_type == NotificationType.MEMBER_REMOVED,
    ).one()
    assert removed_notice.trip_id == trip.trip_id

    with pytest.raises(PermissionDeniedError):
        vote_service.submit_availability(db, trip.trip_id, alice.user_id,
                                         [{"start_date": "2025-12-01", "end_date": "2025-12-01"}])


def test_remove_member_twice_is_not_found(db, trip, owner, alice):
    member, _ = trip_service.join_by_code(db, trip.invite_code, alice)
    trip_service.remove_member(db, trip.trip_id, member.member_id, owner.user_id)

    with pytest.raises(NotFoundError):
        trip_service.remove_member(db, trip.trip_id, member.member_id, owner.user_id)


def test_only_owner_removes_members(db, trip, alice, bob):
    trip_service.join_by_code(db, trip.invite_code, alice)
    bob_member, _ = trip_service.join_by_code(db, trip.invite_code, bob)

    with pytest.raises(PermissionDeniedError):
        trip_service.remove_member(db, trip.trip_id, bob_member.member_id, alice.user_id)


def test_removed_member_can_rejoin(db, trip, owner, alice):
    member, _ = trip_service.join_by_code(db, trip.invite_code, alice)
    trip_service.remove_member(db, trip.trip_id, member.member_id, owner.user_id)

    rejoined, joined = trip_service.join_by_code(db, trip.invite_code, alice)

    assert joined is True
    assert rejoined.member_id == member.member_id
    assert rejoined.is_active is True


def test_status_moves_forward_and_repeats_are_noops(db, trip, owner):
    confirmed = trip_service.confirm_trip(db, trip.trip_id, owner.user_id)
    assert confirmed.status == TripStatus.CONFIRMED
    assert confirmed.confirmed_at is not None
    stamped = confirmed.confirmed_at

    again = trip_service.confirm_trip(db, trip.trip_id, owner.user_id)
    assert again.status == TripStatus.CONFIRMED
    assert again.confirmed_at == stamped

    assert trip_service.complete_trip(db, trip.trip_id, owner.user_id).status == TripStatus.COMPLETED
    with pytest.raises(InvalidStateError):
        trip_service.confirm_trip(db, trip.trip_id, owner.user_id)


def test_archived_is_terminal(db, trip, owner):
    trip_service.archive_trip(db, trip.trip_id, owner.user_id)
    assert trip_service.archive_trip(db, trip.trip_id, owner.user_id).status == TripStatus.ARCHIVED

    with pytest.raises(InvalidStateError):
        trip_service.confirm_trip(db, trip.trip_id, owner.user_id)
    with pytest.raises(InvalidStateError):
        trip_service.complete_trip(db, trip.trip_id, owner.user_id)


def test_status_changes_need_owner(db, trip, alice):
    trip_service.join_by_code(db, trip.invite_code, alice)
    with pytest.raises(PermissionDeniedError):
        trip_service.confirm_trip(db, trip.trip_id, alice.user_id)


def test_delete_trip_is_owner_only_and_cascades(db, trip, owner, alice):
    trip_service.join_by_code(db, trip.invite_code, alice)
    vote_service.submit_availability(db, trip.trip_id, alice.user_id,
                                     [{"start_date": "2025-12-01", "end_date": "2025-12-03"}])

    with pytest.raises(PermissionDeniedError):
        trip_service.delete_trip(db, trip.trip_id, alice.user_id)

    trip_id = trip.trip_id
    trip_service.delete_trip(db, trip_id, owner.user_id)
    db.expire_all()

    assert db.query(Trip).filter(Trip.trip_id == trip_id).first() is None
    assert db.query(TripMember).filter(TripMember.trip_id == trip_id).count() == 0
    assert db.query(AvailabilityRange).filter(AvailabilityRange.trip_id == trip_id).count() == 0
    with pytest.raises(NotFoundError):
        trip_service.get_trip_or_404(db, trip_id)


def test_list_my_trips(db, trip, owner, alice, bob):
    other = trip_service.create_trip(db, bob, trip_name="Chiang Mai", num_days=2)
    trip_service.join_by_code(db, trip.invite_code, alice)

    alice_trips = trip_service.list_my_trips(db, alice.user_id)
    assert [t["trip_id"] for t in alice_trips] == [trip.trip_id]
    assert alice_trips[0]["role"] == MemberRole.MEMBER
    assert alice_trips[0]["num_members"] == 2

    bob_trips = trip_service.list_my_trips(db, bob.user_id)
    assert [t["trip_id"] for t in bob_trips] == [other.trip_id]
    assert bob_trips[0]["role"] == MemberRole.OWNER


def test_trip_detail_requires_membership(db, trip, owner, alice):
    detail = trip_service.get_trip_detail(db, trip.trip_id, owner.user_id)
    assert detail["member_count"] == 1
    assert detail["invite_code"] == trip.invite_code

    with pytest.raises(PermissionDeniedError):
        trip_service.get_trip_detail(db, trip.trip_id, alice.user_id)


def test_invite_code_collisions_give_up_with_conflict(db, trip, bob, monkeypatch):
    monkeypatch.setattr(trip_service, "generate_invite_code", lambda: trip.invite_code)

    with pytest.raises(ConflictError):
        trip_service.create_trip(db, bob, trip_name="Loei", num_days=2)

    assert trip_service.list_my_trips(db, bob.user_id) == []
