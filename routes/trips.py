from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from models.User import User
from schemas import (
    TripWrite,
    TripRead,
    TripSummaryRead,
    TripDetailRead,
    TripIdRequest,
    TripMemberRead,
    JoinByCodeRequest,
    JoinResult,
    MessageResponse,
)
from database import get_db
from services import trip_service
from utils.security import get_current_user

router = APIRouter(prefix="/trip", tags=["Trips"])


@router.post("/AddTrip", status_code=status.HTTP_201_CREATED)
def create_trip(payload: TripWrite, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    trip = trip_service.create_trip(
        db,
        owner=current_user,
        trip_name=payload.trip_name,
        num_days=payload.num_days,
        description=payload.description,
    )
    return {"message": "Trip created successfully", "trip": TripRead.model_validate(trip)}


@router.get("/all-my-trips")
def get_my_trips(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    trips = trip_service.list_my_trips(db, current_user.user_id)
    return {"success": True, "data": [TripSummaryRead(**t) for t in trips]}


@router.delete("/DeleteTrip", response_model=MessageResponse)
def delete_trip(payload: TripIdRequest, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    trip_service.delete_trip(db, payload.trip_id, current_user.user_id)
    return {"success": True, "message": "Trip deleted successfully"}


@router.post("/join")
def join_trip_by_code(payload: JoinByCodeRequest, current_user: User = Depends(get_current_user),
                      db: Session = Depends(get_db)):
    member, joined = trip_service.join_by_code(db, payload.invite_code, current_user)
    return {
        "success": True,
        "message": "Joined trip successfully" if joined else "You are already a member of this trip",
        "data": JoinResult(trip_id=member.trip_id, member_id=member.member_id, joined=joined),
    }


@router.post("/join/{trip_id}")
def join_trip_by_link(trip_id: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    member, joined = trip_service.join_by_link(db, trip_id, current_user)
    return {
        "success": True,
        "message": "Joined trip successfully" if joined else "You are already a member of this trip",
        "data": JoinResult(trip_id=member.trip_id, member_id=member.member_id, joined=joined),
    }


@router.get("/{trip_id}")
def get_trip(trip_id: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    detail = trip_service.get_trip_detail(db, trip_id, current_user.user_id)
    return {"success": True, "data": TripDetailRead(**detail)}


@router.get("/{trip_id}/members")
def list_trip_members(trip_id: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    trip_service.require_member(db, trip_id, current_user.user_id)
    members: List[dict] = trip_service.list_members(db, trip_id)
    return {"success": True, "data": [TripMemberRead(**m) for m in members]}


@router.delete("/{trip_id}/members/{member_id}", response_model=MessageResponse)
def remove_member(trip_id: str, member_id: str, current_user: User = Depends(get_current_user),
                  db: Session = Depends(get_db)):
    trip_service.remove_member(db, trip_id, member_id, current_user.user_id)
    return {"success": True, "message": "Member removed successfully"}


@router.patch("/{trip_id}/confirm")
def confirm_trip(trip_id: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    trip = trip_service.confirm_trip(db, trip_id, current_user.user_id)
    return {"success": True, "message": "Trip confirmed", "data": TripRead.model_validate(trip)}


@router.patch("/{trip_id}/complete")
def complete_trip(trip_id: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    trip = trip_service.complete_trip(db, trip_id, current_user.user_id)
    return {"success": True, "message": "Trip completed", "data": TripRead.model_validate(trip)}


@router.patch("/{trip_id}/archive")
def archive_trip(trip_id: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    trip = trip_service.archive_trip(db, trip_id, current_user.user_id)
    return {"success": True, "message": "Trip archived", "data": TripRead.model_validate(trip)}
