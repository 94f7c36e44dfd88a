from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from models.DateVotingSession import DateVotingSession
from models.User import User
from schemas import (
    AvailabilityWrite,
    TripIdRequest,
    DateRankingRead,
    VotingSessionRead,
    BudgetWrite,
    BudgetUpdateResult,
    BudgetCategoryStats,
    LocationVoteWrite,
    LocationScoreRead,
    HeatmapResponse,
    MessageResponse,
)
from database import get_db
from services import trip_service, vote_service
from utils.security import get_current_user

router = APIRouter(prefix="/vote", tags=["Voting"])


def _session_read(voting: DateVotingSession) -> VotingSessionRead:
    return VotingSessionRead(
        voting_id=voting.date_voting_id,
        trip_id=voting.trip_id,
        status=voting.status,
        created_at=voting.created_at,
        closed_at=voting.closed_at,
    )


# ---------- dates ----------

@router.post("/submit-availability", response_model=MessageResponse)
def submit_availability(payload: AvailabilityWrite, current_user: User = Depends(get_current_user),
                        db: Session = Depends(get_db)):
    """Replace the caller's available date ranges for a trip"""
    vote_service.submit_availability(db, payload.trip_id, current_user.user_id, payload.ranges)
    return {"success": True, "message": "Availability updated successfully"}


@router.get("/heatmap/{trip_id}", response_model=HeatmapResponse)
def get_heatmap(trip_id: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    trip_service.require_member(db, trip_id, current_user.user_id)
    return {"success": True, "data": vote_service.get_trip_heatmap(db, trip_id)}


@router.get("/date-ranking/{trip_id}")
def get_date_ranking(trip_id: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    trip_service.require_member(db, trip_id, current_user.user_id)
    ranking = vote_service.rank_trip_dates(db, trip_id)
    return {"success": True, "data": [DateRankingRead(**r) for r in ranking]}


@router.post("/start-voting", status_code=status.HTTP_201_CREATED)
def start_voting(payload: TripIdRequest, current_user: User = Depends(get_current_user),
                 db: Session = Depends(get_db)):
    voting = vote_service.start_voting_session(db, payload.trip_id, current_user.user_id)
    return {"success": True, "data": {"voting_id": voting.date_voting_id, "status": voting.status.value}}


@router.post("/close-voting")
def close_voting(payload: TripIdRequest, current_user: User = Depends(get_current_user),
                 db: Session = Depends(get_db)):
    voting = vote_service.close_voting_session(db, payload.trip_id, current_user.user_id)
    return {"success": True, "data": {"voting_id": voting.date_voting_id, "status": voting.status.value}}


@router.get("/session/{trip_id}")
def get_voting_session(trip_id: str, current_user: User = Depends(get_current_user),
                       db: Session = Depends(get_db)):
    trip_service.require_member(db, trip_id, current_user.user_id)
    voting = vote_service.get_voting_session(db, trip_id)
    return {"success": True, "data": _session_read(voting) if voting else None}


# ---------- budget ----------

@router.put("/{trip_id}/budget")
def update_budget(trip_id: str, payload: BudgetWrite, current_user: User = Depends(get_current_user),
                  db: Session = Depends(get_db)):
    old_amount, new_amount = vote_service.update_budget(
        db, trip_id, current_user.user_id, payload.category, payload.amount
    )
    return {
        "success": True,
        "message": "Budget updated successfully",
        "data": BudgetUpdateResult(old_amount=old_amount, new_amount=new_amount),
    }


@router.get("/{trip_id}/budget")
def get_budget(trip_id: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    trip_service.require_member(db, trip_id, current_user.user_id)
    summary = vote_service.get_budget_summary(db, trip_id)
    return {"success": True, "data": {k: BudgetCategoryStats(**v) for k, v in summary.items()}}


# ---------- destination ----------

@router.post("/{trip_id}/vote-place")
def vote_place(trip_id: str, payload: LocationVoteWrite, current_user: User = Depends(get_current_user),
               db: Session = Depends(get_db)):
    """Ranked vote for three provinces, first choice first"""
    scores = vote_service.vote_location(db, trip_id, current_user.user_id, payload.votes)
    return {"success": True, "scores": {s["place"]: s["total_score"] for s in scores}}


@router.get("/{trip_id}/places")
def get_place_scores(trip_id: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    trip_service.require_member(db, trip_id, current_user.user_id)
    scores = vote_service.get_location_scores(db, trip_id)
    return {"success": True, "data": [LocationScoreRead(**s) for s in scores]}
