from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from database import get_db

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check():
    return {"status": "ok"}


@router.get("/health/ready")
def readiness_check(db: Session = Depends(get_db)):
    """Verifies the database answers"""
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        return {"status": "degraded", "checks": {"database": False, "database_error": str(e)}}
    return {"status": "ready", "checks": {"database": True}}
