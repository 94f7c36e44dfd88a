from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from models.User import User
from schemas import MessageResponse, NotificationRead
from database import get_db
from services import notification_service
from utils.security import get_current_user

router = APIRouter(prefix="/noti", tags=["Notifications"])


@router.get("/get-noti")
def get_notifications(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    notifications = notification_service.get_user_notifications(db, current_user.user_id)
    return {"success": True, "data": [NotificationRead.model_validate(n) for n in notifications]}


@router.get("/unread-count")
def get_unread_count(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Number shown on the bell icon"""
    return {"success": True, "count": notification_service.get_unread_count(db, current_user.user_id)}


@router.patch("/read-all")
def mark_all_as_read(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    updated = notification_service.mark_all_as_read(db, current_user.user_id)
    return {"success": True, "message": "All notifications marked as read", "updated": updated}


@router.patch("/{notification_id}/read", response_model=MessageResponse)
def mark_as_read(notification_id: str, current_user: User = Depends(get_current_user),
                 db: Session = Depends(get_db)):
    notification_service.mark_notification_as_read(db, notification_id, current_user.user_id)
    return {"success": True, "message": "Notification marked as read"}


@router.delete("/notifications/{notification_id}", response_model=MessageResponse)
def delete_notification(notification_id: str, current_user: User = Depends(get_current_user),
                        db: Session = Depends(get_db)):
    notification_service.delete_notification(db, notification_id, current_user.user_id)
    return {"success": True, "message": "Notification deleted successfully"}
