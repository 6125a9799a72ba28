import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..pagination import Pagination
from ..security import get_current_user, require_admin

router = APIRouter(prefix="/notifications", tags=["notifications"])


def notify(db: Session, title: str, message: str, type: str, created_by: int, to_user_id=None, to_role=None):
    """新增一条通知，由调用方统一提交事务"""
    note = models.Notification(title=title, message=message, type=type, created_by=created_by,
                               to_user_id=to_user_id, to_role=to_role)
    db.add(note)
    return note


def addressed_to(notification: models.Notification, user: models.User) -> bool:
    if notification.to_user_id is not None and notification.to_user_id != user.id:
        return False
    if notification.to_role is not None and notification.to_role != user.role:
        return False
    return True


@router.get("/me", response_model=schemas.Page[schemas.NotificationOut])
def list_my_notifications(unread_only: bool = False, pager: Pagination = Depends(),
                          current: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    query = db.query(models.Notification).filter(or_(models.Notification.to_user_id == current.id,
                                                     models.Notification.to_role == current.role))
    if unread_only:
        query = query.filter(models.Notification.is_read.is_(False))
    return pager.apply(query.order_by(models.Notification.id.desc()))


@router.post("", response_model=schemas.NotificationOut, status_code=201)
def create_notification(data: schemas.NotificationIn, admin: models.User = Depends(require_admin),
                        db: Session = Depends(get_db)):
    note = notify(db, data.title, data.message, data.type, admin.id, to_user_id=data.to_user_id, to_role=data.to_role)
    db.commit()
    db.refresh(note)
    return note


@router.patch("/{notification_id}/read", response_model=schemas.NotificationOut)
def mark_read(notification_id: int, current: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    """返回服务端确认后的状态，重复调用不会改变 read_at"""
    note = db.get(models.Notification, notification_id)
    if not note:
        raise HTTPException(status_code=404, detail="Not found")
    if not addressed_to(note, current):
        raise HTTPException(status_code=403, detail="Forbidden")
    if not note.is_read:
        note.is_read = True
        note.read_at = datetime.datetime.utcnow()
        db.commit()
        db.refresh(note)
    return note
