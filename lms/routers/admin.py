from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from .. import analytics, models, schemas
from ..database import get_db
from ..pagination import Pagination
from ..security import create_access_token, hash_password, require_admin
from .auth import email_taken

# 整个管理后台都要求管理员身份
router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def log_activity(db: Session, admin: models.User, action: str, **meta):
    db.add(models.ActivityLog(user_id=admin.id, action=action, meta=meta))


def _get_user_or_404(db: Session, user_id: int) -> models.User:
    user = db.get(models.User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="Not found")
    return user


@router.get("/users", response_model=schemas.Page[schemas.UserOut])
def list_users(pager: Pagination = Depends(), db: Session = Depends(get_db)):
    return pager.apply(db.query(models.User).order_by(models.User.id.desc()))


@router.post("/users", response_model=schemas.UserOut, status_code=201)
def create_user(data: schemas.AdminUserCreate, admin: models.User = Depends(require_admin),
                db: Session = Depends(get_db)):
    if email_taken(db, data.email):
        raise HTTPException(status_code=409, detail="Email already in use")
    user = models.User(name=data.name, email=data.email, hashed_password=hash_password(data.password),
                       role=data.role)
    db.add(user)
    db.flush()
    log_activity(db, admin, "create_user", target=user.id)
    db.commit()
    db.refresh(user)
    return user


@router.patch("/users/{user_id}/role", response_model=schemas.UserOut)
def update_user_role(user_id: int, data: schemas.RoleUpdate, admin: models.User = Depends(require_admin),
                     db: Session = Depends(get_db)):
    user = _get_user_or_404(db, user_id)
    user.role = data.role
    log_activity(db, admin, "update_role", target=user.id, role=data.role)
    db.commit()
    db.refresh(user)
    return user


@router.patch("/users/{user_id}/premium", response_model=schemas.PremiumToggleOut)
def toggle_premium(user_id: int, admin: models.User = Depends(require_admin), db: Session = Depends(get_db)):
    user = _get_user_or_404(db, user_id)
    user.is_premium = not user.is_premium
    log_activity(db, admin, "toggle_premium", target=user.id, isPremium=user.is_premium)
    db.commit()
    db.refresh(user)
    return {"user": user, "token": create_access_token(user), "message": "Premium status updated successfully"}


@router.delete("/users/{user_id}", response_model=schemas.Message)
def delete_user(user_id: int, admin: models.User = Depends(require_admin), db: Session = Depends(get_db)):
    user = _get_user_or_404(db, user_id)
    target = user.id
    db.delete(user)
    log_activity(db, admin, "delete_user", target=target)
    db.commit()
    return {"message": "Deleted"}


@router.get("/roles")
def list_roles():
    return [{"id": role, "role_name": role} for role in models.ROLES]


@router.get("/subjects", response_model=List[schemas.SubjectOut])
def list_subjects(db: Session = Depends(get_db)):
    return db.query(models.Subject).order_by(models.Subject.id.asc()).all()


@router.get("/classes", response_model=List[schemas.ClassOut])
def list_classes(db: Session = Depends(get_db)):
    return db.query(models.Class).order_by(models.Class.id.asc()).all()


@router.get("/activity-logs", response_model=schemas.Page[schemas.ActivityLogOut])
def list_activity_logs(pager: Pagination = Depends(), db: Session = Depends(get_db)):
    return pager.apply(db.query(models.ActivityLog).order_by(models.ActivityLog.id.desc()))


@router.get("/dashboard/activity", response_model=List[schemas.ActivityItem])
def recent_activity(db: Session = Depends(get_db)):
    return analytics.recent_activity(db)


@router.get("/attempts", response_model=schemas.Page[schemas.AttemptOut])
def all_attempts(search: Optional[str] = None, pager: Pagination = Depends(), db: Session = Depends(get_db)):
    query = db.query(models.QuizAttempt)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        student_ids = select(models.User.id).where(models.User.name.ilike(pattern))
        quiz_ids = select(models.Quiz.id).where(models.Quiz.title.ilike(pattern))
        query = query.filter(or_(models.QuizAttempt.student_id.in_(student_ids),
                                 models.QuizAttempt.quiz_id.in_(quiz_ids)))
    return pager.apply(query.order_by(models.QuizAttempt.id.desc()))


@router.get("/analytics/dashboard")
def admin_analytics(db: Session = Depends(get_db)):
    return analytics.admin_dashboard(db)
