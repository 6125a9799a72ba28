from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..features import is_admin, is_locked
from ..hierarchy import chapters_for, group_by_chapter
from ..pagination import Pagination
from ..security import get_current_user, get_optional_user, require_admin
from .notifications import notify

router = APIRouter(prefix="/lectures", tags=["lectures"])


def _visible(db: Session, user, class_id=None, subject_id=None, chapter_id=None, approved=None):
    query = db.query(models.Lecture)
    if class_id:
        query = query.filter(models.Lecture.class_id == class_id)
    if subject_id:
        query = query.filter(models.Lecture.subject_id == subject_id)
    if chapter_id:
        query = query.filter(models.Lecture.chapter_id == chapter_id)
    if not is_admin(user):
        query = query.filter(models.Lecture.approved.is_(True))
    elif approved is not None:
        query = query.filter(models.Lecture.approved.is_(approved))
    # 非会员只能看到免费讲座
    if is_locked(True, user):
        query = query.filter(models.Lecture.is_premium.is_(False))
    return query


@router.get("", response_model=schemas.Page[schemas.LectureOut])
def list_lectures(class_id: Optional[int] = None, subject_id: Optional[int] = None,
                  chapter_id: Optional[int] = None, approved: Optional[bool] = None,
                  pager: Pagination = Depends(), user: Optional[models.User] = Depends(get_optional_user),
                  db: Session = Depends(get_db)):
    query = _visible(db, user, class_id, subject_id, chapter_id, approved)
    return pager.apply(query.order_by(models.Lecture.id.desc()))


@router.get("/grouped", response_model=Dict[str, List[schemas.LectureOut]])
def grouped_lectures(class_id: Optional[int] = None, subject_id: Optional[int] = None,
                     user: Optional[models.User] = Depends(get_optional_user), db: Session = Depends(get_db)):
    lectures = _visible(db, user, class_id, subject_id).order_by(models.Lecture.id.asc()).all()
    return group_by_chapter(lectures, chapters_for(db, class_id, subject_id))


@router.get("/{lecture_id}", response_model=schemas.LectureOut)
def get_lecture(lecture_id: int, current: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    lecture = db.get(models.Lecture, lecture_id)
    if not lecture:
        raise HTTPException(status_code=404, detail="Not found")
    if not lecture.approved and not is_admin(current):
        raise HTTPException(status_code=403, detail="Forbidden")
    if lecture.is_premium and is_locked(True, current):
        raise HTTPException(status_code=403, detail={"message": "This lecture requires a premium plan.",
                                                     "code": "PREMIUM_REQUIRED"})
    return lecture


@router.post("", response_model=schemas.LectureOut, status_code=201)
def create_lecture(data: schemas.LectureIn, admin: models.User = Depends(require_admin),
                   db: Session = Depends(get_db)):
    if data.type == "file" and not data.file_path:
        raise HTTPException(status_code=400, detail="Video file is required")
    if data.type == "link" and not data.link:
        raise HTTPException(status_code=400, detail="Video link is required")
    lecture = models.Lecture(
        title=data.title.strip(),
        description=data.description,
        type=data.type,
        file_path=data.file_path if data.type == "file" else None,
        link=data.link if data.type == "link" else None,
        is_premium=data.is_premium,
        class_id=data.class_id,
        subject_id=data.subject_id,
        chapter_id=data.chapter_id,
        uploaded_by=admin.id,
        approved=True,
    )
    db.add(lecture)
    notify(db, "New Lecture", f"{lecture.title} is now available", "lecture", admin.id, to_role="student")
    db.commit()
    db.refresh(lecture)
    return lecture


@router.patch("/{lecture_id}/approve", response_model=schemas.LectureOut)
def approve_lecture(lecture_id: int, data: schemas.ApproveIn, admin: models.User = Depends(require_admin),
                    db: Session = Depends(get_db)):
    lecture = db.get(models.Lecture, lecture_id)
    if not lecture:
        raise HTTPException(status_code=404, detail="Not found")
    lecture.approved = data.approved
    db.commit()
    db.refresh(lecture)
    return lecture


@router.delete("/{lecture_id}", response_model=schemas.Message)
def delete_lecture(lecture_id: int, current: models.User = Depends(get_current_user),
                   db: Session = Depends(get_db)):
    lecture = db.get(models.Lecture, lecture_id)
    if not lecture:
        raise HTTPException(status_code=404, detail="Not found")
    if lecture.uploaded_by != current.id and not is_admin(current):
        raise HTTPException(status_code=403, detail="Forbidden")
    db.delete(lecture)
    db.commit()
    return {"message": "Deleted"}
