from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..hierarchy import chapters_for
from ..security import require_admin

router = APIRouter(prefix="/chapters", tags=["chapters"])


def _title_taken(db: Session, title: str, class_id: int, subject_id: int, exclude_id=None) -> bool:
    query = db.query(models.Chapter).filter(models.Chapter.title == title,
                                            models.Chapter.class_id == class_id,
                                            models.Chapter.subject_id == subject_id)
    if exclude_id is not None:
        query = query.filter(models.Chapter.id != exclude_id)
    return query.first() is not None


@router.get("", response_model=List[schemas.ChapterOut])
def list_chapters(class_id: Optional[int] = None, subject_id: Optional[int] = None, db: Session = Depends(get_db)):
    """章节必须同时指定班级和科目，缺一个就返回空列表"""
    return chapters_for(db, class_id, subject_id)


@router.post("", response_model=schemas.ChapterOut, status_code=201)
def create_chapter(data: schemas.ChapterIn, db: Session = Depends(get_db),
                   admin: models.User = Depends(require_admin)):
    if not db.get(models.Class, data.class_id) or not db.get(models.Subject, data.subject_id):
        raise HTTPException(status_code=400, detail="Class and subject must exist")
    title = data.title.strip()
    if _title_taken(db, title, data.class_id, data.subject_id):
        raise HTTPException(status_code=409, detail="Chapter already exists for this class and subject")
    chapter = models.Chapter(title=title, class_id=data.class_id, subject_id=data.subject_id, order=data.order)
    db.add(chapter)
    db.commit()
    db.refresh(chapter)
    return chapter


@router.put("/{chapter_id}", response_model=schemas.ChapterOut)
def update_chapter(chapter_id: int, data: schemas.ChapterUpdate, db: Session = Depends(get_db),
                   admin: models.User = Depends(require_admin)):
    chapter = db.get(models.Chapter, chapter_id)
    if not chapter:
        raise HTTPException(status_code=404, detail="Chapter not found")
    if data.title is not None:
        title = data.title.strip()
        if _title_taken(db, title, chapter.class_id, chapter.subject_id, exclude_id=chapter.id):
            raise HTTPException(status_code=409, detail="Chapter already exists for this class and subject")
        chapter.title = title
    if data.order is not None:
        chapter.order = data.order
    db.commit()
    db.refresh(chapter)
    return chapter


@router.delete("/{chapter_id}", response_model=schemas.Message)
def delete_chapter(chapter_id: int, db: Session = Depends(get_db), admin: models.User = Depends(require_admin)):
    chapter = db.get(models.Chapter, chapter_id)
    if not chapter:
        raise HTTPException(status_code=404, detail="Chapter not found")
    db.delete(chapter)
    db.commit()
    return {"message": "Chapter deleted successfully"}
