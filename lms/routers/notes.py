import os
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..features import ensure_feature, is_admin, require_feature
from ..hierarchy import chapters_for, group_by_chapter
from ..pagination import Pagination
from ..security import get_current_user, get_optional_user, require_admin
from .notifications import notify

router = APIRouter(prefix="/notes", tags=["notes"])

FILE_TYPES = {".pdf": "pdf", ".doc": "doc", ".docx": "docx", ".txt": "txt", ".ppt": "ppt", ".pptx": "ppt"}


def file_type_of(file_name: Optional[str]) -> Optional[str]:
    if not file_name:
        return None
    return FILE_TYPES.get(os.path.splitext(file_name.lower())[1])


def _filtered(db: Session, user, class_id=None, subject_id=None, chapter_id=None, approved=None):
    query = db.query(models.Note)
    if class_id:
        query = query.filter(models.Note.class_id == class_id)
    if subject_id:
        query = query.filter(models.Note.subject_id == subject_id)
    if chapter_id:
        query = query.filter(models.Note.chapter_id == chapter_id)
    # 学生和游客只能看到已审核的笔记
    if not is_admin(user):
        query = query.filter(models.Note.approved.is_(True))
    elif approved is not None:
        query = query.filter(models.Note.approved.is_(approved))
    return query


@router.get("", response_model=schemas.Page[schemas.NoteOut])
def list_notes(class_id: Optional[int] = None, subject_id: Optional[int] = None, chapter_id: Optional[int] = None,
               approved: Optional[bool] = None, pager: Pagination = Depends(),
               user: Optional[models.User] = Depends(require_feature("notes")), db: Session = Depends(get_db)):
    query = _filtered(db, user, class_id, subject_id, chapter_id, approved)
    return pager.apply(query.order_by(models.Note.id.desc()))


@router.get("/grouped", response_model=Dict[str, List[schemas.NoteOut]])
def grouped_notes(class_id: Optional[int] = None, subject_id: Optional[int] = None,
                  user: Optional[models.User] = Depends(require_feature("notes")), db: Session = Depends(get_db)):
    """按章节标题分组，没有章节的笔记归入 General"""
    notes = _filtered(db, user, class_id, subject_id).order_by(models.Note.id.asc()).all()
    return group_by_chapter(notes, chapters_for(db, class_id, subject_id))


@router.get("/my-notes", response_model=schemas.Page[schemas.NoteOut])
def my_notes(class_id: Optional[int] = None, subject_id: Optional[int] = None, approved: Optional[bool] = None,
             pager: Pagination = Depends(), admin: models.User = Depends(require_admin),
             db: Session = Depends(get_db)):
    query = _filtered(db, admin, class_id, subject_id, approved=approved).filter(models.Note.uploaded_by == admin.id)
    return pager.apply(query.order_by(models.Note.created_at.desc(), models.Note.id.desc()))


@router.get("/{note_id}", response_model=schemas.NoteOut)
def get_note(note_id: int, user: Optional[models.User] = Depends(get_optional_user), db: Session = Depends(get_db)):
    ensure_feature(db, "notes", user)
    note = db.get(models.Note, note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Not found")
    if not note.approved and not is_admin(user):
        raise HTTPException(status_code=403, detail="Forbidden")
    return note


@router.post("", response_model=schemas.NoteCreated, status_code=201)
def create_note(data: schemas.NoteIn, admin: models.User = Depends(require_admin), db: Session = Depends(get_db)):
    descriptive = not data.file_path
    note = models.Note(
        title=data.title.strip(),
        description=data.description,
        class_id=data.class_id,
        subject_id=data.subject_id,
        chapter_id=data.chapter_id,
        file_path=data.file_path or None,
        file_name=None if descriptive else (data.file_name or os.path.basename(data.file_path)),
        is_descriptive_only=descriptive,
        uploaded_by=admin.id,
        approved=True,
    )
    note.file_type = file_type_of(note.file_name)
    db.add(note)
    notify(db, "New Note", f"{note.title} is now available", "note", admin.id, to_role="student")
    db.commit()
    db.refresh(note)
    message = "Descriptive note created successfully" if descriptive else "Note uploaded successfully"
    return {"message": message, "note": note}


@router.patch("/{note_id}/approve", response_model=schemas.NoteOut)
def approve_note(note_id: int, data: schemas.ApproveIn, admin: models.User = Depends(require_admin),
                 db: Session = Depends(get_db)):
    note = db.get(models.Note, note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Not found")
    note.approved = data.approved
    if note.approved:
        notify(db, "New Note", f"{note.title} is available", "note", admin.id, to_role="student")
    db.commit()
    db.refresh(note)
    return note


@router.delete("/{note_id}", response_model=schemas.Message)
def delete_note(note_id: int, current: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    note = db.get(models.Note, note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Not found")
    if note.uploaded_by != current.id and not is_admin(current):
        raise HTTPException(status_code=403, detail="Forbidden")
    db.delete(note)
    db.commit()
    return {"message": "Deleted"}
