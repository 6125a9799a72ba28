from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..security import require_admin

router = APIRouter(prefix="/subjects", tags=["subjects"])


def _name_taken(db: Session, name: str, exclude_id=None) -> bool:
    query = db.query(models.Subject).filter(models.Subject.name == name)
    if exclude_id is not None:
        query = query.filter(models.Subject.id != exclude_id)
    return query.first() is not None


def _get_or_404(db: Session, subject_id: int) -> models.Subject:
    subject = db.get(models.Subject, subject_id)
    if not subject:
        raise HTTPException(status_code=404, detail="Not found")
    return subject


@router.get("", response_model=List[schemas.SubjectOut])
def list_subjects(db: Session = Depends(get_db)):
    return db.query(models.Subject).order_by(models.Subject.name.asc()).all()


@router.post("", response_model=schemas.SubjectOut, status_code=201)
def create_subject(data: schemas.SubjectIn, db: Session = Depends(get_db),
                   admin: models.User = Depends(require_admin)):
    name = data.name.strip()
    if _name_taken(db, name):
        raise HTTPException(status_code=409, detail="Subject already exists")
    subject = models.Subject(name=name)
    db.add(subject)
    db.commit()
    db.refresh(subject)
    return subject


@router.patch("/{subject_id}", response_model=schemas.SubjectOut)
def update_subject(subject_id: int, data: schemas.SubjectUpdate, db: Session = Depends(get_db),
                   admin: models.User = Depends(require_admin)):
    subject = _get_or_404(db, subject_id)
    if data.name is not None:
        name = data.name.strip()
        if _name_taken(db, name, exclude_id=subject.id):
            raise HTTPException(status_code=409, detail="Subject already exists")
        subject.name = name
    db.commit()
    db.refresh(subject)
    return subject


@router.delete("/{subject_id}", response_model=schemas.Message)
def delete_subject(subject_id: int, db: Session = Depends(get_db), admin: models.User = Depends(require_admin)):
    db.delete(_get_or_404(db, subject_id))
    db.commit()
    return {"message": "Deleted"}
