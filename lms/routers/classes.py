from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..security import require_admin

router = APIRouter(prefix="/classes", tags=["classes"])


def get_class_or_404(db: Session, class_id: int) -> models.Class:
    obj = db.get(models.Class, class_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.get("", response_model=List[schemas.ClassOut])
def list_classes(db: Session = Depends(get_db)):
    return db.query(models.Class).order_by(models.Class.title.asc()).all()


@router.get("/{class_id}", response_model=schemas.ClassOut)
def get_class(class_id: int, db: Session = Depends(get_db)):
    return get_class_or_404(db, class_id)


@router.post("", response_model=schemas.ClassOut, status_code=201)
def create_class(data: schemas.ClassIn, db: Session = Depends(get_db), admin: models.User = Depends(require_admin)):
    obj = models.Class(title=data.title.strip())
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@router.patch("/{class_id}", response_model=schemas.ClassOut)
def update_class(class_id: int, data: schemas.ClassUpdate, db: Session = Depends(get_db),
                 admin: models.User = Depends(require_admin)):
    obj = get_class_or_404(db, class_id)
    if data.title is not None:
        obj.title = data.title.strip()
    db.commit()
    db.refresh(obj)
    return obj


@router.delete("/{class_id}", response_model=schemas.Message)
def delete_class(class_id: int, db: Session = Depends(get_db), admin: models.User = Depends(require_admin)):
    obj = get_class_or_404(db, class_id)
    db.delete(obj)
    db.commit()
    return {"message": "Deleted"}
