from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db

router = APIRouter(prefix="/reviews", tags=["reviews"])

LATEST_COUNT = 3


def _newest_first(db: Session):
    return db.query(models.Review).order_by(models.Review.created_at.desc(), models.Review.id.desc())


@router.get("", response_model=List[schemas.ReviewOut])
def get_all_reviews(db: Session = Depends(get_db)):
    return _newest_first(db).all()


@router.get("/latest", response_model=List[schemas.ReviewOut])
def get_latest_reviews(db: Session = Depends(get_db)):
    return _newest_first(db).limit(LATEST_COUNT).all()


@router.post("", response_model=schemas.ReviewOut, status_code=201)
def add_review(data: schemas.ReviewIn, db: Session = Depends(get_db)):
    review = models.Review(name=data.name.strip(), rating=data.rating, comment=data.comment.strip())
    db.add(review)
    db.commit()
    db.refresh(review)
    return review
