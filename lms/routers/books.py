from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..pagination import Pagination
from ..security import require_admin

router = APIRouter(prefix="/books", tags=["books"])


def _get_or_404(db: Session, book_id: int) -> models.Book:
    book = db.get(models.Book, book_id)
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    return book


@router.get("", response_model=schemas.Page[schemas.BookOut])
def list_books(grade: Optional[str] = None, category: Optional[str] = None, q: Optional[str] = None,
               pager: Pagination = Depends(), db: Session = Depends(get_db)):
    query = db.query(models.Book)
    if grade:
        query = query.filter(models.Book.grade == grade)
    if category:
        query = query.filter(models.Book.category == category)
    if q and q.strip():
        pattern = f"%{q.strip()}%"
        query = query.filter(or_(models.Book.title.ilike(pattern), models.Book.author.ilike(pattern)))
    return pager.apply(query.order_by(models.Book.created_at.desc(), models.Book.id.desc()))


@router.get("/{book_id}", response_model=schemas.BookOut)
def get_book(book_id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, book_id)


@router.post("", response_model=schemas.BookOut, status_code=201)
def create_book(data: schemas.BookIn, admin: models.User = Depends(require_admin), db: Session = Depends(get_db)):
    book = models.Book(**data.model_dump())
    db.add(book)
    db.commit()
    db.refresh(book)
    return book


@router.put("/{book_id}", response_model=schemas.BookOut)
def update_book(book_id: int, data: schemas.BookUpdate, admin: models.User = Depends(require_admin),
                db: Session = Depends(get_db)):
    book = _get_or_404(db, book_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(book, field, value)
    db.commit()
    db.refresh(book)
    return book


@router.delete("/{book_id}", response_model=schemas.Message)
def delete_book(book_id: int, admin: models.User = Depends(require_admin), db: Session = Depends(get_db)):
    db.delete(_get_or_404(db, book_id))
    db.commit()
    return {"message": "Book deleted successfully"}
