from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..pagination import Pagination
from ..security import get_current_user, require_admin, require_student

router = APIRouter(prefix="/results", tags=["results"])


def readable_attempt(db: Session, attempt_id: int, current: models.User) -> models.QuizAttempt:
    attempt = db.get(models.QuizAttempt, attempt_id)
    if not attempt:
        raise HTTPException(status_code=404, detail="Not found")
    # 学生只能查看自己的成绩
    if current.role == "student" and attempt.student_id != current.id:
        raise HTTPException(status_code=403, detail="Forbidden")
    return attempt


def _student_attempts(db: Session, student_id: int, pager: Pagination):
    query = db.query(models.QuizAttempt).filter(models.QuizAttempt.student_id == student_id)
    return pager.apply(query.order_by(models.QuizAttempt.id.desc()))


@router.get("/attempts/{attempt_id}", response_model=schemas.AttemptOut)
def get_attempt(attempt_id: int, current: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    return readable_attempt(db, attempt_id, current)


@router.get("/attempts/{attempt_id}/details", response_model=schemas.AttemptDetail)
def get_attempt_details(attempt_id: int, current: models.User = Depends(get_current_user),
                        db: Session = Depends(get_db)):
    attempt = readable_attempt(db, attempt_id, current)
    return {"attempt": attempt, "quiz_results": attempt.results}


@router.get("/students/me/attempts", response_model=schemas.Page[schemas.AttemptOut])
def my_attempts(pager: Pagination = Depends(), student: models.User = Depends(require_student),
                db: Session = Depends(get_db)):
    return _student_attempts(db, student.id, pager)


@router.get("/students/{student_id}/attempts", response_model=schemas.Page[schemas.AttemptOut])
def student_attempts(student_id: int, pager: Pagination = Depends(), admin: models.User = Depends(require_admin),
                     db: Session = Depends(get_db)):
    return _student_attempts(db, student_id, pager)
