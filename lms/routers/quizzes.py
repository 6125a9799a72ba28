import datetime
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas, scoring
from ..database import get_db
from ..features import ensure_feature, is_admin
from ..pagination import Pagination
from ..security import get_current_user, require_admin, require_student
from .notifications import notify

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quizzes", tags=["quizzes"])


def get_quiz_or_404(db: Session, quiz_id: int, message: str = "Quiz not found") -> models.Quiz:
    quiz = db.get(models.Quiz, quiz_id)
    if not quiz:
        raise HTTPException(status_code=404, detail=message)
    return quiz


def find_attempt(db: Session, quiz_id: int, student_id: int) -> Optional[models.QuizAttempt]:
    return (db.query(models.QuizAttempt)
            .filter(models.QuizAttempt.quiz_id == quiz_id, models.QuizAttempt.student_id == student_id)
            .order_by(models.QuizAttempt.id.asc())
            .first())


def announce_quiz(db: Session, quiz: models.Quiz, user_id: int):
    notify(db, "New Quiz", f"{quiz.title} is available", "quiz_published", user_id, to_role="student")


@router.get("", response_model=schemas.Page[schemas.QuizOut])
def list_quizzes(class_id: Optional[int] = None, subject_id: Optional[int] = None, status: Optional[str] = None,
                 pager: Pagination = Depends(), current: models.User = Depends(get_current_user),
                 db: Session = Depends(get_db)):
    ensure_feature(db, "quizzes", current)
    query = db.query(models.Quiz)
    if class_id:
        query = query.filter(models.Quiz.class_id == class_id)
    if subject_id:
        query = query.filter(models.Quiz.subject_id == subject_id)
    # 学生只能看到已发布的测验，草稿和归档一律过滤
    if not is_admin(current):
        query = query.filter(models.Quiz.status == "published")
    elif status:
        query = query.filter(models.Quiz.status == status)
    return pager.apply(query.order_by(models.Quiz.id.desc()))


@router.get("/me/attempts/list", response_model=schemas.Page[schemas.AttemptOut])
def my_attempts(pager: Pagination = Depends(), student: models.User = Depends(require_student),
                db: Session = Depends(get_db)):
    query = db.query(models.QuizAttempt).filter(models.QuizAttempt.student_id == student.id)
    return pager.apply(query.order_by(models.QuizAttempt.id.desc()))


@router.get("/{quiz_id}", response_model=schemas.QuizDetail)
def get_quiz(quiz_id: int, current: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    ensure_feature(db, "quizzes", current)
    quiz = get_quiz_or_404(db, quiz_id, "Not found")
    detail = schemas.QuizDetail.model_validate(quiz)
    if is_admin(current):
        detail.questions = [schemas.QuestionOut.model_validate(q) for q in quiz.questions]
        return detail
    if quiz.status != "published":
        raise HTTPException(status_code=404, detail="Not found")
    # 已经做过就直接展示结果，没有重做入口
    attempt = find_attempt(db, quiz.id, current.id)
    detail.attempt_status = scoring.attempt_status(attempt)
    if attempt is not None:
        detail.attempt = schemas.AttemptOut.model_validate(attempt)
    detail.questions = [schemas.QuestionPublic.model_validate(q) for q in quiz.questions]
    return detail


@router.post("", response_model=schemas.QuizOut, status_code=201)
def create_quiz(data: schemas.QuizIn, admin: models.User = Depends(require_admin), db: Session = Depends(get_db)):
    quiz = models.Quiz(created_by=admin.id, **data.model_dump())
    db.add(quiz)
    db.flush()
    if quiz.status == "published":
        announce_quiz(db, quiz, admin.id)
    db.commit()
    db.refresh(quiz)
    return quiz


@router.patch("/{quiz_id}", response_model=schemas.QuizOut)
def update_quiz(quiz_id: int, data: schemas.QuizUpdate, admin: models.User = Depends(require_admin),
                db: Session = Depends(get_db)):
    quiz = get_quiz_or_404(db, quiz_id, "Not found")
    previous = quiz.status
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(quiz, field, value)
    if previous != "published" and quiz.status == "published":
        announce_quiz(db, quiz, admin.id)
    db.commit()
    db.refresh(quiz)
    return quiz


@router.delete("/{quiz_id}", response_model=schemas.Message)
def delete_quiz(quiz_id: int, admin: models.User = Depends(require_admin), db: Session = Depends(get_db)):
    quiz = get_quiz_or_404(db, quiz_id, "Not found")
    db.delete(quiz)
    db.commit()
    return {"message": "Deleted"}


@router.get("/{quiz_id}/questions", response_model=List[schemas.QuestionOut])
def list_questions(quiz_id: int, admin: models.User = Depends(require_admin), db: Session = Depends(get_db)):
    return get_quiz_or_404(db, quiz_id).questions


@router.post("/{quiz_id}/questions", response_model=schemas.QuestionOut, status_code=201)
def add_question(quiz_id: int, data: schemas.QuestionIn, admin: models.User = Depends(require_admin),
                 db: Session = Depends(get_db)):
    quiz = get_quiz_or_404(db, quiz_id)
    if quiz.type == "MCQ":
        if len(data.options) < 2:
            raise HTTPException(status_code=400, detail="Options must be an array of length >= 2 for MCQ")
        if data.correct_option_index is None:
            raise HTTPException(status_code=400, detail="Correct option index is required for MCQ")
        if not 0 <= data.correct_option_index < len(data.options):
            raise HTTPException(status_code=400, detail="Correct option index is out of range")
    question = models.Question(quiz_id=quiz.id, **data.model_dump())
    db.add(question)
    db.commit()
    db.refresh(question)
    return question


@router.post("/{quiz_id}/attempts", response_model=schemas.AttemptScore, status_code=201)
def submit_attempt(quiz_id: int, submission: schemas.AttemptSubmit, student: models.User = Depends(require_student),
                   db: Session = Depends(get_db)):
    """提交答案：服务端评分并保存为最终结果"""
    ensure_feature(db, "quizzes", student)
    quiz = get_quiz_or_404(db, quiz_id)
    if quiz.status != "published":
        raise HTTPException(status_code=403, detail="Quiz not available")
    if quiz.deadline and datetime.datetime.utcnow() > quiz.deadline:
        raise HTTPException(status_code=403, detail="Quiz deadline has passed")
    if quiz.type == "SHORT_ANSWER":
        ensure_feature(db, "shortAnswerQuiz", student)
    if find_attempt(db, quiz.id, student.id):
        raise HTTPException(status_code=403, detail="You have already attempted this quiz")

    questions = list(quiz.questions)
    score, rows = scoring.grade(quiz.type, questions, submission.answers)
    total = len(questions)
    attempt = models.QuizAttempt(quiz_id=quiz.id, student_id=student.id, score=score,
                                 percentage=scoring.percentage(score, total),
                                 completed_at=datetime.datetime.utcnow())
    for question, answer, correct in rows:
        attempt.results.append(models.QuizResult(question_id=question.id,
                                                 selected_option_index=answer.selected_option_index,
                                                 answer_text=answer.answer_text, correct=correct))
    db.add(attempt)
    notify(db, "Result Published", f"You scored {score}/{total} in {quiz.title}", "result", student.id,
           to_user_id=student.id)
    db.commit()
    db.refresh(attempt)
    logger.info("Student %s scored %s/%s on quiz %s", student.id, score, total, quiz.id)
    return {"attempt_id": attempt.id, "score": score, "total": total, "percentage": attempt.percentage}


@router.get("/{quiz_id}/attempts", response_model=schemas.Page[schemas.AttemptOut])
def quiz_attempts(quiz_id: int, pager: Pagination = Depends(), admin: models.User = Depends(require_admin),
                  db: Session = Depends(get_db)):
    query = db.query(models.QuizAttempt).filter(models.QuizAttempt.quiz_id == quiz_id)
    return pager.apply(query.order_by(models.QuizAttempt.id.desc()))


@router.get("/{quiz_id}/my-attempt", response_model=schemas.MyAttemptOut)
def my_attempt(quiz_id: int, student: models.User = Depends(require_student), db: Session = Depends(get_db)):
    attempt = find_attempt(db, quiz_id, student.id)
    if not attempt:
        raise HTTPException(status_code=404, detail="No attempt found")
    out = schemas.MyAttemptOut.model_validate(attempt)
    out.quiz_results = [schemas.QuizResultOut.model_validate(r) for r in attempt.results]
    return out
