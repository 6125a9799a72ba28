"""Read-only aggregations behind the student and admin dashboards."""
import datetime
from collections import OrderedDict

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from . import models


def student_overview(db: Session, student_id: int, limit: int = 50):
    attempts = (db.query(models.QuizAttempt)
                .filter(models.QuizAttempt.student_id == student_id)
                .order_by(models.QuizAttempt.id.desc())
                .limit(limit)
                .all())
    return [{
        "title": a.quiz_title or "Unknown Quiz",
        "score": a.score,
        "percentage": a.percentage,
        "attempted_at": a.completed_at or a.started_at,
    } for a in attempts]


def tag_accuracy(db: Session, student_id: int, column, key: str):
    """Mean of correct×100 over a student's answered questions, per tag value."""
    accuracy = func.avg(case((models.QuizResult.correct.is_(True), 100), else_=0))
    rows = (db.query(column, accuracy)
            .join(models.QuizResult, models.QuizResult.question_id == models.Question.id)
            .join(models.QuizAttempt, models.QuizAttempt.id == models.QuizResult.attempt_id)
            .filter(models.QuizAttempt.student_id == student_id, column.isnot(None))
            .group_by(column)
            .order_by(column)
            .all())
    return [{key: tag, "accuracy": round(float(value), 2)} for tag, value in rows]


def slo_accuracy(db: Session, student_id: int):
    return tag_accuracy(db, student_id, models.Question.slo_tag, "slo")


def topic_accuracy(db: Session, student_id: int):
    return tag_accuracy(db, student_id, models.Question.topic, "topic")


def system_overview(db: Session):
    return {
        "total_users": db.query(models.User).count(),
        "total_students": db.query(models.User).filter(models.User.role == "student").count(),
        "total_notes": db.query(models.Note).count(),
        "total_lectures": db.query(models.Lecture).count(),
        "total_quizzes": db.query(models.Quiz).count(),
        "total_attempts": db.query(models.QuizAttempt).count(),
    }


def top_students(db: Session, limit: int = 5):
    avg_score = func.avg(models.QuizAttempt.percentage)
    rows = (db.query(models.User.id, models.User.name, models.User.email, avg_score,
                     func.count(models.QuizAttempt.id))
            .join(models.QuizAttempt, models.QuizAttempt.student_id == models.User.id)
            .group_by(models.User.id, models.User.name, models.User.email)
            .order_by(avg_score.desc(), models.User.id.asc())
            .limit(limit)
            .all())
    return [{"id": uid, "name": name, "email": email, "avgScore": round(float(avg), 1), "attempts": count}
            for uid, name, email, avg, count in rows]


def quiz_performance(db: Session, limit: int = 10):
    attempts = func.count(models.QuizAttempt.id)
    rows = (db.query(models.Quiz.id, models.Quiz.title, func.avg(models.QuizAttempt.percentage), attempts)
            .join(models.QuizAttempt, models.QuizAttempt.quiz_id == models.Quiz.id)
            .group_by(models.Quiz.id, models.Quiz.title)
            .order_by(attempts.desc(), models.Quiz.id.asc())
            .limit(limit)
            .all())
    return [{"id": qid, "title": title, "avgScore": round(float(avg), 1), "attempts": count}
            for qid, title, avg, count in rows]


def daily_activity(db: Session, days: int = 7, now=None):
    now = now or datetime.datetime.utcnow()
    since = now - datetime.timedelta(days=days)
    stamps = (db.query(models.QuizAttempt.started_at)
              .filter(models.QuizAttempt.started_at >= since)
              .order_by(models.QuizAttempt.started_at.asc())
              .all())
    counts = OrderedDict()
    for (stamp,) in stamps:
        day = stamp.strftime("%Y-%m-%d")
        counts[day] = counts.get(day, 0) + 1
    return [{"date": day, "count": count} for day, count in counts.items()]


def admin_dashboard(db: Session):
    return {
        "topStudents": top_students(db),
        "quizPerformance": quiz_performance(db),
        "dailyActivity": daily_activity(db),
    }


def recent_activity(db: Session, per_type: int = 5, limit: int = 10):
    sources = [
        (models.Note, "notes", "Uploaded Note"),
        (models.Lecture, "lecture", "Uploaded Lecture"),
        (models.Quiz, "quiz", "Created Quiz"),
    ]
    activity = []
    for model, kind, action in sources:
        for item in db.query(model).order_by(model.created_at.desc()).limit(per_type).all():
            activity.append({"type": kind, "action": action, "item": item.title, "timestamp": item.created_at})
    activity.sort(key=lambda a: a["timestamp"], reverse=True)
    return activity[:limit]
