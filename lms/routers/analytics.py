from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import analytics, models, schemas
from ..database import get_db
from ..security import require_admin, require_student

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/student/overview")
def student_overview(student: models.User = Depends(require_student), db: Session = Depends(get_db)):
    return {"attempts": analytics.student_overview(db, student.id)}


@router.get("/student/slo-accuracy")
def slo_accuracy(student: models.User = Depends(require_student), db: Session = Depends(get_db)):
    return analytics.slo_accuracy(db, student.id)


@router.get("/student/topic-accuracy")
def topic_accuracy(student: models.User = Depends(require_student), db: Session = Depends(get_db)):
    return analytics.topic_accuracy(db, student.id)


@router.get("/system/overview", response_model=schemas.SystemOverview)
def system_overview(admin: models.User = Depends(require_admin), db: Session = Depends(get_db)):
    return analytics.system_overview(db)
