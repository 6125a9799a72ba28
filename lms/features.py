"""Premium feature gate.

A feature is locked for a caller when its flag is premium, the caller is not
premium and the caller is not an admin. Anonymous callers are treated as
non-premium students.

What happens when the flag cannot be resolved (no row, or the lookup itself
fails) is decided by ``settings.feature_gate_fail_open``.
"""
import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .config import settings
from .database import get_db
from .security import get_optional_user

logger = logging.getLogger(__name__)

DEFAULT_FEATURES = [
    {"feature_name": "notes", "label": "Notes"},
    {"feature_name": "quizzes", "label": "Quizzes"},
    {"feature_name": "shortAnswerQuiz", "label": "Short Answer Quiz"},
    {"feature_name": "conceptMasterAi", "label": "Concept Master AI"},
]

UPGRADE_MESSAGES = {
    "notes": "This is a premium feature. Please upgrade to access notes.",
    "quizzes": "This is a premium feature. Please upgrade to access quizzes.",
    "shortAnswerQuiz": "This is a premium feature. Please upgrade to access Short Answer quizzes.",
}


def is_admin(user) -> bool:
    return user is not None and user.role == "admin"


def is_locked(flag_is_premium: bool, user) -> bool:
    if is_admin(user):
        return False
    user_premium = bool(user is not None and user.is_premium)
    return bool(flag_is_premium) and not user_premium


def check_feature_access(db: Session, feature_name: str, user) -> bool:
    if is_admin(user):
        return True
    try:
        flag = db.query(models.FeatureControl).filter(models.FeatureControl.feature_name == feature_name).first()
    except SQLAlchemyError:
        logger.exception("Feature lookup failed for %s, fail_open=%s", feature_name, settings.feature_gate_fail_open)
        return settings.feature_gate_fail_open
    if flag is None:
        logger.warning("No feature control for %s, fail_open=%s", feature_name, settings.feature_gate_fail_open)
        return settings.feature_gate_fail_open
    return not is_locked(flag.is_premium, user)


def premium_required(feature_name: str) -> HTTPException:
    message = UPGRADE_MESSAGES.get(feature_name, "This is a premium feature. Please upgrade to access it.")
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                         detail={"message": message, "code": "PREMIUM_REQUIRED"})


def ensure_feature(db: Session, feature_name: str, user: Optional[models.User]):
    if not check_feature_access(db, feature_name, user):
        logger.info("Premium gate denied %s to user %s", feature_name, getattr(user, "id", None))
        raise premium_required(feature_name)


def require_feature(feature_name: str):
    def checker(db: Session = Depends(get_db), user: Optional[models.User] = Depends(get_optional_user)):
        ensure_feature(db, feature_name, user)
        return user
    return checker


def seed_features(db: Session) -> int:
    created = 0
    for feature in DEFAULT_FEATURES:
        exists = db.query(models.FeatureControl).filter(
            models.FeatureControl.feature_name == feature["feature_name"]).first()
        if not exists:
            db.add(models.FeatureControl(**feature))
            created += 1
    db.commit()
    return created
