import logging

from sqlalchemy.orm import Session

from . import models
from .features import seed_features
from .security import hash_password

logger = logging.getLogger(__name__)

ADMIN_EMAIL = "admin@lms.com"
ADMIN_PASSWORD = "admin123"
INITIAL_CLASSES = ["Class 9", "Class 10", "Class 11", "Class 12"]


def seed_admin(db: Session) -> bool:
    if db.query(models.User).filter(models.User.email == ADMIN_EMAIL).first():
        return False
    db.add(models.User(name="System Administrator", email=ADMIN_EMAIL,
                       hashed_password=hash_password(ADMIN_PASSWORD), role="admin"))
    db.commit()
    logger.info("Admin account %s created", ADMIN_EMAIL)
    return True


def seed_classes(db: Session) -> int:
    if db.query(models.Class).count() > 0:
        return 0
    for title in INITIAL_CLASSES:
        db.add(models.Class(title=title))
    db.commit()
    logger.info("Seeded %d classes", len(INITIAL_CLASSES))
    return len(INITIAL_CLASSES)


def seed_all(db: Session):
    seed_admin(db)
    seed_classes(db)
    created = seed_features(db)
    if created:
        logger.info("Initialized %d feature controls", created)
