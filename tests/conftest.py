import os

os.environ["LMS_DATABASE_URL"] = "sqlite://"
os.environ["LMS_SEED_ON_STARTUP"] = "false"
os.environ["LMS_PUBLIC_BASE_URL"] = "http://files.lms.test"

from functools import lru_cache  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from lms import database, models  # noqa: E402
from lms.features import seed_features  # noqa: E402
from lms.main import app  # noqa: E402
from lms.security import create_access_token, hash_password  # noqa: E402

PASSWORD = "secret123"


@lru_cache(maxsize=None)
def password_hash():
    return hash_password(PASSWORD)


def create_user(name, email, role="student", is_premium=False):
    db = database.SessionLocal()
    try:
        user = models.User(name=name, email=email, role=role, is_premium=is_premium,
                           hashed_password=password_hash())
        db.add(user)
        db.commit()
        db.refresh(user)
        return {"id": user.id, "headers": {"Authorization": f"Bearer {create_access_token(user)}"}}
    finally:
        db.close()


@pytest.fixture(autouse=True)
def reset_db():
    models.Base.metadata.drop_all(bind=database.engine)
    models.Base.metadata.create_all(bind=database.engine)
    db = database.SessionLocal()
    try:
        seed_features(db)
    finally:
        db.close()
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def admin():
    return create_user("Admin", "admin@lms.com", role="admin")


@pytest.fixture
def student():
    return create_user("Sara Student", "sara@school.org")


@pytest.fixture
def premium_student():
    return create_user("Paul Premium", "paul@school.org", is_premium=True)


@pytest.fixture
def set_premium(client, admin):
    """把某个功能开关设为会员专享"""
    def _set(feature_name, is_premium=True):
        resp = client.patch("/api/feature-control/update", headers=admin["headers"],
                            json={"featureName": feature_name, "isPremium": is_premium})
        assert resp.status_code == 200
    return _set


@pytest.fixture
def hierarchy(client, admin):
    """Grade 10 / Physics with two chapters, created through the API."""
    h = admin["headers"]
    class_id = client.post("/api/classes", json={"title": "Grade 10"}, headers=h).json()["id"]
    subject_id = client.post("/api/subjects", json={"name": "Physics"}, headers=h).json()["id"]
    ch2 = client.post("/api/chapters", headers=h, json={"title": "Motion", "class_id": class_id,
                                                       "subject_id": subject_id, "order": 2}).json()
    ch1 = client.post("/api/chapters", headers=h, json={"title": "Units", "class_id": class_id,
                                                       "subject_id": subject_id, "order": 1}).json()
    return {"class_id": class_id, "subject_id": subject_id, "chapters": [ch1, ch2]}
