from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..features import is_locked
from ..security import get_current_user, require_admin

router = APIRouter(prefix="/feature-control", tags=["feature-control"])


def _all_flags(db: Session):
    return db.query(models.FeatureControl).order_by(models.FeatureControl.id.asc()).all()


@router.get("", response_model=schemas.ApiResponse[List[schemas.FeatureFlagOut]])
def get_feature_settings(current: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"status_code": 200, "data": _all_flags(db), "message": "Feature settings fetched successfully"}


@router.get("/status", response_model=List[schemas.FeatureFlagStatus])
def get_feature_status(current: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    """当前用户每个功能是否被锁定，前端据此显示升级提示"""
    return [
        {"feature_name": flag.feature_name, "is_premium": flag.is_premium, "label": flag.label,
         "locked": is_locked(flag.is_premium, current)}
        for flag in _all_flags(db)
    ]


@router.patch("/update", response_model=schemas.ApiResponse[schemas.FeatureFlagOut])
def update_feature_setting(data: schemas.FeatureFlagUpdate, admin: models.User = Depends(require_admin),
                           db: Session = Depends(get_db)):
    if not data.feature_name:
        raise HTTPException(status_code=400, detail="Feature name is required")
    flag = db.query(models.FeatureControl).filter(models.FeatureControl.feature_name == data.feature_name).first()
    if not flag:
        raise HTTPException(status_code=404, detail="Feature not found")
    flag.is_premium = data.is_premium
    db.commit()
    db.refresh(flag)
    return {"status_code": 200, "data": flag, "message": "Feature setting updated successfully"}
