import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..config import settings
from ..database import get_db
from ..plans import is_premium_plan, list_plans, normalize_plan
from ..security import create_access_token, get_current_user, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])
plans_router = APIRouter(tags=["auth"])


def email_taken(db: Session, email: str, exclude_id=None) -> bool:
    query = db.query(models.User).filter(models.User.email == email)
    if exclude_id is not None:
        query = query.filter(models.User.id != exclude_id)
    return query.first() is not None


@router.get("/signup-roles")
def signup_roles():
    if settings.allow_admin_signup:
        return list(models.ROLES)
    return ["student"]


@router.post("/register", response_model=schemas.TokenOut, status_code=status.HTTP_201_CREATED)
def register(user_in: schemas.RegisterIn, db: Session = Depends(get_db)):
    """用户注册"""
    # 公开注册默认允许选择管理员角色，生产环境应通过 LMS_ALLOW_ADMIN_SIGNUP 关闭
    if user_in.role == "admin" and not settings.allow_admin_signup:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin signup is disabled")
    if email_taken(db, user_in.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")
    user = models.User(name=user_in.name, email=user_in.email,
                       hashed_password=hash_password(user_in.password), role=user_in.role)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s (%s)", user.id, user.role)
    return {"token": create_access_token(user), "user": user}


@router.post("/login", response_model=schemas.TokenOut)
def login(credentials: schemas.LoginIn, db: Session = Depends(get_db)):
    """用户登录"""
    user = db.query(models.User).filter(models.User.email == credentials.email).first()
    if not user or not verify_password(credentials.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return {"token": create_access_token(user), "user": user}


@router.get("/me", response_model=schemas.UserOut)
def me(current: models.User = Depends(get_current_user)):
    return current


@router.put("/profile")
def update_profile(data: schemas.ProfileUpdate, current: models.User = Depends(get_current_user),
                   db: Session = Depends(get_db)):
    if email_taken(db, data.email, exclude_id=current.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")
    current.name = data.name
    current.email = data.email
    db.commit()
    db.refresh(current)
    return {"message": "Profile updated successfully",
            "user": schemas.UserOut.model_validate(current).model_dump(by_alias=True)}


@router.put("/password", response_model=schemas.Message)
def change_password(data: schemas.PasswordChange, current: models.User = Depends(get_current_user),
                    db: Session = Depends(get_db)):
    if not verify_password(data.old_password, current.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Current password is incorrect")
    current.hashed_password = hash_password(data.new_password)
    db.commit()
    return {"message": "Password changed successfully"}


@router.post("/checkout", response_model=schemas.CheckoutOut, status_code=status.HTTP_201_CREATED)
def checkout(order: schemas.CheckoutIn, db: Session = Depends(get_db)):
    """演示模式的结账：创建学生账号并按套餐设置会员，不处理任何支付信息"""
    plan = normalize_plan(order.plan)
    if plan is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid plan selected")
    if email_taken(db, order.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")
    user = models.User(name=order.name, email=order.email, hashed_password=hash_password(order.password),
                       role="student", is_premium=is_premium_plan(plan))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Checkout completed for user %s, plan=%s cycle=%s premium=%s",
                user.id, plan, order.billing_cycle, user.is_premium)
    return {"message": "Account created successfully", "token": create_access_token(user), "user": user}


@plans_router.get("/plans", response_model=List[schemas.PlanOut])
def get_plans(billingCycle: str = "monthly"):
    return list_plans(billingCycle)
