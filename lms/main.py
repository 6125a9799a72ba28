import logging
import os

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware

# 导入本地模块
from . import database, models
from .config import settings
from .routers import (admin, analytics, auth, books, chapters, classes, feature_control, lectures, notes,
                      notifications, quizzes, results, reviews, subjects)
from .seed import seed_all

logging.basicConfig(level=settings.log_level.upper(),
                    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)

# 必须在接口之前配置跨域，否则前端无法访问
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 自动创建数据库表结构
models.Base.metadata.create_all(bind=database.engine)


# --- 1. 统一错误格式：{"message": ...} ---

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    body = exc.detail if isinstance(exc.detail, dict) else {"message": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", message)
    return JSONResponse(status_code=400, content={"message": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Server Error"})


# --- 2. 启动初始化：管理员、班级、功能开关 ---

@app.on_event("startup")
def startup_event():
    os.makedirs(settings.uploads_dir, exist_ok=True)
    if not settings.seed_on_startup:
        return
    db = database.SessionLocal()
    try:
        seed_all(db)
    finally:
        db.close()


# --- 3. 接口 ---

api = APIRouter(prefix="/api")


@api.get("/health", tags=["health"])
def health():
    return {"status": "ok"}


for module in (auth, classes, subjects, chapters, notes, lectures, quizzes, results, notifications,
               feature_control, reviews, books, analytics, admin):
    api.include_router(module.router)
api.include_router(auth.plans_router)

app.include_router(api)

# 上传文件由同一个源提供访问，file_url 也基于该源拼接
app.mount("/uploads", StaticFiles(directory=settings.uploads_dir, check_dir=False), name="uploads")


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
