import datetime
from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar, Union

from pydantic import AliasChoices, BaseModel, EmailStr, Field, computed_field, field_validator

from .hierarchy import asset_url

T = TypeVar("T")


def to_naive_utc(value):
    """数据库里统一存无时区的 UTC 时间"""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return value


def camel(alias: str, default: Any = ..., **kwargs):
    """接口字段使用原有的驼峰名，模型内部用下划线名"""
    snake = "".join("_" + c.lower() if c.isupper() else c for c in alias)
    return Field(default, validation_alias=AliasChoices(alias, snake),
                 serialization_alias=alias, **kwargs)


class Page(BaseModel, Generic[T]):
    total: int
    page: int
    limit: int
    data: List[T]


class Message(BaseModel):
    message: str


# --- 用户与认证 ---

class UserOut(BaseModel):
    id: int
    name: str
    email: str
    role: str
    is_premium: bool = camel("isPremium", False)
    class_id: Optional[int] = None
    created_at: Optional[datetime.datetime] = None

    class Config:
        from_attributes = True


class RegisterIn(BaseModel):
    name: str = Field(..., min_length=2, max_length=120)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=120)
    role: Literal["student", "admin"] = "student"

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.strip().lower()


class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=120)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.strip().lower()


class TokenOut(BaseModel):
    token: str
    user: UserOut


class ProfileUpdate(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.strip().lower()


class PasswordChange(BaseModel):
    old_password: str = camel("oldPassword", min_length=1)
    new_password: str = camel("newPassword", min_length=6)


class CheckoutIn(BaseModel):
    # 只接收账号与套餐信息，银行卡字段即使提交也会被丢弃
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1)
    plan: str = Field(..., min_length=1)
    billing_cycle: Literal["monthly", "yearly"] = camel("billingCycle", "monthly")

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.strip().lower()


class CheckoutOut(TokenOut):
    message: str


class PlanOut(BaseModel):
    id: str
    name: str
    price: int
    price_label: str = camel("priceLabel")
    period: str
    billing_cycle: str = camel("billingCycle")
    description: str
    features: List[str]
    popular: bool = False
    premium: bool = False


class AdminUserCreate(RegisterIn):
    pass


class RoleUpdate(BaseModel):
    role: Literal["student", "admin"]


class PremiumToggleOut(BaseModel):
    user: UserOut
    token: str
    message: str


# --- 内容层级：班级 / 科目 / 章节 ---

class ClassIn(BaseModel):
    title: str = Field(..., min_length=1)


class ClassUpdate(BaseModel):
    title: Optional[str] = None


class ClassOut(BaseModel):
    id: int
    title: str

    class Config:
        from_attributes = True


class SubjectIn(BaseModel):
    name: str = Field(..., min_length=1)


class SubjectUpdate(BaseModel):
    name: Optional[str] = None


class SubjectOut(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class ChapterIn(BaseModel):
    title: str = Field(..., min_length=1)
    class_id: int
    subject_id: int
    order: int = 0


class ChapterUpdate(BaseModel):
    title: Optional[str] = None
    order: Optional[int] = None


class ChapterOut(BaseModel):
    id: int
    title: str
    order: int
    class_id: int
    subject_id: int
    created_at: Optional[datetime.datetime] = None

    class Config:
        from_attributes = True


# --- 笔记与讲座 ---

class NoteIn(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    class_id: Optional[int] = None
    subject_id: Optional[int] = None
    chapter_id: Optional[int] = None
    file_path: Optional[str] = None
    file_name: Optional[str] = None


class NoteOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    file_path: Optional[str] = None
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    is_descriptive_only: bool = False
    class_id: Optional[int] = None
    subject_id: Optional[int] = None
    chapter_id: Optional[int] = None
    uploaded_by: int
    approved: bool
    created_at: Optional[datetime.datetime] = None

    class Config:
        from_attributes = True

    @computed_field
    @property
    def file_url(self) -> Optional[str]:
        return asset_url(self.file_path)


class NoteCreated(BaseModel):
    message: str
    note: NoteOut


class ApproveIn(BaseModel):
    approved: bool


class LectureIn(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    type: Literal["file", "link"]
    file_path: Optional[str] = None
    link: Optional[str] = None
    is_premium: bool = camel("isPremium", False)
    class_id: Optional[int] = None
    subject_id: Optional[int] = None
    chapter_id: Optional[int] = None


class LectureOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    type: str
    file_path: Optional[str] = None
    link: Optional[str] = None
    is_premium: bool = camel("isPremium", False)
    class_id: Optional[int] = None
    subject_id: Optional[int] = None
    chapter_id: Optional[int] = None
    uploaded_by: int
    approved: bool
    created_at: Optional[datetime.datetime] = None

    class Config:
        from_attributes = True

    @computed_field
    @property
    def file_url(self) -> Optional[str]:
        return asset_url(self.file_path)


# --- 测验 ---

QuizStatus = Literal["draft", "published", "archived"]
QuizType = Literal["MCQ", "SHORT_ANSWER"]


class QuizIn(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    duration_minutes: int = Field(..., gt=0)
    status: QuizStatus = "draft"
    type: QuizType = "MCQ"
    difficulty: Optional[str] = None
    deadline: Optional[datetime.datetime] = None
    class_id: Optional[int] = None
    subject_id: Optional[int] = None

    @field_validator("deadline")
    @classmethod
    def naive_deadline(cls, v):
        return to_naive_utc(v)


class QuizUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    duration_minutes: Optional[int] = Field(None, gt=0)
    status: Optional[QuizStatus] = None
    difficulty: Optional[str] = None
    deadline: Optional[datetime.datetime] = None
    class_id: Optional[int] = None
    subject_id: Optional[int] = None

    @field_validator("title", "duration_minutes", "status")
    @classmethod
    def not_null(cls, v):
        # 省略表示不修改，显式 null 不允许
        if v is None:
            raise ValueError("may not be null")
        return v

    @field_validator("deadline")
    @classmethod
    def naive_deadline(cls, v):
        return to_naive_utc(v)


class QuizOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    duration_minutes: int
    status: str
    type: str
    difficulty: Optional[str] = None
    deadline: Optional[datetime.datetime] = None
    class_id: Optional[int] = None
    subject_id: Optional[int] = None
    created_by: int
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None

    class Config:
        from_attributes = True


class QuestionIn(BaseModel):
    text: str = Field(..., min_length=1)
    options: List[str] = []
    correct_option_index: Optional[int] = None
    expected_answer: Optional[str] = None
    slo_tag: Optional[str] = None
    topic: Optional[str] = None
    difficulty: Literal["easy", "medium", "hard"] = "medium"


class QuestionPublic(BaseModel):
    """学生看到的题目，不含答案"""
    id: int
    text: str
    options: List[str] = []
    slo_tag: Optional[str] = None
    topic: Optional[str] = None
    difficulty: Optional[str] = None

    class Config:
        from_attributes = True


class QuestionOut(QuestionPublic):
    quiz_id: int
    correct_option_index: Optional[int] = None
    expected_answer: Optional[str] = None


class AttemptOut(BaseModel):
    id: int
    quiz_id: int
    student_id: int
    score: int
    percentage: float
    started_at: Optional[datetime.datetime] = None
    completed_at: Optional[datetime.datetime] = None
    quiz_title: Optional[str] = None
    student_name: Optional[str] = None

    class Config:
        from_attributes = True


class QuizDetail(QuizOut):
    # 管理员拿到带答案的题目，学生只拿到题面
    questions: Optional[List[Union[QuestionOut, QuestionPublic]]] = None
    attempt_status: Optional[Literal["not_started", "completed"]] = None
    attempt: Optional[AttemptOut] = None


class AnswerIn(BaseModel):
    question_id: int
    selected_option_index: Optional[int] = None
    answer_text: Optional[str] = None


class AttemptSubmit(BaseModel):
    answers: List[AnswerIn] = []


class AttemptScore(BaseModel):
    attempt_id: int
    score: int
    total: int
    percentage: float


class QuizResultOut(BaseModel):
    id: int
    question_id: int
    selected_option_index: Optional[int] = None
    answer_text: Optional[str] = None
    correct: bool
    question: Optional[QuestionOut] = None

    class Config:
        from_attributes = True


class AttemptDetail(BaseModel):
    attempt: AttemptOut
    quiz_results: List[QuizResultOut]


class MyAttemptOut(AttemptOut):
    quiz_results: List[QuizResultOut] = []


# --- 功能开关 ---

class FeatureFlagOut(BaseModel):
    feature_name: str = camel("featureName")
    is_premium: bool = camel("isPremium", False)
    label: str

    class Config:
        from_attributes = True


class FeatureFlagUpdate(BaseModel):
    feature_name: Optional[str] = camel("featureName", None)
    is_premium: bool = camel("isPremium")


class FeatureFlagStatus(FeatureFlagOut):
    locked: bool


class ApiResponse(BaseModel, Generic[T]):
    status_code: int = camel("statusCode", 200)
    data: T
    message: str
    success: bool = True


# --- 通知 ---

class NotificationIn(BaseModel):
    title: str = Field(..., min_length=1)
    message: Optional[str] = None
    type: Optional[str] = None
    to_user_id: Optional[int] = None
    to_role: Optional[Literal["student", "admin"]] = None


class NotificationOut(BaseModel):
    id: int
    title: str
    message: Optional[str] = None
    type: Optional[str] = None
    to_user_id: Optional[int] = None
    to_role: Optional[str] = None
    is_read: bool
    read_at: Optional[datetime.datetime] = None
    created_by: int
    created_at: Optional[datetime.datetime] = None

    class Config:
        from_attributes = True


# --- 评价 ---

class ReviewIn(BaseModel):
    name: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1)


class ReviewOut(BaseModel):
    id: int
    name: str
    rating: int
    comment: str
    created_at: Optional[datetime.datetime] = None

    class Config:
        from_attributes = True


# --- 图书 ---

BookGrade = Literal["9th", "10th", "1st-year", "2nd-year"]


class BookIn(BaseModel):
    title: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    cover_image: Optional[str] = camel("coverImage", None)
    category: str = "General"
    grade: BookGrade
    rating: float = Field(0, ge=0, le=5)
    reviews: int = Field(0, ge=0)
    description: str = ""
    features: List[str] = []
    discount: float = Field(0, ge=0, le=100)
    in_stock: bool = camel("inStock", True)


class BookUpdate(BaseModel):
    title: Optional[str] = None
    author: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    cover_image: Optional[str] = camel("coverImage", None)
    category: Optional[str] = None
    grade: Optional[BookGrade] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    reviews: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None
    features: Optional[List[str]] = None
    discount: Optional[float] = Field(None, ge=0, le=100)
    in_stock: Optional[bool] = camel("inStock", None)

    @field_validator("title", "author", "price", "category", "grade", "rating", "reviews", "features",
                     "discount", "in_stock")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class BookOut(BaseModel):
    id: int
    title: str
    author: str
    price: float
    cover_image: Optional[str] = camel("coverImage", None)
    category: Optional[str] = None
    grade: str
    rating: float = 0
    reviews: int = 0
    description: Optional[str] = None
    features: List[str] = []
    discount: float = 0
    in_stock: bool = camel("inStock", True)
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None

    class Config:
        from_attributes = True

    @computed_field
    @property
    def cover_url(self) -> Optional[str]:
        return asset_url(self.cover_image)


# --- 统计面板 ---

class ActivityItem(BaseModel):
    type: str
    action: str
    item: str
    timestamp: datetime.datetime


class ActivityLogOut(BaseModel):
    id: int
    user_id: int
    action: str
    meta: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime.datetime] = None

    class Config:
        from_attributes = True


class SystemOverview(BaseModel):
    total_users: int
    total_students: int
    total_notes: int
    total_lectures: int
    total_quizzes: int
    total_attempts: int
