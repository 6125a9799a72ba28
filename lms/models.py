import datetime

from sqlalchemy import (Boolean, Column, DateTime, Float, ForeignKey, Integer, JSON, String, Text,
                        UniqueConstraint)
from sqlalchemy.orm import relationship

from .database import Base


def utcnow():
    return datetime.datetime.utcnow()


ROLES = ("student", "admin")


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, default="student", nullable=False)  # student 或 admin
    is_premium = Column(Boolean, default=False, nullable=False)
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow)


class Class(Base):
    __tablename__ = "classes"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)


class Subject(Base):
    __tablename__ = "subjects"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)


class Chapter(Base):
    __tablename__ = "chapters"
    __table_args__ = (UniqueConstraint("title", "subject_id", "class_id", name="uq_chapter_title"),)
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    order = Column(Integer, default=0, nullable=False)  # 仅用于排序，不唯一
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow)


class Note(Base):
    __tablename__ = "notes"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text)
    file_path = Column(String, nullable=True)  # 描述型笔记没有文件
    file_name = Column(String, nullable=True)
    file_type = Column(String, nullable=True)
    is_descriptive_only = Column(Boolean, default=False)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=True)
    chapter_id = Column(Integer, ForeignKey("chapters.id"), nullable=True)
    uploaded_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    approved = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)

    chapter = relationship("Chapter")


class Lecture(Base):
    __tablename__ = "lectures"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text)
    type = Column(String, nullable=False)  # file 或 link，决定 file_path / link 哪个有值
    file_path = Column(String, nullable=True)
    link = Column(String, nullable=True)
    is_premium = Column(Boolean, default=False)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=True)
    chapter_id = Column(Integer, ForeignKey("chapters.id"), nullable=True)
    uploaded_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    approved = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)

    chapter = relationship("Chapter")


class Quiz(Base):
    __tablename__ = "quizzes"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text)
    duration_minutes = Column(Integer, nullable=False)
    status = Column(String, default="draft", nullable=False)
    type = Column(String, default="MCQ", nullable=False)
    difficulty = Column(String, nullable=True)  # 只影响前端徽章
    deadline = Column(DateTime, nullable=True)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    questions = relationship("Question", backref="quiz", cascade="all, delete-orphan",
                             order_by="Question.id")


class Question(Base):
    __tablename__ = "questions"
    id = Column(Integer, primary_key=True, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id"), nullable=False)
    text = Column(Text, nullable=False)
    options = Column(JSON, default=list)  # 选项列表
    correct_option_index = Column(Integer, nullable=True)
    expected_answer = Column(Text, nullable=True)  # 简答题参考答案
    slo_tag = Column(String, nullable=True)
    topic = Column(String, nullable=True)
    difficulty = Column(String, default="medium")


class QuizAttempt(Base):
    __tablename__ = "quiz_attempts"
    id = Column(Integer, primary_key=True, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id"), nullable=False)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    score = Column(Integer, default=0)
    percentage = Column(Float, default=0)
    started_at = Column(DateTime, default=utcnow)
    completed_at = Column(DateTime, nullable=True)

    quiz = relationship("Quiz")
    student = relationship("User")
    results = relationship("QuizResult", backref="attempt", cascade="all, delete-orphan")

    @property
    def quiz_title(self):
        return self.quiz.title if self.quiz else None

    @property
    def student_name(self):
        return self.student.name if self.student else None


class QuizResult(Base):
    __tablename__ = "quiz_results"
    id = Column(Integer, primary_key=True, index=True)
    attempt_id = Column(Integer, ForeignKey("quiz_attempts.id"), nullable=False)
    question_id = Column(Integer, ForeignKey("questions.id"), nullable=False)
    selected_option_index = Column(Integer, nullable=True)
    answer_text = Column(Text, nullable=True)
    correct = Column(Boolean, nullable=False)

    question = relationship("Question")


class FeatureControl(Base):
    __tablename__ = "feature_controls"
    id = Column(Integer, primary_key=True, index=True)
    feature_name = Column(String, unique=True, nullable=False)
    is_premium = Column(Boolean, default=False)
    label = Column(String, nullable=False)


class Notification(Base):
    __tablename__ = "notifications"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    message = Column(Text)
    type = Column(String)
    to_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    to_role = Column(String, nullable=True)
    is_read = Column(Boolean, default=False)
    read_at = Column(DateTime, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow)


class ActivityLog(Base):
    __tablename__ = "activity_logs"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    action = Column(String, nullable=False)
    meta = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utcnow)


class Review(Base):
    __tablename__ = "reviews"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow)


class Book(Base):
    __tablename__ = "books"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    author = Column(String, nullable=False)
    price = Column(Float, nullable=False)
    cover_image = Column(String, nullable=True)
    category = Column(String, default="General")
    grade = Column(String, nullable=False)  # 9th / 10th / 1st-year / 2nd-year
    rating = Column(Float, default=0)
    reviews = Column(Integer, default=0)
    description = Column(Text, default="")
    features = Column(JSON, default=list)
    discount = Column(Float, default=0)
    in_stock = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
