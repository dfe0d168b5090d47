"""Course, week and module models."""
import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, Integer, Boolean, Numeric, JSON, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from coursehub.db.base import Base


class ModuleType(str, enum.Enum):
    ARTICLE = "article"
    VIDEO = "video"
    EVALUATIVE = "evaluative"
    HYPERLINK = "hyperlink"
    MARKDOWN = "markdown"


class Course(Base):
    """Course model. New courses start as drafts (is_active false)."""

    __tablename__ = "courses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(300), nullable=False)
    description = Column(Text)
    objectives = Column(JSON, default=list)
    prerequisites = Column(Text)
    total_duration = Column(Integer, default=0)  # minutes
    list_price = Column(Numeric(10, 2), default=0)
    is_active = Column(Boolean, nullable=False, default=False)
    domain = Column(String(100))
    instructor_id = Column(Uuid, ForeignKey("profiles.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    instructor = relationship("User")
    weeks = relationship("Week", back_populates="course", cascade="all, delete-orphan")
    enrollments = relationship("Enrollment", back_populates="course", cascade="all, delete-orphan")


class Week(Base):
    """Ordered grouping of modules. week_number is not unique per course."""

    __tablename__ = "weeks"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    course_id = Column(Uuid, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    week_number = Column(Integer, nullable=False)
    title = Column(String(300), nullable=False)
    description = Column(Text, default="")
    duration = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    course = relationship("Course", back_populates="weeks")
    modules = relationship("Module", back_populates="week", cascade="all, delete-orphan")


class Module(Base):
    """Smallest content unit.

    `content` holds markdown for articles and a URL (or a JSON `{"url": ...}`
    descriptor for videos) for every other type.
    """

    __tablename__ = "modules"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    week_id = Column(Uuid, ForeignKey("weeks.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(300), nullable=False)
    description = Column(Text, default="")
    module_type = Column(String(20), default=ModuleType.ARTICLE.value)
    content = Column(Text, default="")
    duration = Column(Integer, default=0)
    xp = Column(Integer, nullable=False, default=10)
    order_in_week = Column(Integer)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    week = relationship("Week", back_populates="modules")
    quizzes = relationship("Quiz", back_populates="module", cascade="all, delete-orphan")
