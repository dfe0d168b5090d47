"""Enrollment model."""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Numeric, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from coursehub.db.base import Base


class Enrollment(Base):
    """A learner's registration in a course. One row per (user, course)."""

    __tablename__ = "user_course_enrollments"
    __table_args__ = (UniqueConstraint("user_id", "course_id", name="uq_enrollment_user_course"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = Column(Uuid, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    enrollment_date = Column(DateTime, default=datetime.utcnow)
    enrollment_method = Column(String(50), default="direct_purchase")
    amount_paid = Column(Numeric(10, 2), default=0)

    # Relationships
    course = relationship("Course", back_populates="enrollments")
    user = relationship("User")
