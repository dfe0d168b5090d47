"""Learner profile routes."""
import uuid
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from coursehub.db.sessions import get_db
from coursehub.models import User, Course, Enrollment
from coursehub.services.progress_aggregator import course_completion


router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("")
def get_profile(id: Optional[uuid.UUID] = None, db: Session = Depends(get_db)):
    if id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing user ID")

    user = db.query(User).filter(User.id == id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return {
        "full_name": user.full_name,
        "role": user.role,
        "email": user.email,
        "xp": user.xp,
        "created_at": user.created_at.isoformat() if user.created_at else None,
        "photo_url": user.photo_url,
    }


@router.get("/{user_id}/courses")
def get_profile_courses(user_id: uuid.UUID, db: Session = Depends(get_db)):
    """
    Enrolled courses split into current and completed.

    A course is completed once it has at least one module and every module is
    completed.
    """
    courses = db.query(Course).join(Enrollment, Enrollment.course_id == Course.id).filter(
        Enrollment.user_id == user_id
    ).order_by(Course.title).all()

    current_courses = []
    completed_courses = []
    for course in courses:
        completed, total = course_completion(db, user_id, course.id)
        is_completed = total > 0 and completed == total
        entry = {
            "id": str(course.id),
            "title": course.title,
            "description": course.description,
            "course_status": "completed" if is_completed else "current",
        }
        (completed_courses if is_completed else current_courses).append(entry)

    return {"currentCourses": current_courses, "completedCourses": completed_courses}
