"""Learner-facing course routes."""
import uuid
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy import func
from sqlalchemy.orm import Session

from coursehub.db.sessions import get_db
from coursehub.models import Course, Week, Module, Enrollment
from coursehub.services import enrollment
from coursehub.services.progress_aggregator import (
    active_learners,
    course_completion,
    course_view,
    progress_percentage,
)


router = APIRouter(prefix="/courses", tags=["Courses"])


class EnrollRequest(BaseModel):
    user_id: Optional[uuid.UUID] = Field(default=None, alias="userId")

    class Config:
        populate_by_name = True


@router.get("")
def list_courses(userId: Optional[uuid.UUID] = None, db: Session = Depends(get_db)):
    """
    Split the active catalog into the learner's enrolled and available courses.

    Enrolled courses carry a completion percentage. Without `userId` every
    course is available.
    """
    counts = dict(
        db.query(Week.course_id, func.count(Module.id))
        .join(Module, Module.week_id == Week.id)
        .group_by(Week.course_id)
        .all()
    )
    courses = db.query(Course).filter(Course.is_active.is_(True)).order_by(Course.title).all()

    enrolled_ids = set()
    if userId is not None:
        enrolled_ids = {
            row.course_id
            for row in db.query(Enrollment.course_id).filter(Enrollment.user_id == userId).all()
        }

    enrolled_courses = []
    available_courses = []
    for course in courses:
        course_data = {
            "id": str(course.id),
            "title": course.title,
            "modules": counts.get(course.id, 0),
            "total_duration": course.total_duration or 0,
        }
        if course.id in enrolled_ids:
            completed, total = course_completion(db, userId, course.id)
            course_data["progress"] = progress_percentage(completed, total)
            enrolled_courses.append(course_data)
        else:
            available_courses.append(course_data)

    return {"enrolledCourses": enrolled_courses, "availableCourses": available_courses}


@router.get("/{course_id}")
def get_course(course_id: uuid.UUID, userId: Optional[uuid.UUID] = None, db: Session = Depends(get_db)):
    """
    Course structure with the learner's completion and review state.

    Returns 404 if the course does not exist.
    """
    return course_view(db, course_id, userId)


@router.post("/{course_id}/enroll")
def enroll_in_course(course_id: uuid.UUID, request: Optional[EnrollRequest] = None, db: Session = Depends(get_db)):
    """
    Enroll a learner. Idempotent: a second call reports "Already enrolled".
    """
    if request is None or request.user_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing userId")

    if enrollment.enroll(db, course_id, request.user_id):
        return JSONResponse(status_code=status.HTTP_201_CREATED, content={"message": "Enrolled successfully"})
    return {"message": "Already enrolled"}


@router.get("/{course_id}/learners")
def get_active_learners(course_id: uuid.UUID, db: Session = Depends(get_db)):
    return {"activeLearners": active_learners(db, course_id)}
