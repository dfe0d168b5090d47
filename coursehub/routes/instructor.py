"""Instructor routes: course management, curriculum authoring, quizzes and grading."""
import math
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy import func
from sqlalchemy.orm import Session

from coursehub.db.sessions import get_db
from coursehub.models import User, Course, Week, Module, Enrollment
from coursehub.core.errors import ConflictError
from coursehub.core.security import require_instructor
from coursehub.services import content_assembler, quizzes
from coursehub.services.progress_aggregator import instructor_name
from coursehub.services.quiz_reconciler import course_submissions
from coursehub.utils.content import duration_label


router = APIRouter(prefix="/instructor", tags=["Instructor"], dependencies=[Depends(require_instructor)])


# Request/Response schemas
class CreateCourseRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    total_duration: Optional[int] = Field(default=None, ge=0)
    prerequisites: Optional[str] = None
    objectives: Optional[List[str]] = None
    list_price: Optional[float] = Field(default=None, ge=0)
    domain: Optional[str] = None
    instructor: Optional[uuid.UUID] = None


class UpdateCourseRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    total_duration: Optional[int] = Field(default=None, ge=0)
    prerequisites: Optional[str] = None
    objectives: Optional[List[str]] = None
    list_price: Optional[float] = Field(default=None, ge=0)
    domain: Optional[str] = None
    is_active: Optional[bool] = None


class ContentRequest(BaseModel):
    type: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class GradeRequest(BaseModel):
    score: float = Field(allow_inf_nan=False)
    instructor_feedback: Optional[str] = Field(default=None, alias="instructorFeedback")

    class Config:
        populate_by_name = True


def _get_course(db: Session, course_id: uuid.UUID) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    return course


def _enrollment_count(db: Session, course_id: uuid.UUID) -> int:
    return db.query(func.count(Enrollment.id)).filter(Enrollment.course_id == course_id).scalar() or 0


def _course_row(course: Course) -> Dict[str, Any]:
    return {
        "id": str(course.id),
        "title": course.title,
        "description": course.description,
        "total_duration": course.total_duration or 0,
        "prerequisites": course.prerequisites or "",
        "objectives": course.objectives or [],
        "list_price": float(course.list_price or 0),
        "is_active": bool(course.is_active),
        "domain": course.domain,
        "instructor_id": str(course.instructor_id) if course.instructor_id else None,
        "created_at": course.created_at.isoformat() if course.created_at else None,
        "updated_at": course.updated_at.isoformat() if course.updated_at else None,
    }


@router.get("/dashboard")
def dashboard(db: Session = Depends(get_db)):
    """Headline counts, recent courses and per-course enrollment counts."""
    enrollment_counts = {
        str(course_id): count
        for course_id, count in db.query(Enrollment.course_id, func.count(Enrollment.id)).group_by(Enrollment.course_id).all()
    }
    recent = db.query(Course).order_by(Course.created_at.desc()).limit(5).all()

    return {
        "stats": {
            "totalCourses": db.query(func.count(Course.id)).scalar() or 0,
            "activeCourses": db.query(func.count(Course.id)).filter(Course.is_active.is_(True)).scalar() or 0,
            "totalStudents": db.query(func.count(User.id)).scalar() or 0,
            "totalEnrollments": db.query(func.count(Enrollment.id)).scalar() or 0,
        },
        "recentCourses": [
            {
                "id": str(course.id),
                "title": course.title,
                "created_at": course.created_at.isoformat() if course.created_at else None,
                "is_active": bool(course.is_active),
                "instructor": instructor_name(db, course),
                "enrollments": enrollment_counts.get(str(course.id), 0),
            }
            for course in recent
        ],
        "courseEnrollmentCounts": enrollment_counts,
    }


@router.get("/courses")
def list_courses(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    search: str = "",
    status_filter: str = Query(default="", alias="status"),
    db: Session = Depends(get_db)
):
    """List courses, newest first, with optional title search and status filter."""
    query = db.query(Course)
    if search:
        query = query.filter(Course.title.ilike(f"%{search}%"))
    if status_filter == "active":
        query = query.filter(Course.is_active.is_(True))
    elif status_filter == "inactive":
        query = query.filter(Course.is_active.is_(False))

    total = query.count()
    courses = query.order_by(Course.created_at.desc()).offset((page - 1) * limit).limit(limit).all()

    week_counts = dict(
        db.query(Week.course_id, func.count(Week.id)).group_by(Week.course_id).all()
    )
    module_counts = dict(
        db.query(Week.course_id, func.count(Module.id))
        .join(Module, Module.week_id == Week.id)
        .group_by(Week.course_id)
        .all()
    )

    return {
        "courses": [
            {
                "id": str(course.id),
                "title": course.title,
                "description": course.description,
                "instructor": instructor_name(db, course),
                "status": "active" if course.is_active else "inactive",
                "weeks": week_counts.get(course.id, 0),
                "modules": module_counts.get(course.id, 0),
                "attendees": _enrollment_count(db, course.id),
                "created_at": course.created_at.isoformat() if course.created_at else None,
                "updated_at": course.updated_at.isoformat() if course.updated_at else None,
                "list_price": float(course.list_price or 0),
            }
            for course in courses
        ],
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": math.ceil(total / limit),
        },
    }


@router.post("/courses", status_code=status.HTTP_201_CREATED)
def create_course(
    request: CreateCourseRequest,
    current_user: User = Depends(require_instructor),
    db: Session = Depends(get_db)
):
    """Create a draft course. Title and description are required."""
    if not request.title or not request.description:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title and description are required")

    course = Course(
        title=request.title,
        description=request.description,
        total_duration=request.total_duration or 0,
        prerequisites=request.prerequisites or "",
        objectives=request.objectives or [],
        list_price=request.list_price or 0,
        domain=request.domain,
        instructor_id=request.instructor or current_user.id,
        is_active=False,
    )
    db.add(course)
    db.commit()
    db.refresh(course)

    return {"message": "Course created successfully", "course": _course_row(course)}


@router.get("/courses/{course_id}")
def get_course(course_id: uuid.UUID, db: Session = Depends(get_db)):
    course = _get_course(db, course_id)
    return {
        "id": str(course.id),
        "name": course.title,
        "description": course.description,
        "totalDuration": course.total_duration or 0,
        "duration": duration_label(course.total_duration),
        "attendees": _enrollment_count(db, course.id),
        "prereq": course.prerequisites or "None",
        "badge_name": f"{course.title} Expert",
        "status": "active" if course.is_active else "draft",
        "domain": course.domain,
        "date_created": course.created_at.isoformat() if course.created_at else None,
        "date_updated": course.updated_at.isoformat() if course.updated_at else None,
        "instructor": instructor_name(db, course),
        "list_price": float(course.list_price or 0),
        "objectives": course.objectives or [],
    }


@router.put("/courses/{course_id}")
def update_course(course_id: uuid.UUID, request: UpdateCourseRequest, db: Session = Depends(get_db)):
    """Partial update; fields left out of the body are unchanged."""
    course = _get_course(db, course_id)
    for field, value in request.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(course, field, value)
    course.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(course)
    return {"message": "Course updated successfully", "course": _course_row(course)}


@router.delete("/courses/{course_id}")
def delete_course(course_id: uuid.UUID, db: Session = Depends(get_db)):
    course = _get_course(db, course_id)
    if _enrollment_count(db, course_id) > 0:
        raise ConflictError("Cannot delete course with active enrollments")
    db.delete(course)
    db.commit()
    return {"message": "Course deleted successfully"}


@router.get("/courses/{course_id}/content")
def get_course_content(course_id: uuid.UUID, db: Session = Depends(get_db)):
    """Curriculum tree (course, weeks, modules) for authoring."""
    return content_assembler.course_content(db, course_id)


@router.post("/courses/{course_id}/content", status_code=status.HTTP_201_CREATED)
def create_course_content(course_id: uuid.UUID, request: ContentRequest, db: Session = Depends(get_db)):
    """Create a week or a module: `{"type": "week"|"module", "data": {...}}`."""
    return content_assembler.create_content(db, course_id, request.type, request.data)


@router.put("/courses/{course_id}/content")
def update_course_content(course_id: uuid.UUID, request: ContentRequest, db: Session = Depends(get_db)):
    """Partially update a week or a module identified by `data.id`."""
    return content_assembler.update_content(db, course_id, request.type, request.data)


@router.get("/quizzes/{course_id}")
def list_quizzes(course_id: uuid.UUID, db: Session = Depends(get_db)):
    return {"quizzes": quizzes.list_course_quizzes(db, course_id)}


@router.post("/quizzes/{course_id}", status_code=status.HTTP_201_CREATED)
def create_quiz(course_id: uuid.UUID, body: Dict[str, Any], db: Session = Depends(get_db)):
    """
    Create a quiz on one of the course's modules.

    Body: `{title, moduleId, questions: [{text, type, options, correctAnswer}]}`.
    """
    return {"quiz": quizzes.create_quiz(db, course_id, body)}


@router.get("/quizzes/{course_id}/submissions")
def list_submissions(course_id: uuid.UUID, quizId: Optional[uuid.UUID] = None, db: Session = Depends(get_db)):
    """Submissions for the course's live quizzes, newest first."""
    return {"submissions": course_submissions(db, course_id, quizId)}


@router.put("/quizzes/{course_id}/submissions/{submission_id}")
def grade_submission(course_id: uuid.UUID, submission_id: uuid.UUID, request: GradeRequest, db: Session = Depends(get_db)):
    return {
        "submission": quizzes.grade_submission(db, course_id, submission_id, request.score, request.instructor_feedback)
    }


@router.put("/quizzes/{course_id}/{quiz_id}")
def update_quiz(course_id: uuid.UUID, quiz_id: uuid.UUID, body: Dict[str, Any], db: Session = Depends(get_db)):
    return {"quiz": quizzes.update_quiz(db, course_id, quiz_id, body)}


@router.delete("/quizzes/{course_id}/{quiz_id}")
def delete_quiz(course_id: uuid.UUID, quiz_id: uuid.UUID, db: Session = Depends(get_db)):
    """Soft delete: the quiz disappears from every listing but its rows stay."""
    quizzes.delete_quiz(db, course_id, quiz_id)
    return {"message": "Quiz deleted successfully"}
