"""Course progress aggregation.

Builds the learner-facing course view: weeks and modules in curriculum order,
per-module completion and review flags, per-week durations and completion, and
course-level totals. Every handler that needs a course-plus-progress view goes
through this module instead of re-deriving the numbers itself.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from coursehub.core.errors import NotFoundError
from coursehub.models import Course, Week, Module, Enrollment, ModuleProgress, User
from coursehub.services.reviews import get_review_store

logger = logging.getLogger(__name__)

DEFAULT_MODULE_TYPE = "Article"
UNKNOWN_INSTRUCTOR = "N/A"


def load_curriculum(db: Session, course_id: UUID) -> List[Tuple[Week, List[Module]]]:
    """Return the course's weeks with their modules, both in display order.

    Weeks sort by week_number; modules by order_in_week with null as 0. Ties
    keep arrival order (created_at, then id).
    """
    weeks = db.query(Week).filter(
        Week.course_id == course_id
    ).order_by(Week.week_number, Week.created_at, Week.id).all()

    if not weeks:
        return []

    modules = db.query(Module).filter(
        Module.week_id.in_([w.id for w in weeks])
    ).order_by(Module.created_at, Module.id).all()

    by_week: Dict[UUID, List[Module]] = {w.id: [] for w in weeks}
    for module in modules:
        by_week[module.week_id].append(module)

    return [
        (week, sorted(by_week[week.id], key=lambda m: m.order_in_week or 0))
        for week in weeks
    ]


def completion_map(db: Session, user_id: UUID, module_ids: List[UUID]) -> Dict[UUID, bool]:
    """moduleId -> completed, for the given user and modules only."""
    if not module_ids:
        return {}
    rows = db.query(ModuleProgress.module_id, ModuleProgress.completed_at).filter(
        ModuleProgress.user_id == user_id,
        ModuleProgress.module_id.in_(module_ids)
    ).all()
    return {row.module_id: row.completed_at is not None for row in rows}


def is_enrolled(db: Session, user_id: UUID, course_id: UUID) -> bool:
    return db.query(Enrollment.id).filter(
        Enrollment.user_id == user_id,
        Enrollment.course_id == course_id
    ).first() is not None


def active_learners(db: Session, course_id: UUID) -> int:
    return db.query(func.count(Enrollment.id)).filter(Enrollment.course_id == course_id).scalar() or 0


def instructor_name(db: Session, course: Course) -> str:
    if course.instructor_id is None:
        return UNKNOWN_INSTRUCTOR
    name = db.query(User.full_name).filter(User.id == course.instructor_id).scalar()
    return name or UNKNOWN_INSTRUCTOR


def build_week(week: Week, modules: List[Module], completed: Dict[UUID, bool], reviews: Dict[UUID, bool]) -> Dict[str, Any]:
    module_views = [
        {
            "id": str(m.id),
            "title": m.title,
            "type": m.module_type or DEFAULT_MODULE_TYPE,
            "duration": m.duration or 0,
            "completed": completed.get(m.id, False),
            "markedForReview": reviews.get(m.id, False),
        }
        for m in modules
    ]
    return {
        "id": str(week.id),
        "title": week.title,
        "weekNumber": week.week_number,
        "duration": sum(m.duration or 0 for m in modules),
        # a week with no modules is never complete
        "completed": bool(module_views) and all(m["completed"] for m in module_views),
        "modules": module_views,
    }


def course_view(db: Session, course_id: UUID, user_id: Optional[UUID] = None) -> Dict[str, Any]:
    """Aggregate a course and, when user_id is given, that learner's progress.

    Without a user every completion/review flag is false and `enrolled` is
    false. Raises NotFoundError when the course does not exist.
    """
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise NotFoundError("Course not found")

    curriculum = load_curriculum(db, course_id)
    module_ids = [m.id for _, modules in curriculum for m in modules]

    completed: Dict[UUID, bool] = {}
    reviews: Dict[UUID, bool] = {}
    enrolled = False
    if user_id is not None:
        completed = completion_map(db, user_id, module_ids)
        reviews = get_review_store(db).flags_for(db, user_id, module_ids)
        enrolled = is_enrolled(db, user_id, course_id)

    weeks = [build_week(week, modules, completed, reviews) for week, modules in curriculum]
    all_modules = [m for w in weeks for m in w["modules"]]
    completed_modules = [m["id"] for m in all_modules if m["completed"]]

    logger.debug("Built course view for course %s (user=%s, modules=%d)", course_id, user_id, len(all_modules))

    return {
        "title": course.title,
        "description": course.description,
        "updatedAt": course.updated_at.isoformat() if course.updated_at else None,
        "courseObjectives": course.objectives or [],
        "modulesCount": len(all_modules),
        "totalDuration": sum(w["duration"] for w in weeks),
        "modulesCompleted": len(completed_modules),
        "weeksCompleted": sum(1 for w in weeks if w["completed"]),
        "markedForReview": sum(1 for m in all_modules if m["markedForReview"]),
        "weeks": weeks,
        "instructor": instructor_name(db, course),
        "enrolled": enrolled,
        "completedModules": completed_modules,
        "activeLearners": active_learners(db, course_id),
    }


def course_completion(db: Session, user_id: UUID, course_id: UUID) -> Tuple[int, int]:
    """Return (completed_modules, total_modules) for one learner and course."""
    module_ids = [m.id for _, modules in load_curriculum(db, course_id) for m in modules]
    completed = completion_map(db, user_id, module_ids)
    return sum(1 for done in completed.values() if done), len(module_ids)


def progress_percentage(completed: int, total: int) -> int:
    if total <= 0:
        return 0
    return round(completed / total * 100)
