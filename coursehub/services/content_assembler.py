"""Instructor-facing curriculum assembly and authoring.

The curriculum view is independent of any learner's progress. Module content
is split by type on every read and write: articles carry their body in
`markdownContent`, every other type carries a URL in `contentUrl`.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from coursehub.core.errors import NotFoundError, ValidationError, require_fields
from coursehub.models import Course, Week, Module, Quiz
from coursehub.services.progress_aggregator import load_curriculum
from coursehub.utils.content import (
    MODULE_TYPES,
    content_to_persist,
    duration_label,
    is_article,
    split_content,
)

logger = logging.getLogger(__name__)

CONTENT_WEEK = "week"
CONTENT_MODULE = "module"

DEFAULT_POINTS = 10


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _get_course(db: Session, course_id: UUID) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise NotFoundError("Course not found")
    return course


def _parse_uuid(value: Any, field: str) -> UUID:
    try:
        return value if isinstance(value, UUID) else UUID(str(value))
    except ValueError:
        raise ValidationError(f"Invalid {field}: {value}")


def _parse_int(value: Any, field: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}: {value}")


def _validate_content_type(content_type: str) -> str:
    value = str(content_type).lower()
    if value not in MODULE_TYPES:
        raise ValidationError(
            f"Invalid contentType: {content_type}. Supported: {', '.join(sorted(MODULE_TYPES))}"
        )
    return value


def serialize_course(course: Course) -> Dict[str, Any]:
    return {
        "id": str(course.id),
        "title": course.title,
        "description": course.description,
        "price": float(course.list_price) if course.list_price is not None else 0.0,
        "status": "active" if course.is_active else "draft",
        "isActive": bool(course.is_active),
        "totalDuration": course.total_duration or 0,
        "duration": duration_label(course.total_duration),
    }


def serialize_week(week: Week) -> Dict[str, Any]:
    return {
        "id": str(week.id),
        "courseId": str(week.course_id),
        "weekNumber": week.week_number,
        "title": week.title,
        "description": week.description or "",
        "duration": week.duration or 0,
        "isPublished": False,
        "createdAt": _iso(week.created_at),
        "updatedAt": _iso(week.updated_at),
    }


def serialize_module(module: Module, quiz_id: Optional[UUID] = None) -> Dict[str, Any]:
    markdown_content, content_url = split_content(module.module_type, module.content)
    return {
        "id": str(module.id),
        "weekId": str(module.week_id),
        "moduleNumber": module.order_in_week,
        "title": module.title,
        "description": module.description or "",
        "contentType": module.module_type,
        "markdownContent": markdown_content,
        "contentUrl": content_url,
        "duration": module.duration or 0,
        "isRequired": True,
        "points": module.xp,
        "orderIndex": module.order_in_week,
        "estimatedReadTime": None,
        "quizId": str(quiz_id) if quiz_id else None,
    }


def _active_quiz_ids(db: Session, module_ids: list) -> Dict[UUID, UUID]:
    """module_id -> newest non-deleted quiz id."""
    if not module_ids:
        return {}
    quizzes = db.query(Quiz.id, Quiz.module_id).filter(
        Quiz.module_id.in_(module_ids),
        Quiz.deleted_at.is_(None)
    ).order_by(Quiz.created_at).all()
    return {q.module_id: q.id for q in quizzes}


def course_content(db: Session, course_id: UUID) -> Dict[str, Any]:
    """Return {course, weeks, modules} for the authoring view."""
    course = _get_course(db, course_id)
    curriculum = load_curriculum(db, course_id)
    quiz_ids = _active_quiz_ids(db, [m.id for _, modules in curriculum for m in modules])

    return {
        "course": serialize_course(course),
        "weeks": [serialize_week(week) for week, _ in curriculum],
        "modules": [
            serialize_module(module, quiz_ids.get(module.id))
            for _, modules in curriculum
            for module in modules
        ],
    }


def _course_week(db: Session, course_id: UUID, week_id: UUID) -> Week:
    week = db.query(Week).filter(Week.id == week_id, Week.course_id == course_id).first()
    if not week:
        raise NotFoundError("Week not found")
    return week


def _course_module(db: Session, course_id: UUID, module_id: UUID) -> Module:
    module = db.query(Module).join(Week, Module.week_id == Week.id).filter(
        Module.id == module_id,
        Week.course_id == course_id
    ).first()
    if not module:
        raise NotFoundError("Module not found")
    return module


def create_week(db: Session, course_id: UUID, data: Dict[str, Any]) -> Week:
    """Create a week. Duplicate week numbers are accepted."""
    _get_course(db, course_id)
    require_fields(data, ["title", "weekNumber"])
    week_number = _parse_int(data["weekNumber"], "weekNumber")
    if week_number < 1:
        raise ValidationError("weekNumber must be a positive integer")

    week = Week(
        course_id=course_id,
        week_number=week_number,
        title=data["title"],
        description=data.get("description") or "",
        duration=_parse_int(data.get("duration") or 0, "duration"),
    )
    db.add(week)
    db.commit()
    db.refresh(week)
    logger.info("Created week %s (number %s) in course %s", week.id, week_number, course_id)
    return week


def create_module(db: Session, course_id: UUID, data: Dict[str, Any]) -> Module:
    """Create a module at the end of its week unless orderIndex is supplied."""
    _get_course(db, course_id)
    require_fields(data, ["weekId", "title", "contentType"])
    week = _course_week(db, course_id, _parse_uuid(data["weekId"], "weekId"))
    content_type = _validate_content_type(data["contentType"])

    order_index = data.get("orderIndex")
    if not order_index:
        module_count = db.query(func.count(Module.id)).filter(Module.week_id == week.id).scalar() or 0
        order_index = module_count + 1

    points = data.get("points")
    module = Module(
        week_id=week.id,
        title=data["title"],
        description=data.get("description") or "",
        module_type=content_type,
        content=content_to_persist(content_type, data.get("markdownContent"), data.get("contentUrl")),
        duration=_parse_int(data.get("duration") or 0, "duration"),
        xp=DEFAULT_POINTS if points is None else _parse_int(points, "points"),
        order_in_week=_parse_int(order_index, "orderIndex"),
    )
    db.add(module)
    db.commit()
    db.refresh(module)
    logger.info("Created %s module %s in week %s", content_type, module.id, week.id)
    return module


def update_week(db: Session, course_id: UUID, data: Dict[str, Any]) -> Week:
    require_fields(data, ["id"])
    week = _course_week(db, course_id, _parse_uuid(data["id"], "id"))

    if data.get("title") is not None:
        week.title = data["title"]
    if data.get("description") is not None:
        week.description = data["description"]
    if data.get("duration") is not None:
        week.duration = _parse_int(data["duration"], "duration")
    if data.get("weekNumber") is not None:
        week.week_number = _parse_int(data["weekNumber"], "weekNumber")

    db.commit()
    db.refresh(week)
    return week


def update_module(db: Session, course_id: UUID, data: Dict[str, Any]) -> Module:
    """Partially update a module.

    Content is rewritten only when the field matching the effective type is
    supplied; changing contentType alone leaves the stored content as is.
    """
    require_fields(data, ["id"])
    module = _course_module(db, course_id, _parse_uuid(data["id"], "id"))

    if data.get("contentType") is not None:
        module.module_type = _validate_content_type(data["contentType"])
    if data.get("weekId") is not None:
        module.week_id = _course_week(db, course_id, _parse_uuid(data["weekId"], "weekId")).id
    if data.get("title") is not None:
        module.title = data["title"]
    if data.get("description") is not None:
        module.description = data["description"]
    if data.get("duration") is not None:
        module.duration = _parse_int(data["duration"], "duration")
    if data.get("points") is not None:
        module.xp = _parse_int(data["points"], "points")
    if data.get("orderIndex") is not None:
        module.order_in_week = _parse_int(data["orderIndex"], "orderIndex")

    if is_article(module.module_type):
        if data.get("markdownContent") is not None:
            module.content = data["markdownContent"]
    elif data.get("contentUrl") is not None:
        module.content = data["contentUrl"]

    db.commit()
    db.refresh(module)
    return module


def create_content(db: Session, course_id: UUID, content_type: Optional[str], data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Dispatch a combined week/module create request."""
    data = data or {}
    if content_type == CONTENT_WEEK:
        return {"message": "Week created successfully", "week": serialize_week(create_week(db, course_id, data))}
    if content_type == CONTENT_MODULE:
        return {"message": "Module created successfully", "module": serialize_module(create_module(db, course_id, data))}
    raise ValidationError("Invalid type specified")


def update_content(db: Session, course_id: UUID, content_type: Optional[str], data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Dispatch a combined week/module update request."""
    data = data or {}
    if content_type == CONTENT_WEEK:
        return {"message": "Week updated successfully", "week": serialize_week(update_week(db, course_id, data))}
    if content_type == CONTENT_MODULE:
        return {"message": "Module updated successfully", "module": serialize_module(update_module(db, course_id, data))}
    raise ValidationError("Invalid type specified")
