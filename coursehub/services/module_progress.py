"""Learner-side module access, completion and review flags."""
import logging
from datetime import datetime
from typing import Any, Dict
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from coursehub.core.errors import NotFoundError
from coursehub.models import Course, Week, Module, ModuleProgress, User
from coursehub.models.course import ModuleType
from coursehub.services.reviews import get_review_store
from coursehub.utils.content import map_module_type, resolve_video_url

logger = logging.getLogger(__name__)


def _get_module(db: Session, module_id: UUID) -> Module:
    module = db.query(Module).filter(Module.id == module_id).first()
    if not module:
        raise NotFoundError("Module not found")
    return module


def get_module(db: Session, module_id: UUID) -> Dict[str, Any]:
    """Module content with its week and course, for the learner module page."""
    module = _get_module(db, module_id)
    module_type = map_module_type(module.module_type)

    week = db.query(Week).filter(Week.id == module.week_id).first()
    course = db.query(Course).filter(Course.id == week.course_id).first() if week else None

    return {
        "id": str(module.id),
        "title": module.title,
        "type": module_type,
        "content": module.content,
        "videoUrl": resolve_video_url(module.content) if module_type == ModuleType.VIDEO.value else None,
        "week": {"id": str(week.id), "title": week.title} if week else None,
        "course": {"id": str(course.id), "title": course.title} if course else None,
    }


def _find_progress(db: Session, user_id: UUID, module_id: UUID):
    return db.query(ModuleProgress.id).filter(
        ModuleProgress.user_id == user_id,
        ModuleProgress.module_id == module_id
    ).first()


def _progress_rows(db: Session, user_id: UUID, module_id: UUID):
    return db.query(ModuleProgress).filter(
        ModuleProgress.user_id == user_id,
        ModuleProgress.module_id == module_id
    )


def _mark_completed(db: Session, user_id: UUID, module_id: UUID) -> bool:
    """Set completed_at if it is unset.

    Returns True only for the call that moved the row to completed, so
    concurrent callers cannot both claim the transition.
    """
    now = datetime.utcnow()
    if _find_progress(db, user_id, module_id) is None:
        db.add(ModuleProgress(user_id=user_id, module_id=module_id, completed_at=now))
        try:
            db.flush()
            return True
        except IntegrityError:
            db.rollback()
            logger.info("Concurrent completion detected for user %s on module %s", user_id, module_id)

    updated = _progress_rows(db, user_id, module_id).filter(
        ModuleProgress.completed_at.is_(None)
    ).update({ModuleProgress.completed_at: now}, synchronize_session=False)
    return updated == 1


def set_completion(db: Session, user_id: UUID, module_id: UUID, completed: bool = True) -> Dict[str, Any]:
    """Upsert completion for (user, module).

    The module's xp is credited the first time it goes from incomplete to
    completed; repeating the call, or losing a race to an identical call, is
    a no-op.
    """
    module = _get_module(db, module_id)
    xp_awarded = 0

    if completed:
        if _mark_completed(db, user_id, module_id):
            credited = db.query(User).filter(User.id == user_id).update(
                {User.xp: func.coalesce(User.xp, 0) + (module.xp or 0)},
                synchronize_session=False
            )
            xp_awarded = (module.xp or 0) if credited else 0
            logger.info("User %s completed module %s (+%d xp)", user_id, module_id, xp_awarded)
    else:
        _progress_rows(db, user_id, module_id).update(
            {ModuleProgress.completed_at: None}, synchronize_session=False
        )
    db.commit()

    completed_at = _progress_rows(db, user_id, module_id).with_entities(ModuleProgress.completed_at).scalar()
    return {
        "moduleId": str(module_id),
        "completed": completed_at is not None,
        "completedAt": completed_at.isoformat() if completed_at else None,
        "xpAwarded": xp_awarded,
    }


def set_review(db: Session, user_id: UUID, module_id: UUID, marked: bool) -> Dict[str, Any]:
    _get_module(db, module_id)
    marked = get_review_store(db).set_flag(db, user_id, module_id, marked)
    return {"moduleId": str(module_id), "markedForReview": marked}
