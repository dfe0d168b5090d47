"""Marked-for-review storage.

The review table is optional: some deployments never provision it. The
capability is checked once per process and a no-op store is installed when the
table is missing, so request handlers never have to catch and swallow errors.
"""
import logging
from typing import Dict, Iterable, Optional
from uuid import UUID

from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from coursehub.core.config import settings
from coursehub.core.errors import FeatureUnavailableError
from coursehub.models.progress import ModuleReview

logger = logging.getLogger(__name__)


class SqlReviewStore:
    """Reads and writes flags in user_module_reviews."""

    def flags_for(self, db: Session, user_id: UUID, module_ids: Iterable[UUID]) -> Dict[UUID, bool]:
        module_ids = list(module_ids)
        if not module_ids:
            return {}
        rows = db.query(ModuleReview.module_id).filter(
            ModuleReview.user_id == user_id,
            ModuleReview.module_id.in_(module_ids),
            ModuleReview.marked_for_review.is_(True)
        ).all()
        return {row.module_id: True for row in rows}

    def _find(self, db: Session, user_id: UUID, module_id: UUID):
        return db.query(ModuleReview.id).filter(
            ModuleReview.user_id == user_id,
            ModuleReview.module_id == module_id
        ).first()

    def set_flag(self, db: Session, user_id: UUID, module_id: UUID, marked: bool) -> bool:
        """Upsert the flag; the last write wins."""
        if self._find(db, user_id, module_id) is None:
            db.add(ModuleReview(user_id=user_id, module_id=module_id, marked_for_review=marked))
            try:
                db.commit()
                return marked
            except IntegrityError:
                db.rollback()
                logger.info("Concurrent review flag detected for user %s on module %s", user_id, module_id)

        db.query(ModuleReview).filter(
            ModuleReview.user_id == user_id,
            ModuleReview.module_id == module_id
        ).update({ModuleReview.marked_for_review: marked}, synchronize_session=False)
        db.commit()
        return marked


class NullReviewStore:
    """Stand-in used when reviews are not provisioned."""

    def flags_for(self, db: Session, user_id: UUID, module_ids: Iterable[UUID]) -> Dict[UUID, bool]:
        return {}

    def set_flag(self, db: Session, user_id: UUID, module_id: UUID, marked: bool) -> bool:
        raise FeatureUnavailableError("Module reviews are not available")


_store = None


def get_review_store(db: Session):
    """Return the process-wide review store, checking the schema on first use."""
    global _store
    if _store is None:
        _store = _detect_store(db)
    return _store


def reset_review_store(store: Optional[object] = None) -> None:
    """Forget the detected store (or force one). Used by tests and migrations."""
    global _store
    _store = store


def _detect_store(db: Session):
    if not settings.REVIEWS_ENABLED:
        logger.info("Module reviews disabled by configuration")
        return NullReviewStore()
    if not inspect(db.get_bind()).has_table(ModuleReview.__tablename__):
        logger.warning(
            "%s table not found; marked-for-review data will be empty",
            ModuleReview.__tablename__
        )
        return NullReviewStore()
    return SqlReviewStore()
