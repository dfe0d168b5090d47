"""Per-user module progress and review flags."""
import uuid
from sqlalchemy import Column, DateTime, Boolean, ForeignKey, UniqueConstraint, Uuid
from coursehub.db.base import Base


class ModuleProgress(Base):
    """completed_at is null while the module is incomplete."""

    __tablename__ = "user_module_progress"
    __table_args__ = (UniqueConstraint("user_id", "module_id", name="uq_progress_user_module"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    module_id = Column(Uuid, ForeignKey("modules.id", ondelete="CASCADE"), nullable=False, index=True)
    completed_at = Column(DateTime)


class ModuleReview(Base):
    """Marked-for-review flag. A missing row means not marked."""

    __tablename__ = "user_module_reviews"
    __table_args__ = (UniqueConstraint("user_id", "module_id", name="uq_review_user_module"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    module_id = Column(Uuid, ForeignKey("modules.id", ondelete="CASCADE"), nullable=False, index=True)
    marked_for_review = Column(Boolean, nullable=False, default=False)
