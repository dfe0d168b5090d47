"""Learner module routes."""
import uuid
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from coursehub.db.sessions import get_db
from coursehub.services import module_progress


router = APIRouter(prefix="/modules", tags=["Modules"])


class ProgressRequest(BaseModel):
    user_id: uuid.UUID = Field(alias="userId")
    completed: bool = True

    class Config:
        populate_by_name = True


class ReviewRequest(BaseModel):
    user_id: uuid.UUID = Field(alias="userId")
    marked_for_review: bool = Field(alias="markedForReview")

    class Config:
        populate_by_name = True


@router.get("/{module_id}")
def get_module(module_id: uuid.UUID, db: Session = Depends(get_db)):
    return module_progress.get_module(db, module_id)


@router.post("/{module_id}/progress")
def update_progress(module_id: uuid.UUID, request: ProgressRequest, db: Session = Depends(get_db)):
    """
    Mark a module complete (or incomplete) for a learner.

    Marking complete twice has the same effect as once.
    """
    return module_progress.set_completion(db, request.user_id, module_id, request.completed)


@router.post("/{module_id}/review")
def update_review(module_id: uuid.UUID, request: ReviewRequest, db: Session = Depends(get_db)):
    """
    Set or clear the learner's marked-for-review flag.

    Returns 503 when module reviews are not provisioned.
    """
    return module_progress.set_review(db, request.user_id, module_id, request.marked_for_review)
