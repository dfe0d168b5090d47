"""XP leaderboard routes."""
import uuid
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy import func
from sqlalchemy.orm import Session

from coursehub.db.sessions import get_db
from coursehub.models import User


router = APIRouter(prefix="/leaderboard", tags=["Leaderboard"])

TOP_LIMIT = 10


class TopRequest(BaseModel):
    user_id: Optional[uuid.UUID] = Field(default=None, alias="userId")

    class Config:
        populate_by_name = True


def _entry(user: User, rank: Optional[int] = None) -> dict:
    entry = {
        "id": str(user.id),
        "email": user.email,
        "full_name": user.full_name,
        "xp": user.xp,
    }
    if rank is not None:
        entry["rank"] = rank
    return entry


def _ranked_query(db: Session):
    return db.query(User).filter(User.xp > 0).order_by(User.xp.desc(), User.created_at, User.id)


@router.get("")
def get_leaderboard(userId: Optional[uuid.UUID] = None, db: Session = Depends(get_db)):
    """
    Learners with XP, highest first.

    With `userId`, entries carry their rank and the caller's entry is returned
    separately (null when the caller has no XP yet).
    """
    users = _ranked_query(db).all()
    if userId is None:
        return [_entry(u) for u in users]

    ranked = [_entry(u, rank) for rank, u in enumerate(users, 1)]
    current = next((e for e in ranked if e["id"] == str(userId)), None)
    return {"leaderboard": ranked, "currentUser": current}


@router.post("/top")
def get_top(request: Optional[TopRequest] = None, db: Session = Depends(get_db)):
    """Top learners plus the caller's own rank."""
    if request is None or request.user_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User ID is required")

    user = db.query(User).filter(User.id == request.user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    rank = 0
    if user.xp and user.xp > 0:
        rank = (db.query(func.count(User.id)).filter(User.xp > user.xp).scalar() or 0) + 1

    return {
        "topUsers": [_entry(u) for u in _ranked_query(db).limit(TOP_LIMIT).all()],
        "currentUser": _entry(user, rank),
    }
