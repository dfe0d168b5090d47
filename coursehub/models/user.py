"""User profile model."""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Uuid
from coursehub.db.base import Base


ROLE_LEARNER = "learner"
ROLE_INSTRUCTOR = "instructor"
ROLE_ADMIN = "admin"
STAFF_ROLES = {ROLE_INSTRUCTOR, ROLE_ADMIN}


class User(Base):
    """Learner, instructor or admin profile."""

    __tablename__ = "profiles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    full_name = Column(String(150))
    email = Column(String(150), unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String(20), nullable=False, default=ROLE_LEARNER)
    xp = Column(Integer, nullable=False, default=0)
    photo_url = Column(String(500))
    created_at = Column(DateTime, default=datetime.utcnow)

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES
