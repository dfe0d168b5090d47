"""Authentication routes."""
import logging
import uuid
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, EmailStr, Field
from datetime import timedelta

from coursehub.db.sessions import get_db
from coursehub.models.user import User, ROLE_LEARNER, ROLE_INSTRUCTOR, ROLE_ADMIN
from coursehub.core.security import (
    get_password_hash,
    verify_password,
    create_access_token,
    get_current_user,
    require_admin
)
from coursehub.core.config import settings


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


# Request/Response schemas
class RegisterRequest(BaseModel):
    full_name: str = Field(alias="fullName")
    email: EmailStr
    password: str

    class Config:
        populate_by_name = True


class RoleRequest(BaseModel):
    role: str = Field(pattern=f"^({ROLE_LEARNER}|{ROLE_INSTRUCTOR}|{ROLE_ADMIN})$")


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    full_name: Optional[str]
    email: str
    role: str


class UserResponse(BaseModel):
    id: str
    full_name: Optional[str]
    email: str
    role: str
    xp: int
    created_at: str


def _token_response(user: User) -> TokenResponse:
    access_token = create_access_token(
        data={"sub": str(user.id)},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return TokenResponse(
        access_token=access_token,
        user_id=str(user.id),
        full_name=user.full_name,
        email=user.email,
        role=user.role
    )


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=str(user.id),
        full_name=user.full_name,
        email=user.email,
        role=user.role,
        xp=user.xp or 0,
        created_at=user.created_at.isoformat() if user.created_at else ""
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    """
    Register a new learner.

    Self-registration always creates a learner; staff roles are granted by
    an admin through `PUT /auth/users/{user_id}/role`.

    - Creates a profile with a hashed password
    - Returns JWT access token
    """
    existing_user = db.query(User).filter(User.email == request.email).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    user = User(
        full_name=request.full_name,
        email=request.email,
        password_hash=get_password_hash(request.password),
        role=ROLE_LEARNER
    )

    db.add(user)
    db.commit()
    db.refresh(user)

    return _token_response(user)


@router.post("/login", response_model=TokenResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    """
    Login with email and password.

    - Validates credentials
    - Returns JWT access token
    """
    user = db.query(User).filter(User.email == request.email).first()
    if not user or not verify_password(request.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )

    return _token_response(user)


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    """
    Get current authenticated user information.

    Protected endpoint - requires valid JWT token.
    """
    return _user_response(current_user)


@router.put("/users/{user_id}/role", response_model=UserResponse)
def set_role(
    user_id: uuid.UUID,
    request: RoleRequest,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Grant or revoke a role.

    Protected endpoint - admins only.
    """
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    user.role = request.role
    db.commit()
    db.refresh(user)
    logger.info("Admin %s set role of %s to %s", current_user.id, user.id, user.role)

    return _user_response(user)
