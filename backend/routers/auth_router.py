"""
Authentication and User Profile Router

Endpoints for:
- User registration and login
- Current user profile (pregnancy weeks, due date, postpartum flag)
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from datetime import timedelta

from database import get_db, User
from auth import (
    authenticate_user, create_access_token, get_current_active_user,
    get_password_hash, ACCESS_TOKEN_EXPIRE_MINUTES
)
from models import UserCreate, UserResponse, UserLogin, UserUpdate, Token
from storage import Storage
from structured_logging import get_logger, log_security_event

router = APIRouter(tags=["Authentication & Users"])
logger = get_logger("api.auth")


# =============================================================================
# AUTHENTICATION ENDPOINTS
# =============================================================================

@router.post("/register", response_model=UserResponse)
def register_user(user: UserCreate, db: Session = Depends(get_db)):
    """Register a new user account."""
    storage = Storage(db)

    if storage.get_user_by_email(user.email):
        raise HTTPException(
            status_code=400,
            detail="Email already registered"
        )

    try:
        db_user = storage.create_user(
            email=user.email,
            hashed_password=get_password_hash(user.password),
            first_name=user.first_name,
            last_name=user.last_name,
        )
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        raise HTTPException(status_code=400, detail="Email already registered")
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to register user")

    logger.info("User registered", extra={"user_id": db_user.id})
    return db_user


@router.post("/login", response_model=Token)
def login_user(form_data: UserLogin, request: Request, db: Session = Depends(get_db)):
    """Authenticate user and return access token."""
    user = authenticate_user(db, form_data.email, form_data.password)
    if not user:
        log_security_event(
            "login_failed",
            severity="low",
            client_ip=request.client.host if request.client else None,
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token_expires = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": user.id}, expires_delta=access_token_expires
    )
    return {"access_token": access_token, "token_type": "bearer"}


# =============================================================================
# USER PROFILE ENDPOINTS
# =============================================================================

@router.get("/api/auth/user", response_model=UserResponse)
def read_current_user(current_user: User = Depends(get_current_active_user)):
    """Get current authenticated user."""
    return current_user


@router.patch("/api/auth/user", response_model=UserResponse)
def update_current_user(
    updates: UserUpdate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Update profile fields; only the fields sent are changed."""
    changes = updates.changes()
    if not changes:
        return current_user

    try:
        return Storage(db).update_user(current_user, changes)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to update user")
