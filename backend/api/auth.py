"""
Authentication and profile API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from constants import HTTPStatus
from database import get_db
from dependencies import get_current_user
from models import User
from schemas import AuthResponse, LoginRequest, ProfileUpdate, RegisterRequest, UserResponse
from services.auth_service import AuthService
from utils.error_handlers import handle_api_errors

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/auth/login", response_model=AuthResponse)
@handle_api_errors("Login")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email and password for a bearer token."""
    user, token = AuthService(db).login(body.email, body.password)
    return {"token": token, "user": user}


@router.post("/register", response_model=AuthResponse, status_code=HTTPStatus.CREATED)
@router.post("/auth/register", response_model=AuthResponse, status_code=HTTPStatus.CREATED)
@handle_api_errors("Registration")
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    """
    Create an account.

    role may be homeowner, company_admin, professional, or a professional
    type (contractor, interior-designer, renovator, architect).
    """
    user, token = AuthService(db).register(
        name=body.name,
        email=body.email,
        password=body.password,
        role=body.role,
        phone=body.phone,
        location=body.location,
    )
    return {"token": token, "user": user}


@router.get("/users/profile", response_model=UserResponse)
def get_profile(user: User = Depends(get_current_user)):
    return user


@router.put("/users/profile", response_model=UserResponse)
@handle_api_errors("Profile update")
def update_profile(body: ProfileUpdate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return AuthService(db).update_profile(user, **body.model_dump(exclude_none=True))
