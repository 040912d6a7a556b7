"""Administrator authentication endpoints."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from formbuilder.core.config import settings
from formbuilder.core.deps import get_current_admin, get_db
from formbuilder.core.rate_limit import limiter
from formbuilder.core.security import create_access_token
from formbuilder.schemas.auth import AdminLogin, AdminRead, AdminRegister, TokenResponse
from formbuilder.schemas.submissions import MessageResponse
from formbuilder.services import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=MessageResponse, status_code=201)
def register(body: AdminRegister, db: Session = Depends(get_db)):
    auth_service.register_admin(db, body.name, body.email, body.password)
    return MessageResponse(message="User registered successfully")


@router.post("/login", response_model=TokenResponse)
@limiter.limit(f"{settings.RATE_LIMIT_OTP * 2}/minute")
def login(request: Request, body: AdminLogin, db: Session = Depends(get_db)):
    admin = auth_service.authenticate_admin(db, body.email, body.password)
    return TokenResponse(
        id=admin.id,
        name=admin.name,
        role=admin.role,
        token=create_access_token(admin.id, admin.name, admin.role),
    )


@router.get("/me", response_model=AdminRead)
def me(admin=Depends(get_current_admin)):
    return admin
