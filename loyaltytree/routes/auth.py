from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from loyaltytree.config import Settings, get_settings
from loyaltytree.db import get_db
from loyaltytree.deps.auth import get_current_identity
from loyaltytree.schemas.account import (
    AccountOut,
    AuthResponse,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
)
from loyaltytree.services import auth_service
from loyaltytree.services.auth_service import Identity


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(
    payload: RegisterRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    identity, token = auth_service.register(
        db,
        settings,
        email=payload.email,
        password=payload.password,
        name=payload.name,
        account_type=payload.role,
    )
    return {"user": identity.profile(), "token": token}


@router.post("/login", response_model=AuthResponse)
def login(
    payload: LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    identity, token = auth_service.login(
        db,
        settings,
        email=payload.email,
        password=payload.password,
        account_type=payload.role,
    )
    return {"user": identity.profile(), "token": token}


@router.get("/profile", response_model=AccountOut)
def get_profile(identity: Identity = Depends(get_current_identity)):
    return identity.profile()


@router.put("/profile", response_model=AccountOut)
def update_profile(
    payload: ProfileUpdate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    identity = auth_service.update_profile(db, identity, name=payload.name, email=payload.email)
    return identity.profile()
