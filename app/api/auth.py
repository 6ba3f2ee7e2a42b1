from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_approved_user
from app.models.user import User
from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    PasswordChangeRequest,
    ProfileUpdate,
    RegisterRequest,
    RegisterResponse,
    UserRead,
)
from app.schemas.common import MessageResponse
from app.services.auth import auth
from app.services.auth_dependencies import client_ip

router = APIRouter(tags=["auth"])

REGISTERED_MESSAGE = (
    "Registration successful. Your account is pending admin approval."
)


@router.get("/ping")
def ping():
    return {"status": "ok"}


@router.post(
    "/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED
)
def register(payload: RegisterRequest, request: Request, db: Session = Depends(get_db)):
    user = auth.register(db, payload, ip_address=client_ip(request))
    return {"message": REGISTERED_MESSAGE, "user": user}


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    user, token = auth.login(db, payload, ip_address=client_ip(request))
    return {"token": token, "user": user}


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    auth.revoke_token(db, request.state.token, user)
    return {"message": "Logged out."}


@router.get("/me", response_model=UserRead)
def me(user: User = Depends(require_approved_user)):
    return user


@router.put("/profile", response_model=UserRead)
def update_profile(
    payload: ProfileUpdate,
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    return auth.update_profile(db, user, payload)


@router.put("/profile/password", response_model=MessageResponse)
def change_password(
    payload: PasswordChangeRequest,
    user: User = Depends(require_approved_user),
    db: Session = Depends(get_db),
):
    auth.change_password(db, user, payload)
    return {"message": "Password updated."}
