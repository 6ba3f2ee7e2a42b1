from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.user import User
from app.services.auth import auth, pending_approval_error

bearer = HTTPBearer(auto_error=False)


def client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def require_user_auth(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    raw_token = credentials.credentials if credentials else None
    user = auth.resolve_token(db, raw_token)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail="Unauthenticated.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    request.state.user = user
    request.state.token = raw_token
    request.state.client_ip = client_ip(request)
    return user


def require_approved_user(user: User = Depends(require_user_auth)) -> User:
    if not user.is_admin and not user.is_approved:
        raise pending_approval_error()
    return user


def require_admin(user: User = Depends(require_approved_user)) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="This action is unauthorized.")
    return user
