from pathlib import Path

from fastapi import Depends, Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.config import settings
from app.db import get_db
from app.models.user import User
from app.services.auth import auth
from app.services.auth_dependencies import client_ip

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
templates.env.globals["brand_name"] = settings.brand_name


class WebRedirect(Exception):
    """Raised by page dependencies to send the browser elsewhere."""

    def __init__(self, url: str):
        self.url = url


def register_web_handlers(app) -> None:
    @app.exception_handler(WebRedirect)
    async def web_redirect_handler(request: Request, exc: WebRedirect):
        return RedirectResponse(exc.url, status_code=303)


def session_user(request: Request, db: Session = Depends(get_db)) -> User | None:
    raw = request.cookies.get(settings.session_cookie_name)
    user = auth.resolve_token(db, raw)
    if user is not None:
        request.state.user = user
        request.state.token = raw
        request.state.client_ip = client_ip(request)
    return user


def require_web_user(user: User | None = Depends(session_user)) -> User:
    if user is None:
        raise WebRedirect("/web/login")
    return user


def require_web_approved(user: User = Depends(require_web_user)) -> User:
    if not user.is_admin and not user.is_approved:
        raise WebRedirect("/web/approval/pending")
    return user


def require_web_admin(user: User = Depends(require_web_approved)) -> User:
    if not user.is_admin:
        raise WebRedirect("/web/dashboard")
    return user


def form_errors(exc: ValidationError) -> dict[str, list[str]]:
    """Group pydantic errors by their top-level field name."""
    errors: dict[str, list[str]] = {}
    for error in exc.errors(include_url=False):
        field = str(error["loc"][0]) if error["loc"] else "__all__"
        message = error["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.setdefault(field, []).append(message)
    return errors


def render(request: Request, template: str, status_code: int = 200, **context):
    context.setdefault("user", getattr(request.state, "user", None))
    context.setdefault("flash", request.query_params.get("status"))
    return templates.TemplateResponse(
        request, template, context, status_code=status_code
    )
