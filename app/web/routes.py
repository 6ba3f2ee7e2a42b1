"""Server-rendered admin panel and family pages, served under ``/web``."""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse, Response
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import settings
from app.db import get_db
from app.errors import ValidationFailed
from app.models.user import User
from app.schemas.auth import LoginRequest, RegisterRequest
from app.schemas.community import SuggestionCreate
from app.schemas.person import PersonCreate, PersonUpdate
from app.services import dashboard, statistics
from app.services.activity import activity
from app.services.admin import admin_users
from app.services.auth import PENDING_APPROVAL_MESSAGE, auth
from app.services.auth_dependencies import client_ip
from app.services.community import suggestions
from app.services.documents import documents
from app.services.people import people
from app.services.sharing import favorites, shares
from app.web.deps import (
    form_errors,
    render,
    require_web_admin,
    require_web_approved,
    require_web_user,
    session_user,
)

router = APIRouter(prefix="/web", tags=["web"], include_in_schema=False)

PAGE_SIZE = 25

PERSON_FIELDS = (
    "name",
    "nric",
    "date_of_birth",
    "gender",
    "blood_type",
    "occupation",
    "address",
    "email",
)


def _redirect(url: str, status: str | None = None) -> RedirectResponse:
    if status:
        url = f"{url}?status={status}"
    return RedirectResponse(url, status_code=303)


def _ip(request: Request) -> str | None:
    return getattr(request.state, "client_ip", None)


def _error_message(exc: HTTPException) -> str:
    if isinstance(exc.detail, dict):
        return exc.detail.get("message", "Request failed")
    return str(exc.detail)


def _person_form(form) -> dict:
    data = {field: form.get(field) or None for field in PERSON_FIELDS}
    data["name"] = form.get("name", "")
    data["nric"] = form.get("nric", "")
    data["phone"] = [value for value in form.getlist("phone") if value.strip()]
    return data


def _set_session(response: Response, token: str) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.token_ttl_days * 86400 if settings.token_ttl_days > 0 else None,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


# ------------------------------------------------------------------
# Authentication
# ------------------------------------------------------------------


@router.get("/login")
def login_page(request: Request, user: User | None = Depends(session_user)):
    if user is not None:
        return _redirect("/web/dashboard")
    return render(request, "login.html", errors={}, values={})


@router.post("/login")
async def login_submit(request: Request, db: Session = Depends(get_db)):
    form = await request.form()
    values = {"email": form.get("email", "")}
    try:
        payload = LoginRequest(
            email=form.get("email", ""), password=form.get("password", "")
        )
        user, token = auth.login(
            db, payload, token_name="web", ip_address=client_ip(request)
        )
    except ValidationError as exc:
        return render(request, "login.html", 422, errors=form_errors(exc), values=values)
    except HTTPException as exc:
        if exc.status_code == 403:
            return render(
                request, "pending.html", 403, message=PENDING_APPROVAL_MESSAGE
            )
        return render(
            request, "login.html", 422, errors={"email": [_error_message(exc)]}, values=values
        )
    response = _redirect("/web/dashboard")
    _set_session(response, token)
    return response


@router.get("/register")
def register_page(request: Request):
    return render(request, "register.html", errors={}, values={})


@router.post("/register")
async def register_submit(request: Request, db: Session = Depends(get_db)):
    form = await request.form()
    values = {"name": form.get("name", ""), "email": form.get("email", "")}
    try:
        payload = RegisterRequest(
            name=form.get("name", ""),
            email=form.get("email", ""),
            password=form.get("password", ""),
            password_confirmation=form.get("password_confirmation", ""),
        )
        auth.register(db, payload)
    except ValidationError as exc:
        return render(request, "register.html", 422, errors=form_errors(exc), values=values)
    except ValidationFailed as exc:
        return render(request, "register.html", 422, errors=exc.errors, values=values)
    return render(request, "pending.html", message=PENDING_APPROVAL_MESSAGE)


@router.post("/logout")
def logout(
    request: Request,
    user: User = Depends(require_web_user),
    db: Session = Depends(get_db),
):
    auth.revoke_token(db, request.state.token, user)
    response = _redirect("/web/login")
    response.delete_cookie(settings.session_cookie_name)
    return response


@router.get("/approval/pending")
def approval_pending(request: Request, user: User = Depends(require_web_user)):
    if user.is_admin or user.is_approved:
        return _redirect("/web/dashboard")
    return render(request, "pending.html", message=PENDING_APPROVAL_MESSAGE)


# ------------------------------------------------------------------
# Dashboard & statistics
# ------------------------------------------------------------------


@router.get("/dashboard")
def dashboard_page(
    request: Request,
    user: User = Depends(require_web_approved),
    db: Session = Depends(get_db),
):
    return render(request, "dashboard.html", data=dashboard.build(db, user))


@router.get("/statistics")
def statistics_page(
    request: Request,
    user: User = Depends(require_web_approved),
    db: Session = Depends(get_db),
):
    return render(request, "statistics.html", stats=statistics.overview(db))


# ------------------------------------------------------------------
# People
# ------------------------------------------------------------------


@router.get("/people")
def people_index(
    request: Request,
    scope: str = "mine",
    search: str | None = None,
    page: int = 1,
    user: User = Depends(require_web_approved),
    db: Session = Depends(get_db),
):
    if scope not in ("mine", "all", "shared", "favorites"):
        scope = "mine"
    page = max(page, 1)
    offset = (page - 1) * PAGE_SIZE
    if scope == "favorites":
        items = people.favorites(db, user, PAGE_SIZE, offset)
    else:
        items = people.list(db, user, scope, search, PAGE_SIZE, offset)
    return render(
        request,
        "people_list.html",
        people=items,
        scope=scope,
        search=search or "",
        page=page,
        has_next=len(items) == PAGE_SIZE,
    )


@router.get("/people/nric-prefill")
def nric_prefill(nric: str = "", user: User = Depends(require_web_approved)):
    values = people.nric_prefill(nric)
    return {
        "date_of_birth": values["date_of_birth"].isoformat()
        if values["date_of_birth"]
        else None,
        "gender": values["gender"],
    }


@router.get("/people/create")
def person_create_page(request: Request, user: User = Depends(require_web_approved)):
    return render(request, "person_form.html", person=None, values={"phone": []}, errors={})


@router.post("/people/create")
async def person_create_submit(
    request: Request,
    user: User = Depends(require_web_approved),
    db: Session = Depends(get_db),
):
    values = _person_form(await request.form())
    try:
        person = people.create(db, user, PersonCreate(**values), ip_address=_ip(request))
    except ValidationError as exc:
        return render(
            request, "person_form.html", 422, person=None, values=values, errors=form_errors(exc)
        )
    except ValidationFailed as exc:
        return render(
            request, "person_form.html", 422, person=None, values=values, errors=exc.errors
        )
    return _redirect(f"/web/people/{person.id}", "person-created")


@router.get("/people/{person_id}")
def person_show(
    person_id: str,
    request: Request,
    user: User = Depends(require_web_approved),
    db: Session = Depends(get_db),
):
    person = people.get_for_user(db, user, person_id)
    detail = people.detail(db, user, person)
    share_list = shares.list(db, user, person) if detail["can_manage"] else []
    candidates = []
    if detail["can_manage"]:
        shared_ids = {share.shared_with_user_id for share in share_list}
        candidates = [
            candidate
            for candidate in db.scalars(
                select(User)
                .where(User.approved_at.is_not(None), User.id != user.id)
                .order_by(User.name)
            )
            if candidate.id not in shared_ids and candidate.id != person.user_id
        ]
    return render(
        request,
        "person_show.html",
        person=person,
        detail=detail,
        documents=documents.list(db, user, person_id, 200, 0),
        shares=share_list,
        share_candidates=candidates,
        errors={},
    )


@router.get("/people/{person_id}/edit")
def person_edit_page(
    person_id: str,
    request: Request,
    user: User = Depends(require_web_approved),
    db: Session = Depends(get_db),
):
    person = people.get_for_user(db, user, person_id)
    values = {field: getattr(person, field) for field in PERSON_FIELDS}
    values["phone"] = person.phone or []
    return render(request, "person_form.html", person=person, values=values, errors={})


@router.post("/people/{person_id}/edit")
async def person_edit_submit(
    person_id: str,
    request: Request,
    user: User = Depends(require_web_approved),
    db: Session = Depends(get_db),
):
    person = people.get_for_user(db, user, person_id)
    values = _person_form(await request.form())
    try:
        people.update(db, user, person_id, PersonUpdate(**values), ip_address=_ip(request))
    except ValidationError as exc:
        return render(
            request, "person_form.html", 422, person=person, values=values, errors=form_errors(exc)
        )
    except ValidationFailed as exc:
        return render(
            request, "person_form.html", 422, person=person, values=values, errors=exc.errors
        )
    return _redirect(f"/web/people/{person_id}", "person-updated")


@router.post("/people/{person_id}/delete")
def person_delete(
    person_id: str,
    request: Request,
    user: User = Depends(require_web_approved),
    db: Session = Depends(get_db),
):
    people.delete(db, user, person_id, ip_address=_ip(request))
    return _redirect("/web/people", "person-deleted")


@router.post("/people/{person_id}/favorite")
def person_favorite(
    person_id: str,
    request: Request,
    user: User = Depends(require_web_approved),
    db: Session = Depends(get_db),
):
    person = people.get_for_user(db, user, person_id)
    favorites.toggle(db, user, person, ip_address=_ip(request))
    return _redirect(f"/web/people/{person_id}")


@router.post("/people/{person_id}/share")
async def person_share(
    person_id: str,
    request: Request,
    user: User = Depends(require_web_approved),
    db: Session = Depends(get_db),
):
    form = await request.form()
    person = people.get(db, person_id)
    try:
        shares.create(db, user, person, form.get("user_id"), ip_address=_ip(request))
    except HTTPException as exc:
        if exc.status_code == 403:
            raise
        return _redirect(f"/web/people/{person_id}", "share-failed")
    return _redirect(f"/web/people/{person_id}", "person-shared")


@router.post("/people/{person_id}/share/{share_id}/delete")
def person_unshare(
    person_id: str,
    share_id: str,
    request: Request,
    user: User = Depends(require_web_approved),
    db: Session = Depends(get_db),
):
    person = people.get(db, person_id)
    shares.delete(db, user, person, share_id, ip_address=_ip(request))
    return _redirect(f"/web/people/{person_id}", "share-removed")


# ------------------------------------------------------------------
# Documents
# ------------------------------------------------------------------


@router.post("/people/{person_id}/documents")
async def document_upload(
    person_id: str,
    request: Request,
    user: User = Depends(require_web_approved),
    db: Session = Depends(get_db),
):
    form = await request.form()
    person = people.get(db, person_id)
    upload = form.get("file")
    try:
        if upload is None or isinstance(upload, str):
            raise ValidationFailed({"file": ["The file field is required."]})
        await documents.create_from_upload(
            db,
            user,
            person,
            form.get("name", ""),
            upload,
            form.get("is_public") in ("1", "on", "true"),
            ip_address=_ip(request),
        )
    except ValidationFailed:
        return _redirect(f"/web/people/{person_id}", "upload-failed")
    return _redirect(f"/web/people/{person_id}", "document-uploaded")


@router.post("/documents/{document_id}/visibility")
def document_visibility(
    document_id: str,
    request: Request,
    user: User = Depends(require_web_approved),
    db: Session = Depends(get_db),
):
    document = documents.get(db, document_id)
    documents.set_visibility(
        db, user, document_id, not document.is_public, ip_address=_ip(request)
    )
    return _redirect(f"/web/people/{document.person_id}", "document-updated")


@router.post("/documents/{document_id}/delete")
def document_delete(
    document_id: str,
    request: Request,
    user: User = Depends(require_web_approved),
    db: Session = Depends(get_db),
):
    person_id = documents.get(db, document_id).person_id
    documents.delete(db, user, document_id, ip_address=_ip(request))
    return _redirect(f"/web/people/{person_id}", "document-deleted")


@router.get("/documents/{document_id}/preview")
def document_preview(
    document_id: str,
    user: User = Depends(require_web_approved),
    db: Session = Depends(get_db),
):
    document, content = documents.read_content(db, user, document_id)
    return Response(content=content, media_type=document.mime_type)


# ------------------------------------------------------------------
# Suggestions
# ------------------------------------------------------------------


@router.get("/suggestions/create")
def suggestion_page(request: Request, user: User = Depends(require_web_approved)):
    return render(request, "suggestion_form.html", values={}, errors={})


@router.post("/suggestions/create")
async def suggestion_submit(
    request: Request,
    user: User = Depends(require_web_approved),
    db: Session = Depends(get_db),
):
    form = await request.form()
    values = {"subject": form.get("subject", ""), "message": form.get("message", "")}
    try:
        payload = SuggestionCreate(**values)
    except ValidationError as exc:
        return render(
            request, "suggestion_form.html", 422, values=values, errors=form_errors(exc)
        )
    suggestions.create(db, user, payload.subject, payload.message, ip_address=_ip(request))
    return _redirect("/web/suggestions/create", "suggestion-sent")


# ------------------------------------------------------------------
# Admin
# ------------------------------------------------------------------

_USER_ACTIONS = {
    "approve": admin_users.approve,
    "reject": admin_users.reject,
    "make-admin": admin_users.make_admin,
    "remove-admin": admin_users.remove_admin,
    "delete": admin_users.delete,
}


@router.get("/admin/users")
def admin_users_page(
    request: Request,
    status_filter: str = "all",
    search: str | None = None,
    admin: User = Depends(require_web_admin),
    db: Session = Depends(get_db),
):
    if status_filter not in ("all", "approved", "pending"):
        status_filter = "all"
    users = admin_users.list(db, search, status_filter, 200, 0)
    return render(
        request,
        "admin_users.html",
        users=users,
        status_filter=status_filter,
        search=search or "",
    )


@router.post("/admin/users/{user_id}/{action}")
def admin_user_action(
    user_id: str,
    action: str,
    request: Request,
    admin: User = Depends(require_web_admin),
    db: Session = Depends(get_db),
):
    handler = _USER_ACTIONS.get(action)
    if handler is None:
        raise HTTPException(status_code=404, detail="Unknown action")
    try:
        handler(db, admin, user_id, ip_address=_ip(request))
    except HTTPException as exc:
        if exc.status_code == 404:
            raise
        return _redirect("/web/admin/users", "action-failed")
    return _redirect("/web/admin/users", f"user-{action}")


@router.get("/admin/suggestions")
def admin_suggestions_page(
    request: Request,
    admin: User = Depends(require_web_admin),
    db: Session = Depends(get_db),
):
    return render(
        request,
        "admin_suggestions.html",
        suggestions=suggestions.list(db, None, 200, 0),
    )


@router.post("/admin/suggestions/{suggestion_id}/toggle")
def admin_suggestion_toggle(
    suggestion_id: str,
    admin: User = Depends(require_web_admin),
    db: Session = Depends(get_db),
):
    suggestion = suggestions.get(db, suggestion_id)
    suggestions.set_read(db, suggestion_id, not suggestion.is_read)
    return _redirect("/web/admin/suggestions")


@router.post("/admin/suggestions/{suggestion_id}/delete")
def admin_suggestion_delete(
    suggestion_id: str,
    admin: User = Depends(require_web_admin),
    db: Session = Depends(get_db),
):
    suggestions.delete(db, suggestion_id)
    return _redirect("/web/admin/suggestions", "suggestion-deleted")


@router.get("/admin/activity")
def admin_activity_page(
    request: Request,
    action: str | None = None,
    page: int = 1,
    admin: User = Depends(require_web_admin),
    db: Session = Depends(get_db),
):
    page = max(page, 1)
    entries = activity.list(db, action, None, PAGE_SIZE, (page - 1) * PAGE_SIZE)
    return render(
        request,
        "admin_activity.html",
        entries=entries,
        action=action or "",
        page=page,
        has_next=len(entries) == PAGE_SIZE,
    )
