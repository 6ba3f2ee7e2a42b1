import logging

from fastapi import Depends, FastAPI
from fastapi.responses import RedirectResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy import select
from sqlalchemy.orm import Session
from starlette.responses import Response

from app.api.admin import router as admin_router
from app.api.auth import router as auth_router
from app.api.community import router as community_router
from app.api.documents import router as documents_router
from app.api.notifications import router as notifications_router
from app.api.people import router as people_router
from app.db import get_db
from app.errors import register_error_handlers
from app.logging import configure_logging
from app.models.document import Document
from app.observability import ObservabilityMiddleware
from app.services.storage import StorageNotFound, storage
from app.web.deps import register_web_handlers
from app.web.routes import router as web_router

logger = logging.getLogger(__name__)

app = FastAPI(title="Family Records API")

configure_logging()
app.add_middleware(ObservabilityMiddleware)
register_error_handlers(app)
register_web_handlers(app)


def _include_api_router(router, dependencies=None):
    app.include_router(router, dependencies=dependencies)
    app.include_router(router, prefix="/api/v1", dependencies=dependencies)


_include_api_router(auth_router)
_include_api_router(community_router)
_include_api_router(people_router)
_include_api_router(documents_router)
_include_api_router(notifications_router)
_include_api_router(admin_router)
app.include_router(web_router)


@app.get("/", include_in_schema=False)
def index():
    return RedirectResponse("/web/dashboard", status_code=303)


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/metrics")
def metrics():
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)


@app.get("/storage/{path:path}", include_in_schema=False)
def storage_passthrough(path: str, db: Session = Depends(get_db)):
    """Serve stored files that belong to public documents."""
    document = db.scalar(
        select(Document).where(Document.file_path == path, Document.is_public.is_(True))
    )
    if document is None:
        return Response(status_code=404)
    try:
        content = storage.read(path)
    except StorageNotFound:
        logger.warning("Storage passthrough: %s is missing", path)
        return Response(status_code=404)
    return Response(content=content, media_type=document.mime_type)
