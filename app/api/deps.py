from app.db import get_db
from app.services.auth_dependencies import (
    require_admin,
    require_approved_user,
    require_user_auth,
)

__all__ = [
    "get_db",
    "require_admin",
    "require_approved_user",
    "require_user_auth",
]
