from app.models.activity import ActivityLog  # noqa: F401
from app.models.community import Event, Message, Suggestion  # noqa: F401
from app.models.document import Document  # noqa: F401
from app.models.notification import (  # noqa: F401
    DevicePlatform,
    DeviceToken,
    Notification,
    NotificationType,
)
from app.models.person import Favorite, Person, PersonShare  # noqa: F401
from app.models.user import ApiToken, User  # noqa: F401
