"""Data models for movecar sessions, locations and notifications."""

from movecar.models._base import MoveCarBaseModel, safe_float
from movecar.models.location import Coordinates, Location
from movecar.models.notification import NotificationEvent
from movecar.models.requests import ConfirmRequest, NotifyRequest, normalize_session_id
from movecar.models.session import SessionRecord, SessionSnapshot, SessionStatus

__all__ = [
    "ConfirmRequest",
    "Coordinates",
    "Location",
    "MoveCarBaseModel",
    "NotificationEvent",
    "NotifyRequest",
    "SessionRecord",
    "SessionSnapshot",
    "SessionStatus",
    "normalize_session_id",
    "safe_float",
]
