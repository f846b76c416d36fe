"""Session status, stored record and snapshot models."""

from __future__ import annotations

from enum import StrEnum

from movecar.models._base import MoveCarBaseModel
from movecar.models.location import Location


class SessionStatus(StrEnum):
    """Lifecycle of one move-car request.

    ``NONE`` is never persisted: it is what readers see when the status
    key is absent, expired, or belongs to another requester.
    """

    NONE = "none"
    WAITING = "waiting"
    CONFIRMED = "confirmed"


class SessionRecord(MoveCarBaseModel):
    """Value stored under ``status_<user>``."""

    status: SessionStatus
    session_id: str | None = None
    """Opaque requester-generated id correlating polls with the request."""


class SessionSnapshot(MoveCarBaseModel):
    """What a requester sees when polling."""

    status: SessionStatus = SessionStatus.NONE
    owner_location: Location | None = None

    @property
    def is_live(self) -> bool:
        return self.status is not SessionStatus.NONE

    @property
    def is_confirmed(self) -> bool:
        return self.status is SessionStatus.CONFIRMED
