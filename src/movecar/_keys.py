"""Storage key scheme.

Every piece of state lives under ``<role>_<user>`` where the user part is
case-folded, so ``?u=Alice`` and ``?u=alice`` address the same session.
"""

from __future__ import annotations

from enum import StrEnum

DEFAULT_USER = "default"


class KeyRole(StrEnum):
    STATUS = "status"
    LOCATION = "loc"
    OWNER_LOCATION = "owner_loc"
    LOCK = "lock"


def normalize_user(user_id: str | None) -> str:
    """Case-fold a logical user id; blank ids map to ``"default"``."""
    if user_id is None:
        return DEFAULT_USER
    folded = user_id.strip().lower()
    return folded or DEFAULT_USER


def make_key(role: KeyRole, user_id: str | None) -> str:
    return f"{role.value}_{normalize_user(user_id)}"
