from __future__ import annotations

import pytest

from movecar._keys import DEFAULT_USER, KeyRole, make_key, normalize_user


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("alice", "alice"),
        ("Alice", "alice"),
        ("  BOB ", "bob"),
        ("", DEFAULT_USER),
        ("   ", DEFAULT_USER),
        (None, DEFAULT_USER),
    ],
)
def test_normalize_user_case_folds_and_defaults(raw: str | None, expected: str) -> None:
    assert normalize_user(raw) == expected


def test_make_key_uses_role_prefix() -> None:
    assert make_key(KeyRole.STATUS, "Alice") == "status_alice"
    assert make_key(KeyRole.LOCATION, "Alice") == "loc_alice"
    assert make_key(KeyRole.OWNER_LOCATION, "Alice") == "owner_loc_alice"
    assert make_key(KeyRole.LOCK, "Alice") == "lock_alice"
    assert make_key(KeyRole.STATUS, "") == "status_default"


def test_roles_never_collide_for_same_user() -> None:
    keys = {make_key(role, "car-42") for role in KeyRole}
    assert len(keys) == len(KeyRole)


def test_case_variants_share_every_key() -> None:
    for role in KeyRole:
        assert make_key(role, "MiXeD") == make_key(role, "mixed")
