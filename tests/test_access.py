from datetime import timedelta

import pytest

from schoolhub.domain.access import clamp_expiration, parse_duration, resolve_access_type
from schoolhub.domain.authorization import (
    CREATE,
    READ,
    TOKEN_TYPE_API,
    USER_TYPE_ADMIN,
    USER_TYPE_TEACHER,
    Principal,
    authorize,
    is_allowed,
)
from schoolhub.domain.errors import DomainError, PermissionDeniedError


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, ("unlimited", None)),
        ("unlimited", ("unlimited", None)),
        ("trial", ("trial", 7)),
        ("trial-3d", ("trial", 3)),
    ],
)
def test_resolve_access_type(value, expected):
    assert resolve_access_type(value) == expected


def test_resolve_access_type_rejects_unknown_values():
    with pytest.raises(DomainError):
        resolve_access_type("forever")
    for value in ("trial-0d", "trial-abc", "trial-3w"):
        with pytest.raises(DomainError):
            resolve_access_type(value)


def test_parse_duration_units():
    assert parse_duration("15m") == timedelta(minutes=15)
    assert parse_duration("2h") == timedelta(hours=2)
    assert parse_duration("30d") == timedelta(days=30)
    assert parse_duration("1w") == timedelta(weeks=1)
    assert parse_duration("1y") == timedelta(days=365)


@pytest.mark.parametrize("value", ["", "30", "d30", "3 days", "-1d"])
def test_parse_duration_rejects_malformed_values(value):
    with pytest.raises(DomainError):
        parse_duration(value)


def test_clamp_expiration_only_shortens():
    assert clamp_expiration("30d", 3) == "3d"
    assert clamp_expiration("2w", 7) == "7d"
    assert clamp_expiration("2d", 3) == "2d"
    assert clamp_expiration("12h", 1) == "12h"


def test_policy_separates_token_system_roles_from_user_types():
    admin = Principal(email="a@school.edu.ph", role="admin", user_type=USER_TYPE_ADMIN)
    user = Principal(email="u@school.edu.ph", role="user", user_type=USER_TYPE_TEACHER)

    assert is_allowed(user, "tokens", CREATE)
    assert not is_allowed(user, "accounts", READ)
    assert is_allowed(admin, "accounts", READ)

    assert is_allowed(user, "grades", CREATE)
    assert not is_allowed(user, "school_years", CREATE)
    assert is_allowed(admin, "school_years", CREATE)
    assert not is_allowed(admin, "videos", CREATE)

    with pytest.raises(PermissionDeniedError):
        authorize(user, "teachers", CREATE)


def test_api_token_principal_is_bound_to_its_system():
    scoped = Principal(
        email="u@school.edu.ph",
        role="user",
        user_type=USER_TYPE_TEACHER,
        token_type=TOKEN_TYPE_API,
        system="grading",
    )
    assert scoped.may_use_system("grading")
    assert not scoped.may_use_system("evaluation")

    session = Principal(email="u@school.edu.ph", role="user", user_type=USER_TYPE_TEACHER, system_access="evaluation")
    assert session.may_use_system("evaluation")
    assert not session.may_use_system("grading")


def test_api_token_principal_needs_live_system_access():
    narrowed = Principal(
        email="u@school.edu.ph",
        role="user",
        user_type=USER_TYPE_TEACHER,
        token_type=TOKEN_TYPE_API,
        system="grading",
        system_access="evaluation",
    )
    assert not narrowed.may_use_system("grading")
    assert not narrowed.may_use_system("evaluation")
