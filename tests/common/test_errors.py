# tests/common/test_errors.py
"""
Тесты таксономии ошибок.
"""

from __future__ import annotations

import pytest

from saferide.common.errors import (
    Conflict,
    DropoffNotFound,
    Forbidden,
    InvalidInput,
    NotFound,
    RideNotFound,
    SafeRideError,
    StorageFailure,
    Unauthorized,
    UpstreamUnavailable,
)


@pytest.mark.parametrize(
    "error_cls,code,status",
    [
        (InvalidInput, "invalid_input", 400),
        (Unauthorized, "unauthorized", 401),
        (Forbidden, "forbidden", 403),
        (NotFound, "not_found", 404),
        (RideNotFound, "not_found", 404),
        (DropoffNotFound, "dropoff_not_found", 422),
        (Conflict, "conflict", 409),
        (UpstreamUnavailable, "upstream_unavailable", 502),
        (StorageFailure, "storage_failure", 500),
    ],
)
def test_codes_and_statuses(error_cls: type[SafeRideError], code: str, status: int) -> None:
    error = error_cls("message")

    assert isinstance(error, SafeRideError)
    assert error.error_code == code
    assert error.status_code == status
    assert error.message == "message"


def test_not_found_family() -> None:
    assert issubclass(RideNotFound, NotFound)
    assert issubclass(DropoffNotFound, NotFound)


def test_default_message_and_details() -> None:
    error = Conflict(details={"ride_id": "abc"})

    assert error.message == "Conflict"
    assert error.details == {"ride_id": "abc"}
