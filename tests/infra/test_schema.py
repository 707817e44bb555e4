# tests/infra/test_schema.py
"""
Тесты схемы migrations/init.sql.
"""

from __future__ import annotations

import re

import pytest

from saferide.config.loader import get_project_root


@pytest.fixture(scope="module")
def schema_sql() -> str:
    return (get_project_root() / "migrations" / "init.sql").read_text(encoding="utf-8")


def _statements(sql: str) -> list[str]:
    without_comments = re.sub(r"--[^\n]*", "", sql)
    return [s.strip() for s in without_comments.split(";") if s.strip()]


def test_participants_do_not_reference_local_users(schema_sql: str) -> None:
    """Идентификаторы участников приходят из внешнего провайдера."""
    for statement in _statements(schema_sql):
        assert "REFERENCES users" not in statement


@pytest.mark.parametrize(
    "table,constraint",
    [
        ("rides", "rides_rider_id_fkey"),
        ("rides", "rides_driver_id_fkey"),
        ("payments", "payments_user_id_fkey"),
        ("payments", "payments_driver_id_fkey"),
        ("messages", "messages_sender_id_fkey"),
    ],
)
def test_legacy_user_keys_are_dropped(schema_sql: str, table: str, constraint: str) -> None:
    assert f"ALTER TABLE {table} DROP CONSTRAINT IF EXISTS {constraint}" in _statements(schema_sql)


def test_no_extensions_required(schema_sql: str) -> None:
    statements = _statements(schema_sql)

    assert not [s for s in statements if s.upper().startswith("CREATE EXTENSION")]
    assert any("gen_random_uuid()" in s for s in statements)


def test_chat_and_payments_still_reference_rides(schema_sql: str) -> None:
    statements = " ".join(_statements(schema_sql))

    assert "ride_id   UUID NOT NULL REFERENCES rides (id)" in statements
    assert "ride_id   UUID REFERENCES rides (id)" in statements


def test_script_is_idempotent(schema_sql: str) -> None:
    for statement in _statements(schema_sql):
        head = statement.upper()
        if head.startswith("CREATE"):
            assert "IF NOT EXISTS" in head
        elif head.startswith("ALTER"):
            assert "IF EXISTS" in head
