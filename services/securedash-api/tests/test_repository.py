"""Postgres repository behaviour that does not need a live database."""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from securedash.domain.account import Role
from securedash.domain.errors import DuplicateEmail, StorageError, SuperadminExists
from securedash.repository import (
    EMAIL_CONSTRAINT,
    SCHEMA_SQL,
    SUPERADMIN_CONSTRAINT,
    PostgresAccountRepository,
)


@pytest.fixture
def repository() -> PostgresAccountRepository:
    return PostgresAccountRepository(pool=None)  # type: ignore[arg-type]


def _violation(constraint: str | None):
    return SimpleNamespace(diag=SimpleNamespace(constraint_name=constraint))


@pytest.mark.parametrize(
    ("constraint", "expected"),
    [
        (SUPERADMIN_CONSTRAINT, SuperadminExists),
        (EMAIL_CONSTRAINT, DuplicateEmail),
        ("accounts_pkey", StorageError),
    ],
)
def test_unique_violations_map_to_domain_errors(repository, constraint, expected):
    assert type(repository._translate_unique_violation(_violation(constraint))) is expected


def test_schema_declares_single_superadmin_index():
    assert f"CREATE UNIQUE INDEX IF NOT EXISTS {SUPERADMIN_CONSTRAINT}" in SCHEMA_SQL
    assert "WHERE role = 'superadmin'" in SCHEMA_SQL
    assert "DEFAULT '{}'" in SCHEMA_SQL


def test_update_rejects_unknown_columns(repository):
    with pytest.raises(ValueError):
        repository.update_account("acct", {"account_id": "other"})


def test_map_record_strips_hash_in_domain_projection(repository):
    now = datetime.now(timezone.utc)
    record = repository._map_record(
        ("acct", "Bob", "bob@x.com", "$argon2id$...", "admin", ["reports"], now, now)
    )
    assert record.role is Role.ADMIN
    assert record.modules == ("reports",)

    account = record.to_domain()
    assert account.account_id == "acct"
    assert not hasattr(account, "password_hash")
