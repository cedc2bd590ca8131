"""Database repository for dashboard accounts."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable

from psycopg import errors as pg_errors
from psycopg.rows import tuple_row
from psycopg_pool import ConnectionPool

from .domain.account import Account, Role
from .domain.contracts import CreateAccountInput
from .domain.errors import DuplicateEmail, StorageError, SuperadminExists

logger = logging.getLogger(__name__)

EMAIL_CONSTRAINT = "accounts_email_key"
SUPERADMIN_CONSTRAINT = "accounts_single_superadmin"

SCHEMA_SQL = f"""
CREATE TABLE IF NOT EXISTS accounts (
    account_id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT NOT NULL,
    password_hash TEXT NOT NULL,
    role TEXT NOT NULL DEFAULT 'user' CHECK (role IN ('superadmin', 'admin', 'user')),
    modules TEXT[] NOT NULL DEFAULT '{{}}',
    seq BIGSERIAL,
    created_at TIMESTAMPTZ NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL
);
CREATE UNIQUE INDEX IF NOT EXISTS {EMAIL_CONSTRAINT} ON accounts (email);
CREATE UNIQUE INDEX IF NOT EXISTS {SUPERADMIN_CONSTRAINT} ON accounts (role) WHERE role = 'superadmin';
"""

_COLUMNS = "account_id, name, email, password_hash, role, modules, created_at, updated_at"

# Columns an update may touch; anything else is a programming error.
_UPDATABLE = frozenset({"name", "email", "password_hash", "role", "modules"})


@dataclass(slots=True)
class AccountRecord:
    """Row projection used when mapping database tuples to domain aggregates."""

    account_id: str
    name: str
    email: str
    password_hash: str
    role: Role
    modules: tuple[str, ...]
    created_at: datetime
    updated_at: datetime

    def to_domain(self) -> Account:
        """Drop the credential hash and return the public aggregate."""
        return Account(
            account_id=self.account_id,
            name=self.name,
            email=self.email,
            role=self.role,
            modules=self.modules,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class PostgresAccountRepository:
    """Postgres-backed account persistence; every method is a single transaction."""

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    def ensure_schema(self) -> None:
        """Create the accounts table and its unique indexes when missing."""
        with self._pool.connection() as conn:
            conn.execute(SCHEMA_SQL)
            conn.commit()

    def create_account(self, payload: CreateAccountInput) -> AccountRecord:
        """Insert an account, translating unique-index violations into domain errors."""
        account_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(
                        f"""
                        INSERT INTO accounts (account_id, name, email, password_hash, role, modules, created_at, updated_at)
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                        RETURNING {_COLUMNS}
                        """,
                        (
                            account_id,
                            payload.name,
                            payload.email,
                            payload.password_hash,
                            payload.role.value,
                            list(payload.modules),
                            now,
                            now,
                        ),
                    )
                    row = cur.fetchone()
                conn.commit()
        except pg_errors.UniqueViolation as exc:
            raise self._translate_unique_violation(exc) from exc
        except pg_errors.Error as exc:
            logger.error("account insert failed: %s", exc)
            raise StorageError() from exc
        return self._map_record(row)

    def get_account(self, account_id: str) -> AccountRecord | None:
        """Fetch an account by identifier or return ``None``."""
        return self._fetch_one(f"SELECT {_COLUMNS} FROM accounts WHERE account_id = %s", (account_id,))

    def get_account_by_email(self, email: str) -> AccountRecord | None:
        """Fetch an account by its normalised email address."""
        return self._fetch_one(f"SELECT {_COLUMNS} FROM accounts WHERE email = %s", (email,))

    def superadmin_exists(self) -> bool:
        try:
            with self._pool.connection() as conn:
                row = conn.execute(
                    "SELECT EXISTS (SELECT 1 FROM accounts WHERE role = %s)",
                    (Role.SUPERADMIN.value,),
                ).fetchone()
        except pg_errors.Error as exc:
            logger.error("superadmin lookup failed: %s", exc)
            raise StorageError() from exc
        return bool(row and row[0])

    def list_accounts(self, roles: Iterable[Role]) -> list[AccountRecord]:
        """Return accounts holding any of ``roles`` in insertion order."""
        role_values = [role.value for role in roles]
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(
                        f"SELECT {_COLUMNS} FROM accounts WHERE role = ANY(%s) ORDER BY seq",
                        (role_values,),
                    )
                    rows = cur.fetchall()
        except pg_errors.Error as exc:
            logger.error("account listing failed: %s", exc)
            raise StorageError() from exc
        return [self._map_record(row) for row in rows]

    def update_account(self, account_id: str, changes: dict[str, Any]) -> AccountRecord | None:
        """Apply ``changes`` to one account atomically and return the new state."""
        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise ValueError(f"unsupported account fields: {sorted(unknown)}")
        if not changes:
            return self.get_account(account_id)

        assignments: list[str] = []
        params: list[Any] = []
        for column, value in changes.items():
            assignments.append(f"{column} = %s")
            if isinstance(value, Role):
                value = value.value
            elif column == "modules":
                value = list(value)
            params.append(value)
        assignments.append("updated_at = %s")
        params.append(datetime.now(timezone.utc))
        params.append(account_id)

        query = f"""
            UPDATE accounts
            SET {', '.join(assignments)}
            WHERE account_id = %s
            RETURNING {_COLUMNS}
        """
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(query, params)
                    row = cur.fetchone()
                conn.commit()
        except pg_errors.UniqueViolation as exc:
            raise self._translate_unique_violation(exc) from exc
        except pg_errors.Error as exc:
            logger.error("account update failed: %s", exc)
            raise StorageError() from exc
        if not row:
            return None
        return self._map_record(row)

    def delete_account(self, account_id: str) -> bool:
        """Delete an account, returning ``False`` when nothing matched."""
        try:
            with self._pool.connection() as conn:
                cur = conn.execute("DELETE FROM accounts WHERE account_id = %s", (account_id,))
                deleted = cur.rowcount
                conn.commit()
        except pg_errors.Error as exc:
            logger.error("account delete failed: %s", exc)
            raise StorageError() from exc
        return deleted > 0

    def _fetch_one(self, query: str, params: tuple[Any, ...]) -> AccountRecord | None:
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(query, params)
                    row = cur.fetchone()
        except pg_errors.Error as exc:
            logger.error("account lookup failed: %s", exc)
            raise StorageError() from exc
        if not row:
            return None
        return self._map_record(row)

    def _translate_unique_violation(self, exc: pg_errors.UniqueViolation) -> Exception:
        constraint = exc.diag.constraint_name
        if constraint == SUPERADMIN_CONSTRAINT:
            return SuperadminExists()
        if constraint == EMAIL_CONSTRAINT:
            return DuplicateEmail()
        logger.error("unexpected unique violation on %s", constraint)
        return StorageError()

    def _map_record(self, row: tuple) -> AccountRecord:
        """Convert a raw database tuple into an ``AccountRecord``."""
        return AccountRecord(
            account_id=row[0],
            name=row[1],
            email=row[2],
            password_hash=row[3],
            role=Role(row[4]),
            modules=tuple(row[5] or ()),
            created_at=row[6],
            updated_at=row[7],
        )
