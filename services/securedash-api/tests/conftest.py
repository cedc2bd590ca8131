from __future__ import annotations

import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Iterable

import pytest
from argon2 import PasswordHasher
from fastapi import FastAPI
from fastapi.testclient import TestClient

from securedash.api import routes
from securedash.api.errors import register_error_handlers
from securedash.domain.account import Role
from securedash.domain.contracts import CreateAccountInput
from securedash.domain.errors import DuplicateEmail, SuperadminExists
from securedash.domain.service import AccountDirectory
from securedash.repository import AccountRecord
from securedash.security.passwords import CredentialHasher
from securedash.security.tokens import TokenService

TEST_SECRET = "test-secret-with-enough-bytes-for-hs256"
TEST_ISSUER = "securedash.test"
START_TIME = 1_700_000_000.0


class FakeRepository:
    """In-memory repository mimicking the Postgres unique indexes."""

    def __init__(self) -> None:
        self._accounts: dict[str, AccountRecord] = {}
        self._lock = threading.Lock()
        self.fail_with: Exception | None = None

    def create_account(self, payload: CreateAccountInput) -> AccountRecord:
        with self._lock:
            self._raise_if_failing()
            if payload.role is Role.SUPERADMIN and any(
                record.role is Role.SUPERADMIN for record in self._accounts.values()
            ):
                raise SuperadminExists()
            if any(record.email == payload.email for record in self._accounts.values()):
                raise DuplicateEmail()
            now = datetime.now(timezone.utc)
            record = AccountRecord(
                account_id=str(uuid.uuid4()),
                name=payload.name,
                email=payload.email,
                password_hash=payload.password_hash,
                role=payload.role,
                modules=tuple(payload.modules),
                created_at=now,
                updated_at=now,
            )
            self._accounts[record.account_id] = record
            return record

    def get_account(self, account_id: str) -> AccountRecord | None:
        self._raise_if_failing()
        return self._accounts.get(account_id)

    def get_account_by_email(self, email: str) -> AccountRecord | None:
        self._raise_if_failing()
        for record in self._accounts.values():
            if record.email == email:
                return record
        return None

    def superadmin_exists(self) -> bool:
        return any(record.role is Role.SUPERADMIN for record in self._accounts.values())

    def list_accounts(self, roles: Iterable[Role]) -> list[AccountRecord]:
        wanted = set(roles)
        return [record for record in self._accounts.values() if record.role in wanted]

    def update_account(self, account_id: str, changes: dict[str, Any]) -> AccountRecord | None:
        with self._lock:
            current = self._accounts.get(account_id)
            if current is None:
                return None
            email = changes.get("email")
            if email is not None and any(
                record.email == email and record.account_id != account_id
                for record in self._accounts.values()
            ):
                raise DuplicateEmail()
            updated = replace(current, **changes, updated_at=datetime.now(timezone.utc))
            self._accounts[account_id] = updated
            return updated

    def delete_account(self, account_id: str) -> bool:
        with self._lock:
            return self._accounts.pop(account_id, None) is not None

    def all_records(self) -> list[AccountRecord]:
        return list(self._accounts.values())

    def _raise_if_failing(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with


class FakeClock:
    """Controllable stand-in for ``time.time``."""

    def __init__(self, now: float = START_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tokens(clock: FakeClock) -> TokenService:
    return TokenService(TEST_SECRET, TEST_ISSUER, clock=clock)


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def hasher() -> CredentialHasher:
    # Cheap argon2 parameters keep the suite fast.
    return CredentialHasher(PasswordHasher(time_cost=1, memory_cost=8, parallelism=1))


@pytest.fixture
def directory(repository: FakeRepository, hasher: CredentialHasher, tokens: TokenService) -> AccountDirectory:
    return AccountDirectory(repository, hasher, tokens)


@pytest.fixture
def api_client(directory: AccountDirectory, tokens: TokenService):
    """Provide a FastAPI test client with isolated state."""
    app = FastAPI()
    register_error_handlers(app)
    app.include_router(routes.router)
    app.state.account_directory = directory
    app.state.token_service = tokens

    with TestClient(app) as client:
        yield client


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
