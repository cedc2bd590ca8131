"""Account directory orchestrating persistence, credential checks and token issuance."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable

from .account import ASSIGNABLE_ROLES, Account, Role
from .contracts import AccountPatch, CreateAccountInput
from .errors import (
    DuplicateEmail,
    InvalidCredentials,
    InvalidModules,
    InvalidPayload,
    InvalidRole,
    NotFound,
    SuperadminExists,
)
from .modules import AVAILABLE_MODULES, all_modules, invalid_modules
from ..metrics import LOGINS
from ..repository import AccountRecord, PostgresAccountRepository
from ..security.passwords import CredentialHasher
from ..security.tokens import TokenService

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


@dataclass(slots=True)
class LoginResult:
    """Token plus the profile returned to a freshly authenticated account."""

    token: str
    account: Account


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AccountDirectory:
    """Account workflows that enforce the role and module-entitlement invariants."""

    def __init__(
        self,
        repository: PostgresAccountRepository,
        hasher: CredentialHasher,
        tokens: TokenService,
    ) -> None:
        """Store dependencies used to orchestrate persistence and token issuance."""
        self._repository = repository
        self._hasher = hasher
        self._tokens = tokens

    def bootstrap_superadmin(self, name: str, email: str, password: str) -> Account:
        """Create the one and only superadmin, entitled to every catalog module.

        The existence check is a fast path; the storage layer's unique index on the
        superadmin role decides races between concurrent bootstrap calls.
        """
        if self._repository.superadmin_exists():
            raise SuperadminExists()
        record = self._repository.create_account(
            CreateAccountInput(
                name=self._clean_name(name),
                email=self._clean_email(email),
                password_hash=self._hash_password(password),
                role=Role.SUPERADMIN,
                modules=AVAILABLE_MODULES,
            )
        )
        logger.info("superadmin %s bootstrapped", record.account_id)
        return record.to_domain()

    def authenticate(self, email: str, password: str) -> Account:
        """Return the account matching the credentials or raise ``InvalidCredentials``."""
        record = self._repository.get_account_by_email(normalize_email(email))
        if record is None:
            self._hasher.burn(password)
            raise InvalidCredentials()
        if not self._hasher.verify(password, record.password_hash):
            raise InvalidCredentials()
        return record.to_domain()

    def login(self, email: str, password: str) -> LoginResult:
        try:
            account = self.authenticate(email, password)
        except InvalidCredentials:
            LOGINS.labels(outcome="rejected").inc()
            raise
        LOGINS.labels(outcome="accepted").inc()
        token = self._tokens.issue(account.account_id, account.role)
        return LoginResult(token=token, account=account)

    def register(
        self,
        name: str,
        email: str,
        password: str,
        role: Role | str,
        modules: Iterable[str] = (),
    ) -> Account:
        """Create an admin or user account.

        Callers are expected to have passed the superadmin gate already; this
        method validates the payload only.
        """
        assigned_role = self._assignable_role(role)
        granted = self._validated_modules(modules)
        clean_email = self._clean_email(email)
        if self._repository.get_account_by_email(clean_email) is not None:
            raise DuplicateEmail()
        record = self._repository.create_account(
            CreateAccountInput(
                name=self._clean_name(name),
                email=clean_email,
                password_hash=self._hash_password(password),
                role=assigned_role,
                modules=granted,
            )
        )
        logger.info("account %s registered with role %s", record.account_id, record.role.value)
        return record.to_domain()

    def update(self, account_id: str, patch: AccountPatch, *, acting_as_admin: bool) -> Account:
        """Apply a partial update.

        Self-service updates (``acting_as_admin=False``) may only change the name,
        email and password; any role or modules in the patch are ignored. All
        validation happens before the single write, so a rejected patch leaves
        the account unchanged.
        """
        current = self._repository.get_account(account_id)
        if current is None:
            raise NotFound()

        changes: dict[str, Any] = {}
        if acting_as_admin:
            changes.update(self._privileged_changes(current, patch))
        if patch.name is not None:
            changes["name"] = self._clean_name(patch.name)
        if patch.email is not None:
            clean_email = self._clean_email(patch.email)
            if clean_email != current.email:
                holder = self._repository.get_account_by_email(clean_email)
                if holder is not None and holder.account_id != account_id:
                    raise DuplicateEmail()
                changes["email"] = clean_email
        if patch.password is not None:
            changes["password_hash"] = self._hash_password(patch.password)

        record = self._repository.update_account(account_id, changes)
        if record is None:
            raise NotFound()
        return record.to_domain()

    def list_accounts(self, roles: Iterable[Role | str] = (Role.ADMIN, Role.USER)) -> list[Account]:
        """List admin/user accounts; the superadmin is never part of the listing."""
        wanted = [self._assignable_role(role) for role in roles]
        return [record.to_domain() for record in self._repository.list_accounts(wanted)]

    def remove(self, account_id: str) -> None:
        if not self._repository.delete_account(account_id):
            raise NotFound()
        logger.info("account %s removed", account_id)

    def get_by_id(self, account_id: str) -> Account:
        account = self.find_by_id(account_id)
        if account is None:
            raise NotFound()
        return account

    def find_by_id(self, account_id: str) -> Account | None:
        """Return the account or ``None`` when it no longer exists."""
        record = self._repository.get_account(account_id)
        return record.to_domain() if record else None

    def _privileged_changes(self, current: AccountRecord, patch: AccountPatch) -> dict[str, Any]:
        changes: dict[str, Any] = {}
        if patch.role is not None:
            if current.role is Role.SUPERADMIN:
                raise InvalidRole("Super Admin role cannot be changed")
            changes["role"] = self._assignable_role(patch.role)
        if patch.modules is not None:
            granted = self._validated_modules(patch.modules)
            if current.role is Role.SUPERADMIN:
                if frozenset(granted) != all_modules():
                    raise InvalidPayload("Super Admin modules cannot be changed")
            else:
                changes["modules"] = granted
        return changes

    def _assignable_role(self, role: Role | str) -> Role:
        try:
            parsed = Role(role)
        except ValueError as exc:
            raise InvalidRole() from exc
        if parsed not in ASSIGNABLE_ROLES:
            raise InvalidRole()
        return parsed

    def _validated_modules(self, modules: Iterable[str]) -> tuple[str, ...]:
        requested = list(modules)
        offending = invalid_modules(requested)
        if offending:
            raise InvalidModules(offending)
        return tuple(dict.fromkeys(requested))

    def _clean_name(self, name: str) -> str:
        cleaned = name.strip()
        if not cleaned:
            raise InvalidPayload("Name is required")
        return cleaned

    def _clean_email(self, email: str) -> str:
        cleaned = normalize_email(email)
        if not cleaned or "@" not in cleaned:
            raise InvalidPayload("Email is required")
        return cleaned

    def _hash_password(self, password: str) -> str:
        if len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidPayload(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return self._hasher.hash(password)
