"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass, field

from .account import Role


@dataclass(slots=True)
class CreateAccountInput:
    """Validated, normalised inputs required to persist a new account."""

    name: str
    email: str
    password_hash: str
    role: Role = Role.USER
    modules: tuple[str, ...] = field(default_factory=tuple)


@dataclass(slots=True)
class AccountPatch:
    """Partial update for an account; ``None`` means leave the field untouched."""

    name: str | None = None
    email: str | None = None
    password: str | None = None
    role: Role | str | None = None
    modules: list[str] | None = None
