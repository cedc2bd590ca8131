from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    USER = "user"


# Roles an account can be given through registration or administrative update.
ASSIGNABLE_ROLES: frozenset[Role] = frozenset({Role.ADMIN, Role.USER})


@dataclass(slots=True)
class Account:
    """Aggregate root for a dashboard principal, without its credential hash."""

    account_id: str
    name: str
    email: str
    role: Role
    modules: tuple[str, ...]
    created_at: datetime
    updated_at: datetime
