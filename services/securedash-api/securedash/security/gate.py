"""Two-stage request gate: authenticate the bearer token, then authorize the role."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from fastapi import Depends, Header, Request

from ..domain.account import Account, Role
from ..domain.errors import Forbidden, Unauthenticated
from ..domain.service import AccountDirectory
from ..metrics import AUTH_FAILURES
from .tokens import TokenClaims, TokenError, TokenService

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True, slots=True)
class Caller:
    """Identity resolved in stage one; ``account`` is ``None`` if it was deleted."""

    claims: TokenClaims
    account: Account | None


def authenticate_request(
    authorization: str | None,
    tokens: TokenService,
    directory: AccountDirectory,
) -> Caller:
    """Resolve the caller behind an ``Authorization`` header or raise ``Unauthenticated``."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        AUTH_FAILURES.labels(reason="missing").inc()
        raise Unauthenticated("Not authorized, no token")

    token = authorization[len(BEARER_PREFIX):].strip()
    try:
        claims = tokens.verify(token)
    except TokenError as exc:
        # The reason stays server-side; clients always see the same message.
        AUTH_FAILURES.labels(reason=exc.reason).inc()
        logger.info("bearer token rejected (%s): %s", exc.reason, exc)
        raise Unauthenticated("Not authorized, token failed") from exc

    account = directory.find_by_id(claims.account_id)
    if account is None:
        logger.info("token subject %s no longer exists", claims.account_id)
    return Caller(claims=claims, account=account)


def authorize(caller: Caller, role: Role) -> Account:
    """Return the caller's account when it currently holds ``role``."""
    account = caller.account
    if account is None or account.role is not role:
        AUTH_FAILURES.labels(reason="forbidden").inc()
        raise Forbidden()
    return account


def get_directory(request: Request) -> AccountDirectory:
    """Resolve the `AccountDirectory` stored on the FastAPI application state."""
    directory: AccountDirectory = request.app.state.account_directory
    return directory


def get_token_service(request: Request) -> TokenService:
    tokens: TokenService = request.app.state.token_service
    return tokens


def get_caller(
    authorization: str | None = Header(default=None, alias="Authorization"),
    tokens: TokenService = Depends(get_token_service),
    directory: AccountDirectory = Depends(get_directory),
) -> Caller:
    return authenticate_request(authorization, tokens, directory)


def require_role(role: Role) -> Callable[..., Account]:
    """Build a dependency that runs stage one, then checks the caller holds ``role``."""

    def dependency(caller: Caller = Depends(get_caller)) -> Account:
        return authorize(caller, role)

    return dependency


require_superadmin = require_role(Role.SUPERADMIN)
