"""Utilities for issuing and validating application JWTs."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable

import jwt

from ..config import Settings, get_settings
from ..domain.account import Role

JWT_ALGORITHM = "HS256"
# Fixed session lifetime; there is no refresh flow.
TOKEN_TTL_SECONDS = 7 * 24 * 60 * 60


class TokenError(Exception):
    """Base class for token verification failures; the reason is for diagnostics only."""

    reason = "error"


class TokenMalformed(TokenError):
    reason = "malformed"


class TokenInvalid(TokenError):
    reason = "invalid"


class TokenExpired(TokenError):
    reason = "expired"


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """Identity carried by a verified access token."""

    account_id: str
    role: Role
    issued_at: int
    expires_at: int


class TokenService:
    """Stateless issuer and verifier of signed, time-limited identity tokens."""

    def __init__(
        self,
        secret: str,
        issuer: str,
        *,
        ttl_seconds: int = TOKEN_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret = secret
        self._issuer = issuer
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "TokenService":
        settings = settings or get_settings()
        return cls(settings.jwt_secret, settings.jwt_issuer)

    def issue(self, account_id: str, role: Role) -> str:
        """Create a signed JWT representing an authenticated account.

        Parameters
        ----------
        account_id:
            Account identifier to embed in the token `sub` claim.
        role:
            Role held by the account at issuance time.

        Returns
        -------
        str
            The encoded JWT, valid for :data:`TOKEN_TTL_SECONDS` from now.
        """

        now = int(self._clock())
        payload: dict[str, Any] = {
            "iss": self._issuer,
            "sub": account_id,
            "role": role.value,
            "iat": now,
            "exp": now + self._ttl_seconds,
        }
        return jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)

    def verify(self, token: str) -> TokenClaims:
        """Decode and verify a JWT returning its claims.

        Raises
        ------
        TokenMalformed
            When the token cannot be parsed or lacks required claims.
        TokenInvalid
            When the signature or issuer does not match.
        TokenExpired
            When the current time has reached the `exp` claim.
        """

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                issuer=self._issuer,
                # Expiry is checked below against the injected clock.
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": ["sub", "role", "iat", "exp"],
                },
            )
        except jwt.InvalidSignatureError as exc:
            raise TokenInvalid("signature verification failed") from exc
        except (jwt.InvalidIssuerError, jwt.InvalidAlgorithmError) as exc:
            raise TokenInvalid(str(exc)) from exc
        except jwt.InvalidTokenError as exc:
            raise TokenMalformed(str(exc)) from exc

        try:
            role = Role(payload["role"])
            expires_at = int(payload["exp"])
            issued_at = int(payload["iat"])
        except (TypeError, ValueError) as exc:
            raise TokenMalformed("unrecognised claim values") from exc

        if self._clock() >= expires_at:
            raise TokenExpired("token expired")

        return TokenClaims(
            account_id=str(payload["sub"]),
            role=role,
            issued_at=issued_at,
            expires_at=expires_at,
        )
