"""
auth/tokens.py -- JWT access token issuance and verification.

Security design decisions:
  JWT: python-jose with HS256 and nothing else. The signing secret and the
       token lifetime are constructor arguments. They are read from Settings
       once at startup and never looked up again at call time.

  Verification order:
       1. Header alg must be exactly HS256, checked before any signature work.
          This rejects "none" and any other algorithm an attacker might pick
          (AlgorithmMismatchError).
       2. Signature must validate against the secret. A token that cannot
          even be decoded also lands here (InvalidSignatureError).
       3. Claims are parsed once into TokenClaims. Missing or mistyped sub/exp
          gives a typed failure instead of a KeyError later
          (MalformedClaimsError).
       4. now >= exp is expired. There is no leeway (ExpiredTokenError).
       python-jose's own exp check is disabled so step 4 uses the injected
       clock and the "at or past" boundary.

  All four failures subclass TokenError -> AuthenticationError, so the HTTP
  layer answers every one with the same 401. The distinct codes survive for
  logging.

  No revocation list: a token is valid for its whole lifetime once issued.

Layer rule: no imports from api/ or todos/.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt
from jose.exceptions import JOSEError
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from auth.models import Principal, User
from core.errors import (
    AlgorithmMismatchError,
    ExpiredTokenError,
    InvalidSignatureError,
    MalformedClaimsError,
    SigningError,
)

logger = logging.getLogger("todovault.auth")

ALGORITHM = "HS256"

# Disable every python-jose claim check; TokenClaims and verify() own them.
_DECODE_OPTIONS = {
    "verify_exp": False,
    "verify_iat": False,
    "verify_nbf": False,
    "verify_sub": False,
    "verify_aud": False,
    "verify_iss": False,
    "verify_jti": False,
    "verify_at_hash": False,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenClaims(BaseModel):
    """The claims payload, validated once at deserialization."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    sub: str = Field(strict=True, pattern=r"^[1-9][0-9]*$")
    exp: int = Field(strict=True)
    email: Optional[str] = Field(default=None, strict=True)
    iat: Optional[int] = Field(default=None, strict=True)


@dataclass(frozen=True)
class AccessToken:
    """An issued token plus the expiry the login response reports."""

    token: str
    expires_at: datetime
    expires_in: int


class TokenService:
    """Issue and verify HS256 access tokens.

    Usage:
        tokens = TokenService(settings.jwt_secret, settings.token_expire_seconds)
        issued = tokens.issue(user)
        principal = tokens.verify(issued.token)
    """

    def __init__(
        self,
        secret_key: str,
        ttl_seconds: int = 24 * 3600,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if not secret_key:
            raise ValueError("TokenService requires a non-empty secret key.")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive.")
        self._secret_key = secret_key
        self.ttl_seconds = ttl_seconds
        self._clock = clock or _utcnow

    def issue(self, user: User) -> AccessToken:
        """Sign a token for a persisted user. Raises SigningError if signing fails."""
        if user.id is None:
            raise ValueError("Cannot issue a token for a user that has not been stored.")
        now = self._clock()
        exp = int((now + timedelta(seconds=self.ttl_seconds)).timestamp())
        payload = {
            "sub": str(user.id),
            "email": user.email,
            "iat": int(now.timestamp()),
            "exp": exp,
        }
        try:
            token = jwt.encode(payload, self._secret_key, algorithm=ALGORITHM)
        except JOSEError as exc:
            logger.error("Token signing failed: %s", type(exc).__name__)
            raise SigningError("jwt.encode failed") from exc
        return AccessToken(
            token=token,
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
            expires_in=self.ttl_seconds,
        )

    def verify(self, token: str) -> Principal:
        """Return the Principal a token was issued to, or raise a TokenError subclass."""
        try:
            header = jwt.get_unverified_header(token)
        except JOSEError as exc:
            raise InvalidSignatureError("token could not be decoded") from exc

        alg = header.get("alg")
        if alg != ALGORITHM:
            raise AlgorithmMismatchError(f"unexpected alg {str(alg)[:16]!r}")

        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[ALGORITHM], options=_DECODE_OPTIONS)
        except JOSEError as exc:
            raise InvalidSignatureError("signature verification failed") from exc

        try:
            claims = TokenClaims.model_validate(payload)
        except PydanticValidationError as exc:
            fields = ",".join(str(err["loc"][0]) for err in exc.errors() if err.get("loc"))
            raise MalformedClaimsError(f"invalid claims: {fields}") from exc

        if self._clock().timestamp() >= claims.exp:
            raise ExpiredTokenError("token expired")

        return Principal(user_id=int(claims.sub), email=claims.email)
