"""
auth/dependencies.py -- The auth gate and its FastAPI Depends() helper.

Per-request state machine:
  Unauthenticated -> header present? -> "Bearer <token>"? -> token verified?
  -> Principal injected (proceed)
Any "no" raises an AuthenticationError subclass. The exception handler in
api/main.py turns it into a 401. Because FastAPI resolves dependencies
before the route body runs, a rejected request never reaches a store.

AuthGate is the only producer of Principal. Routes declare
`principal: Principal = Depends(require_principal)` and pass the principal
straight into TodoStore, which requires it on every method. No handler reads
the Authorization header or the token itself.

Layer rule: no imports from api/ or todos/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import Principal
from auth.tokens import TokenService
from core.errors import MalformedAuthHeaderError, MissingCredentialsError


class AuthGate:
    """Turn an Authorization header into a verified Principal.

    The verifier (and the signing secret inside it) is injected at startup.

    Usage:
        gate = AuthGate(TokenService(settings.jwt_secret))
        principal = gate.authenticate("Bearer eyJhbGciOi...")
    """

    scheme = "bearer"

    def __init__(self, verifier: TokenService) -> None:
        self.verifier = verifier

    def authenticate(self, authorization: str | None) -> Principal:
        """Return the Principal for a raw Authorization header value.

        Raises:
          MissingCredentialsError  -- header absent or blank
          MalformedAuthHeaderError -- not exactly two parts, or scheme is not Bearer
          TokenError subclasses    -- from the verifier
        """
        if authorization is None or not authorization.strip():
            raise MissingCredentialsError("no Authorization header")

        parts = authorization.split()
        if len(parts) != 2 or parts[0].lower() != self.scheme:
            raise MalformedAuthHeaderError("expected 'Bearer <token>'")

        return self.verifier.verify(parts[1])


def require_principal(request: Request) -> Principal:
    """Require a valid bearer token. Raises 401 (via AuthenticationError) otherwise.

    Use as a FastAPI dependency:
        @router.get("/todos")
        def route(principal: Principal = Depends(require_principal)): ...

    The verified principal is also bound to request.state.principal so the
    request logging middleware can attribute the call.
    """
    gate: AuthGate = request.app.state.auth_gate
    principal = gate.authenticate(request.headers.get("Authorization"))
    request.state.principal = principal
    return principal
