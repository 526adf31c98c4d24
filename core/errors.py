"""
core/errors.py -- Typed error hierarchy shared by every TodoVault layer.

Each class carries the HTTP status the boundary maps it to, a machine-readable
code, and a generic public message. Stores and auth components raise these;
api/main.py has one exception handler that turns them into ErrorResponse
envelopes. Nothing dispatches on message text.

Internal detail (the failing operation, the token rejection reason) goes in
the optional `detail` argument. It is logged, never sent to the client.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or todos/.
"""

from __future__ import annotations


class TodoVaultError(Exception):
    """Base class for every expected failure in the application."""

    status_code: int = 500
    code: str = "internal_error"
    public_message: str = "An unexpected error occurred."

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.public_message)
        self.detail = detail


# ---------------------------------------------------------------------------
# 400 -- malformed or missing input
# ---------------------------------------------------------------------------


class ValidationError(TodoVaultError):
    status_code = 400
    code = "validation_error"
    public_message = "Request validation failed."


class InvalidPatchError(ValidationError):
    """An update supplied none of the mutable fields."""

    code = "invalid_patch"
    public_message = "At least one of title or completed must be provided."


# ---------------------------------------------------------------------------
# 401 -- missing, invalid, or expired credentials
# ---------------------------------------------------------------------------


class AuthenticationError(TodoVaultError):
    status_code = 401
    code = "unauthorized"
    public_message = "Authentication required."


class BadCredentialsError(AuthenticationError):
    """Login failed. Deliberately silent about whether the email exists."""

    code = "bad_credentials"
    public_message = "Invalid email or password."


class MissingCredentialsError(AuthenticationError):
    code = "missing_credentials"


class MalformedAuthHeaderError(AuthenticationError):
    code = "malformed_auth_header"


class TokenError(AuthenticationError):
    """Base for every reason a presented access token is rejected."""

    code = "invalid_token"


class InvalidSignatureError(TokenError):
    code = "invalid_signature"


class AlgorithmMismatchError(TokenError):
    code = "algorithm_mismatch"


class ExpiredTokenError(TokenError):
    code = "token_expired"


class MalformedClaimsError(TokenError):
    code = "malformed_claims"


# ---------------------------------------------------------------------------
# 404 -- missing or foreign-owned resource (indistinguishable on purpose)
# ---------------------------------------------------------------------------


class NotFoundError(TodoVaultError):
    status_code = 404
    code = "not_found"
    public_message = "Resource not found."

    def __init__(self, detail: str | None = None, *, public_message: str | None = None) -> None:
        super().__init__(detail)
        if public_message:
            self.public_message = public_message


# ---------------------------------------------------------------------------
# 400 -- uniqueness conflicts
# ---------------------------------------------------------------------------


class ConflictError(TodoVaultError):
    status_code = 400
    code = "conflict"
    public_message = "The request conflicts with an existing resource."


class DuplicateEmailError(ConflictError):
    code = "email_taken"
    public_message = "Email already registered."


# ---------------------------------------------------------------------------
# 500 -- infrastructure failures
# ---------------------------------------------------------------------------


class DependencyError(TodoVaultError):
    status_code = 500
    code = "dependency_error"
    public_message = "An unexpected error occurred."


class StoreError(DependencyError):
    """Storage failed or timed out. Never raised for a plain missing row."""

    code = "store_error"


class HashingError(DependencyError):
    code = "hashing_error"


class SigningError(DependencyError):
    code = "signing_error"
