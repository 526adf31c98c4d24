"""
auth/service.py -- Registration and login flows.

register_user:  plaintext -> PasswordHasher -> UserStore.create_user
authenticate_user: UserStore.get_by_email -> PasswordHasher.verify

Routes call these rather than composing store + hasher themselves, so the
timing equalization in authenticate_user cannot be skipped by accident.

Layer rule: no imports from api/ or todos/.
"""

from __future__ import annotations

import logging

from auth.models import User
from auth.passwords import PasswordHasher
from auth.store import UserStore
from core.errors import BadCredentialsError, NotFoundError

logger = logging.getLogger("todovault.auth")


def register_user(store: UserStore, hasher: PasswordHasher, email: str, password: str) -> User:
    """Hash the password and persist a new user.

    Raises DuplicateEmailError when the email is taken (including when a
    concurrent registration wins the race), HashingError or StoreError on
    infrastructure failure.
    """
    hashed = hasher.hash(password)
    user = store.create_user(email, hashed)
    logger.info("Registered user id=%s", user.id)
    return user


def authenticate_user(store: UserStore, hasher: PasswordHasher, email: str, password: str) -> User:
    """Return the User whose credentials match, or raise BadCredentialsError.

    Always runs bcrypt whether or not the email exists:
    - Unknown email: bcrypt runs against the hasher's dummy hash
    - Wrong password: bcrypt runs against the real hash
    Both cost the same, so response time does not reveal registered emails.

    StoreError propagates: a database outage is a 500, not a failed login.
    """
    try:
        user = store.get_by_email(email)
    except NotFoundError:
        hasher.verify_dummy(password)
        raise BadCredentialsError("unknown email") from None
    if not hasher.verify(password, user.hashed_password):
        raise BadCredentialsError(f"password mismatch for user id={user.id}")
    return user
