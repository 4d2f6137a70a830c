# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Registration, login and token validation over the two credential stores."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, TypeVar

from chefai.auth.passwords import hash_password, needs_rehash, verify_password
from chefai.auth.session import sign_session, verify_session
from chefai.auth.users import (
    DEFAULT_AVATAR,
    MIN_PASSWORD_LENGTH,
    NewUser,
    UserRecord,
    is_valid_email,
    normalize_email,
    normalize_name,
)
from chefai.infra.errors import DuplicateEmail, StoreError
from chefai.infra.signup_repo import SignupAuditStore, SignupContext
from chefai.infra.user_store import CredentialStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

INVALID_CREDENTIALS = "Invalid email or password"


class AuthError(Exception):
    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidInput(AuthError):
    status_code = 400


class InvalidCredentials(AuthError):
    status_code = 401

    def __init__(self, message: str = INVALID_CREDENTIALS) -> None:
        super().__init__(message)


class InvalidToken(AuthError):
    status_code = 401


class UserNotFound(AuthError):
    status_code = 404


class EmailTaken(AuthError):
    status_code = 409

    def __init__(self, message: str = "An account with this email already exists") -> None:
        super().__init__(message)


class StorageUnavailable(AuthError):
    status_code = 503

    def __init__(self, message: str = "Database connection failed. Please try again later.") -> None:
        super().__init__(message)


def with_fallback(
    primary: CredentialStore,
    fallback: CredentialStore,
    op: Callable[[CredentialStore], T],
    *,
    action: str = "operation",
) -> Tuple[T, bool]:
    """Run ``op`` on the primary store, or once on the fallback if it fails.

    Returns ``(result, used_fallback)``. Only storage errors switch stores;
    errors raised by the fallback propagate.
    """
    try:
        return op(primary), False
    except StoreError as exc:
        logger.warning("%s: %s store failed (%s), using %s store", action, primary.name, exc, fallback.name)
    return op(fallback), True


@dataclass(frozen=True)
class AuthResult:
    user: UserRecord
    token: str
    used_fallback: bool = False
    signup_recorded: bool = False


class AuthService:
    def __init__(
        self,
        *,
        secret_key: str,
        primary: CredentialStore,
        fallback: CredentialStore,
        signups: Optional[SignupAuditStore] = None,
    ) -> None:
        self._secret = secret_key
        self.primary = primary
        self.fallback = fallback
        self.signups = signups
        self._dummy_hash: Optional[str] = None

    def issue_token(self, user: UserRecord) -> str:
        return sign_session(user.id, user.email, self._secret)

    # ------------------ register ------------------

    def register(
        self,
        name: object,
        email: object,
        password: object,
        *,
        ctx: Optional[SignupContext] = None,
    ) -> AuthResult:
        if not name or not email or not password:
            raise InvalidInput("Name, email, and password are required")
        if not all(isinstance(v, str) for v in (name, email, password)):
            raise InvalidInput("Name, email, and password must be text")
        clean_name = normalize_name(name)
        clean_email = normalize_email(email)
        plain = password
        if not clean_name:
            raise InvalidInput("Name, email, and password are required")
        if not is_valid_email(clean_email):
            raise InvalidInput("Please enter a valid email address")
        if len(plain) < MIN_PASSWORD_LENGTH:
            raise InvalidInput(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

        def _create(store: CredentialStore) -> UserRecord:
            if store.find_by_email(clean_email) is not None:
                logger.info("Registration rejected: email already in %s store", store.name)
                raise EmailTaken()
            new_user = NewUser(
                name=clean_name,
                email=clean_email,
                password_hash=hash_password(plain),
                avatar=DEFAULT_AVATAR,
            )
            try:
                return store.create(new_user)
            except DuplicateEmail as exc:
                raise EmailTaken() from exc

        try:
            user, used_fallback = with_fallback(self.primary, self.fallback, _create, action="register")
        except StoreError as exc:
            logger.error("Registration failed, no credential store writable: %s", exc)
            raise AuthError("Internal server error", status_code=500) from exc
        logger.info("User %s registered in %s store", user.id, (self.fallback if used_fallback else self.primary).name)

        signup_recorded = False
        if not used_fallback and self.signups is not None:
            try:
                self.signups.record(user, ctx or SignupContext())
                signup_recorded = True
            except StoreError as exc:
                logger.warning("Signup audit record not saved for %s: %s", user.id, exc)

        return AuthResult(
            user=user,
            token=self.issue_token(user),
            used_fallback=used_fallback,
            signup_recorded=signup_recorded,
        )

    # ------------------ login ------------------

    def _burn_hash(self, plain: str) -> None:
        # Keep the unknown-email path about as slow as a real verification.
        if self._dummy_hash is None:
            self._dummy_hash = hash_password("chefai-dummy-password")
        verify_password(self._dummy_hash, plain)

    def login(self, email: object, password: object) -> AuthResult:
        if not email or not password:
            raise InvalidInput("Email and password are required")
        if not isinstance(email, str) or not isinstance(password, str):
            raise InvalidInput("Email and password must be text")
        clean_email = normalize_email(email)
        plain = password

        try:
            user, used_fallback = with_fallback(
                self.primary, self.fallback, lambda s: s.find_by_email(clean_email), action="login"
            )
        except StoreError as exc:
            logger.error("Login failed, no credential store reachable: %s", exc)
            raise StorageUnavailable() from exc

        if user is None:
            logger.info("Login rejected: unknown email")
            self._burn_hash(plain)
            raise InvalidCredentials()
        if not verify_password(user.password_hash, plain):
            logger.info("Login rejected: bad password for %s", user.id)
            raise InvalidCredentials()
        if needs_rehash(user.password_hash):
            logger.warning("User %s has a password hash with outdated argon2 parameters", user.id)

        logger.info("User %s logged in", user.id)
        return AuthResult(user=user, token=self.issue_token(user), used_fallback=used_fallback)

    # ------------------ validate ------------------

    def validate(self, token: Optional[str]) -> UserRecord:
        if not token:
            raise InvalidToken("No token provided")
        session = verify_session(token, self._secret)
        if session is None:
            raise InvalidToken("Invalid token")

        try:
            user, _ = with_fallback(
                self.primary, self.fallback, lambda s: s.find_by_id(session.user_id), action="validate"
            )
        except StoreError as exc:
            logger.error("Token validation failed, no credential store reachable: %s", exc)
            raise StorageUnavailable() from exc

        if user is None:
            raise UserNotFound("User not found")
        return user
