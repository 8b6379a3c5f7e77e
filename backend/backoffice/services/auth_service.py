# Overview: Service-layer operations for auth; pluggable credential check and bearer sessions.

"""
Authentication Service

WHY: The app has a single operator and no user model. Credential checking is
a capability (AuthProvider) injected at app creation so it can be swapped for
a real identity provider without touching routes.

SECURITY NOTES:
- ConfiguredCredentialProvider is a placeholder: one email and one bcrypt
  hash, both read from configuration. With either unset, every login fails.
- Session tokens are random (32 bytes), stored only as SHA-256 digests, and
  expire after SESSION_ABSOLUTE_TIMEOUT. They live in process memory and are
  lost on restart.
"""

from __future__ import annotations

import hashlib
import hmac
import re
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta

import bcrypt
from flask import current_app

from ..time_utils import utcnow


SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one letter and one digit
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Za-z]', password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    """Hash password using bcrypt with cost factor 12 (validated first)."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Verify password against bcrypt hash; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


class AuthProvider(ABC):
    """Capability: decide whether a login attempt is valid."""

    @abstractmethod
    def authenticate(self, email: str, password: str) -> str | None:
        """Return the authenticated principal (e.g. email) or None."""


class ConfiguredCredentialProvider(AuthProvider):
    """Single operator account from ADMIN_EMAIL / ADMIN_PASSWORD_HASH."""

    def __init__(self, email: str | None, password_hash: str | None):
        self._email = (email or "").strip().lower()
        self._password_hash = password_hash or ""

    def authenticate(self, email: str, password: str) -> str | None:
        if not self._email or not self._password_hash:
            return None
        candidate = (email or "").strip().lower()
        if not hmac.compare_digest(candidate, self._email):
            return None
        if not verify_password(password or "", self._password_hash):
            return None
        return self._email


@dataclass
class Session:
    principal: str
    created_at: datetime
    expires_at: datetime


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


class SessionRegistry:
    """Bearer tokens issued after a successful login."""

    def __init__(self, timeout: timedelta = SESSION_ABSOLUTE_TIMEOUT):
        self._timeout = timeout
        self._sessions: dict[str, Session] = {}

    def create(self, principal: str) -> tuple[Session, str]:
        token = secrets.token_hex(32)
        now = utcnow()
        session = Session(principal=principal, created_at=now, expires_at=now + self._timeout)
        self._sessions[hash_token(token)] = session
        return session, token

    def validate(self, token: str) -> Session | None:
        key = hash_token(token)
        session = self._sessions.get(key)
        if session is None:
            return None
        if session.expires_at <= utcnow():
            self._sessions.pop(key, None)
            return None
        return session

    def revoke(self, token: str) -> bool:
        return self._sessions.pop(hash_token(token), None) is not None


def get_auth_provider() -> AuthProvider:
    return current_app.extensions["auth_provider"]


def get_session_registry() -> SessionRegistry:
    return current_app.extensions["auth_sessions"]
