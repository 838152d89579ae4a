"""Explicit session context passed into review controllers.

A SessionContext is created once the authentication service resolves a
user and closed on logout; nothing in flashreview caches the current user
at module scope.
"""

from __future__ import annotations

import logging
from typing import Protocol

from flashreview.config import AppConfig
from flashreview.schemas import SessionUser

logger = logging.getLogger(__name__)


class Unauthenticated(Exception):
    """No authenticated user is available for this operation."""


class AuthService(Protocol):
    """Authentication collaborator: resolves the signed-in user."""

    def current_user(self) -> SessionUser | None: ...


class StaticAuthService:
    """Resolves the session user from configuration."""

    def __init__(self, user: SessionUser | None) -> None:
        self._user = user

    @classmethod
    def from_config(cls, config: AppConfig) -> StaticAuthService:
        if not config.user_id:
            return cls(None)
        return cls(SessionUser(id=config.user_id, email=config.user_email))

    def current_user(self) -> SessionUser | None:
        return self._user


class SessionContext:
    """The signed-in user for the lifetime of one login."""

    def __init__(self, user: SessionUser) -> None:
        self._user = user
        self._active = True

    @property
    def user(self) -> SessionUser:
        if not self._active:
            raise Unauthenticated("Session has been closed")
        return self._user

    @property
    def user_id(self) -> str:
        return self.user.id

    @property
    def is_active(self) -> bool:
        return self._active

    def close(self) -> None:
        """End the session (logout). Further user lookups raise."""
        if self._active:
            logger.debug("Closing session for user %s", self._user.id)
        self._active = False


def open_session(auth: AuthService) -> SessionContext:
    """Resolve the current user and start a session.

    Raises:
        Unauthenticated: If the auth service has no signed-in user.
    """
    user = auth.current_user()
    if user is None:
        raise Unauthenticated("No user is signed in")
    logger.debug("Opened session for user %s", user.id)
    return SessionContext(user)
