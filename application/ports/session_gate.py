from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from datetime import datetime

    from domain.value_objects.caller_identity import CallerIdentity

logger = structlog.get_logger()

IdentityListener = Callable[["CallerIdentity | None"], None]


@dataclass(frozen=True)
class UserAccount:
    user_id: str
    email: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Session:
    token: str
    identity: CallerIdentity
    expires_at: datetime


class SessionGate(ABC):
    """Resolves caller identities and manages credential sessions.

    The gate raises domain exceptions:
    - ValidationError: Malformed email or a password that is too short
    - ConflictError: Registering an email that already has an account
    - UnauthenticatedError: Wrong credentials on login
    - InfrastructureError: When the backing store fails
    """

    def __init__(self) -> None:
        self._listeners: list[IdentityListener] = []

    async def ensure_indexes(self) -> None:  # noqa: B027
        """Create backing indexes, where the store has any."""

    @abstractmethod
    async def register(self, email: str, password: str) -> UserAccount:
        pass

    @abstractmethod
    async def login(self, email: str, password: str) -> Session:
        pass

    @abstractmethod
    async def logout(self, token: str) -> None:
        pass

    @abstractmethod
    async def resolve(self, token: str | None) -> CallerIdentity | None:
        """Return the identity behind a session token, or None if it is absent, unknown or expired."""

    @abstractmethod
    async def get_account(self, user_id: str) -> UserAccount | None:
        pass

    def on_identity_change(self, listener: IdentityListener) -> Callable[[], None]:
        """Subscribe to login/logout notifications. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, identity: CallerIdentity | None) -> None:
        for listener in list(self._listeners):
            try:
                listener(identity)
            except Exception:
                logger.exception("identity_listener_failed", listener=repr(listener))
