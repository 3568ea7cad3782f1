from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from uuid import uuid4

from application.ports.session_gate import Session, SessionGate, UserAccount
from domain.exceptions import ConflictError, UnauthenticatedError
from domain.value_objects.caller_identity import CallerIdentity
from infrastructure.identity.passwords import (
    hash_password,
    new_session_token,
    token_digest,
    validate_credentials,
    verify_password,
)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class InMemorySessionGate(SessionGate):
    """Accounts and sessions held in process memory. Lost on restart."""

    def __init__(
        self,
        *,
        session_ttl_seconds: int = 7 * 24 * 60 * 60,
        password_iterations: int | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        super().__init__()
        self.session_ttl = timedelta(seconds=session_ttl_seconds)
        self.password_iterations = password_iterations
        self.clock = clock
        self._accounts: dict[str, UserAccount] = {}
        self._password_hashes: dict[str, str] = {}
        self._sessions: dict[str, Session] = {}

    async def register(self, email: str, password: str) -> UserAccount:
        normalized = validate_credentials(email, password)
        self._ensure_unregistered(normalized)

        encoded = await asyncio.to_thread(
            hash_password,
            password,
            iterations=self.password_iterations,
        )
        # Another registration for the same email may have finished meanwhile
        self._ensure_unregistered(normalized)

        now = self.clock()
        account = UserAccount(
            user_id=str(uuid4()),
            email=normalized,
            created_at=now,
            updated_at=now,
        )
        self._accounts[normalized] = account
        self._password_hashes[normalized] = encoded
        return account

    def _ensure_unregistered(self, normalized: str) -> None:
        if normalized in self._accounts:
            msg = f"An account already exists for {normalized}"
            raise ConflictError(msg)

    async def login(self, email: str, password: str) -> Session:
        normalized = email.strip().lower()
        matches = await asyncio.to_thread(
            verify_password,
            password,
            self._password_hashes.get(normalized),
            iterations=self.password_iterations,
        )
        account = self._accounts.get(normalized)
        if account is None or not matches:
            msg = "Invalid email or password"
            raise UnauthenticatedError(msg)

        token = new_session_token()
        session = Session(
            token=token,
            identity=CallerIdentity(user_id=account.user_id, email=account.email),
            expires_at=self.clock() + self.session_ttl,
        )
        self._sessions[token_digest(token)] = session
        self._notify(session.identity)
        return session

    async def logout(self, token: str) -> None:
        if self._sessions.pop(token_digest(token), None) is not None:
            self._notify(None)

    async def resolve(self, token: str | None) -> CallerIdentity | None:
        if not token:
            return None
        session = self._sessions.get(token_digest(token))
        if session is None:
            return None
        if session.expires_at <= self.clock():
            del self._sessions[token_digest(token)]
            return None
        return session.identity

    async def get_account(self, user_id: str) -> UserAccount | None:
        return next(
            (account for account in self._accounts.values() if account.user_id == user_id),
            None,
        )
