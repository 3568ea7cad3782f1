from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from application.ports.session_gate import Session, SessionGate, UserAccount
from domain.exceptions import ConflictError, InfrastructureError, UnauthenticatedError
from domain.value_objects.caller_identity import CallerIdentity
from infrastructure.identity.passwords import (
    hash_password,
    new_session_token,
    token_digest,
    validate_credentials,
    verify_password,
)

if TYPE_CHECKING:
    from motor.motor_asyncio import AsyncIOMotorClient

    from infrastructure.config import Settings

logger = structlog.get_logger()


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


class MongoSessionGate(SessionGate):
    """Accounts in a ``users`` collection and sessions in a ``sessions`` collection.

    Session documents are keyed by the SHA-256 digest of the bearer token and
    carry a TTL index on ``expires_at``; expiry is also checked on every lookup
    because the TTL monitor only sweeps periodically.
    """

    def __init__(
        self,
        client: AsyncIOMotorClient,
        settings: Settings,
        *,
        password_iterations: int | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        super().__init__()
        self.client = client
        self.db = self.client[settings.mongo_db]
        self.users = self.db[settings.mongo_users_collection]
        self.sessions = self.db[settings.mongo_sessions_collection]
        self.session_ttl = timedelta(seconds=settings.session_ttl_seconds)
        self.password_iterations = password_iterations
        self.clock = clock

    async def ensure_indexes(self) -> None:
        await self.users.create_index([("email", ASCENDING)], unique=True, name="unique_email")
        await self.sessions.create_index(
            [("expires_at", ASCENDING)],
            expireAfterSeconds=0,
            name="session_expiry",
        )
        logger.info("session_indexes_ensured")

    async def register(self, email: str, password: str) -> UserAccount:
        normalized = validate_credentials(email, password)
        encoded = await asyncio.to_thread(
            hash_password,
            password,
            iterations=self.password_iterations,
        )
        now = self.clock()
        doc = {
            "_id": str(uuid4()),
            "email": normalized,
            "password_hash": encoded,
            "created_at": now,
            "updated_at": now,
        }
        try:
            await self.users.insert_one(doc)
        except DuplicateKeyError as e:
            msg = f"An account already exists for {normalized}"
            raise ConflictError(msg) from e
        except PyMongoError as e:
            raise InfrastructureError(str(e)) from e
        return self._to_account(doc)

    async def login(self, email: str, password: str) -> Session:
        try:
            doc = await self.users.find_one({"email": email.strip().lower()})
        except PyMongoError as e:
            raise InfrastructureError(str(e)) from e

        matches = await asyncio.to_thread(
            verify_password,
            password,
            doc.get("password_hash") if doc else None,
            iterations=self.password_iterations,
        )
        if doc is None or not matches:
            msg = "Invalid email or password"
            raise UnauthenticatedError(msg)

        token = new_session_token()
        now = self.clock()
        identity = CallerIdentity(user_id=str(doc["_id"]), email=doc["email"])
        expires_at = now + self.session_ttl
        try:
            await self.sessions.insert_one(
                {
                    "_id": token_digest(token),
                    "user_id": identity.user_id,
                    "email": identity.email,
                    "created_at": now,
                    "expires_at": expires_at,
                },
            )
        except PyMongoError as e:
            raise InfrastructureError(str(e)) from e

        self._notify(identity)
        return Session(token=token, identity=identity, expires_at=expires_at)

    async def logout(self, token: str) -> None:
        try:
            result = await self.sessions.delete_one({"_id": token_digest(token)})
        except PyMongoError as e:
            raise InfrastructureError(str(e)) from e
        if result.deleted_count:
            self._notify(None)

    async def resolve(self, token: str | None) -> CallerIdentity | None:
        if not token:
            return None
        try:
            doc = await self.sessions.find_one({"_id": token_digest(token)})
        except PyMongoError as e:
            raise InfrastructureError(str(e)) from e

        if doc is None or _as_utc(doc["expires_at"]) <= self.clock():
            return None
        return CallerIdentity(user_id=doc["user_id"], email=doc["email"])

    async def get_account(self, user_id: str) -> UserAccount | None:
        try:
            doc = await self.users.find_one({"_id": user_id})
        except PyMongoError as e:
            raise InfrastructureError(str(e)) from e
        return self._to_account(doc) if doc else None

    @staticmethod
    def _to_account(doc: dict[str, Any]) -> UserAccount:
        return UserAccount(
            user_id=str(doc["_id"]),
            email=doc["email"],
            created_at=_as_utc(doc["created_at"]),
            updated_at=_as_utc(doc["updated_at"]),
        )
