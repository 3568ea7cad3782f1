"""Tests for account and session use cases."""

from __future__ import annotations

import pytest
from returns.result import Failure, Success

from application.dtos.auth_dtos import CredentialsRequest
from application.use_cases.auth_use_cases import (
    GetCurrentUserUseCase,
    LoginUseCase,
    LogoutUseCase,
    RegisterUserUseCase,
)
from domain.exceptions import InfrastructureError
from domain.value_objects.caller_identity import CallerIdentity
from infrastructure.identity.in_memory_session_gate import InMemorySessionGate

CREDENTIALS = CredentialsRequest(email="Alice@Example.com", password="correct horse")


@pytest.fixture
def session_gate() -> InMemorySessionGate:
    return InMemorySessionGate(password_iterations=1_000)


class FailingSessionGate(InMemorySessionGate):
    async def register(self, email: str, password: str):  # type: ignore[no-untyped-def]
        raise InfrastructureError("users collection unreachable")

    async def login(self, email: str, password: str):  # type: ignore[no-untyped-def]
        raise InfrastructureError("sessions collection unreachable")


class TestRegisterUserUseCase:
    @pytest.mark.asyncio
    async def test_register_normalises_email(self, session_gate) -> None:
        result = await RegisterUserUseCase(session_gate).execute(CREDENTIALS)

        assert isinstance(result, Success)
        user = result.unwrap()
        assert user.email == "alice@example.com"
        assert user.user_id
        assert user.created_at is not None

    @pytest.mark.asyncio
    async def test_duplicate_email_is_a_conflict(self, session_gate) -> None:
        use_case = RegisterUserUseCase(session_gate)
        await use_case.execute(CREDENTIALS)

        result = await use_case.execute(
            CredentialsRequest(email="alice@example.com", password="another password"),
        )

        assert result.failure().category == "conflict"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("email", "password"),
        [
            ("not-an-email", "long enough"),
            ("bob@example.com", "short"),
        ],
    )
    async def test_invalid_credentials_are_rejected(self, session_gate, email, password) -> None:
        result = await RegisterUserUseCase(session_gate).execute(
            CredentialsRequest(email=email, password=password),
        )

        assert result.failure().category == "validation"

    @pytest.mark.asyncio
    async def test_store_failure_is_reported(self) -> None:
        result = await RegisterUserUseCase(FailingSessionGate()).execute(CREDENTIALS)

        assert result.failure().category == "storage_unavailable"


class TestLoginUseCase:
    @pytest.mark.asyncio
    async def test_login_returns_token_for_registered_user(self, session_gate) -> None:
        await RegisterUserUseCase(session_gate).execute(CREDENTIALS)

        result = await LoginUseCase(session_gate).execute(CREDENTIALS)

        session = result.unwrap()
        assert session.token
        assert session.user.email == "alice@example.com"
        identity = await session_gate.resolve(session.token)
        assert identity == CallerIdentity(user_id=session.user.user_id, email="alice@example.com")

    @pytest.mark.asyncio
    async def test_wrong_password_is_unauthenticated(self, session_gate) -> None:
        await RegisterUserUseCase(session_gate).execute(CREDENTIALS)

        result = await LoginUseCase(session_gate).execute(
            CredentialsRequest(email=CREDENTIALS.email, password="wrong password"),
        )

        assert isinstance(result, Failure)
        assert result.failure().category == "unauthenticated"

    @pytest.mark.asyncio
    async def test_unknown_email_is_unauthenticated(self, session_gate) -> None:
        result = await LoginUseCase(session_gate).execute(CREDENTIALS)

        assert result.failure().category == "unauthenticated"

    @pytest.mark.asyncio
    async def test_store_failure_is_reported(self) -> None:
        result = await LoginUseCase(FailingSessionGate()).execute(CREDENTIALS)

        assert result.failure().category == "storage_unavailable"


class TestLogoutUseCase:
    @pytest.mark.asyncio
    async def test_logout_invalidates_token(self, session_gate) -> None:
        await RegisterUserUseCase(session_gate).execute(CREDENTIALS)
        session = (await LoginUseCase(session_gate).execute(CREDENTIALS)).unwrap()

        result = await LogoutUseCase(session_gate).execute(session.token)

        assert isinstance(result, Success)
        assert await session_gate.resolve(session.token) is None

    @pytest.mark.asyncio
    async def test_logout_without_token(self, session_gate) -> None:
        result = await LogoutUseCase(session_gate).execute(None)

        assert result.failure().category == "unauthenticated"


class TestGetCurrentUserUseCase:
    @pytest.mark.asyncio
    async def test_returns_account_of_caller(self, session_gate) -> None:
        account = (await RegisterUserUseCase(session_gate).execute(CREDENTIALS)).unwrap()
        caller = CallerIdentity(user_id=account.user_id, email=account.email)

        result = await GetCurrentUserUseCase(session_gate).execute(caller)

        assert result.unwrap().user_id == account.user_id

    @pytest.mark.asyncio
    async def test_requires_identity(self, session_gate) -> None:
        result = await GetCurrentUserUseCase(session_gate).execute(None)

        assert result.failure().category == "unauthenticated"

    @pytest.mark.asyncio
    async def test_unknown_account_is_not_found(self, session_gate, caller) -> None:
        result = await GetCurrentUserUseCase(session_gate).execute(caller)

        assert result.failure().category == "not_found"
