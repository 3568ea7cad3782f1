import structlog
from returns.result import Failure, Result, Success

from application.dtos.auth_dtos import CredentialsRequest, SessionResponse, UserResponse
from application.dtos.errors import AppError
from application.ports.session_gate import SessionGate
from domain.exceptions import (
    ConflictError,
    InfrastructureError,
    UnauthenticatedError,
    ValidationError,
)
from domain.value_objects.caller_identity import CallerIdentity

logger = structlog.get_logger()


class RegisterUserUseCase:
    """Create an account for an email/password pair."""

    def __init__(self, session_gate: SessionGate) -> None:
        self.session_gate = session_gate

    async def execute(self, request: CredentialsRequest) -> Result[UserResponse, AppError]:
        try:
            account = await self.session_gate.register(request.email, request.password)
        except ValidationError as e:
            return Failure(AppError("validation", f"Validation error: {e!s}"))
        except ConflictError as e:
            return Failure(AppError("conflict", str(e)))
        except InfrastructureError as e:
            return Failure(AppError("storage_unavailable", f"Failed to register: {e!s}"))

        logger.info("user_registered", user_id=account.user_id)
        return Success(
            UserResponse(
                user_id=account.user_id,
                email=account.email,
                created_at=account.created_at,
            ),
        )


class LoginUseCase:
    def __init__(self, session_gate: SessionGate) -> None:
        self.session_gate = session_gate

    async def execute(self, request: CredentialsRequest) -> Result[SessionResponse, AppError]:
        try:
            session = await self.session_gate.login(request.email, request.password)
        except UnauthenticatedError as e:
            return Failure(AppError("unauthenticated", str(e)))
        except InfrastructureError as e:
            return Failure(AppError("storage_unavailable", f"Failed to log in: {e!s}"))

        return Success(
            SessionResponse(
                token=session.token,
                expires_at=session.expires_at,
                user=UserResponse(
                    user_id=session.identity.user_id,
                    email=session.identity.email,
                ),
            ),
        )


class LogoutUseCase:
    def __init__(self, session_gate: SessionGate) -> None:
        self.session_gate = session_gate

    async def execute(self, token: str | None) -> Result[None, AppError]:
        if not token:
            return Failure(AppError("unauthenticated", "No session to end"))
        try:
            await self.session_gate.logout(token)
        except InfrastructureError as e:
            return Failure(AppError("storage_unavailable", f"Failed to log out: {e!s}"))
        return Success(None)


class GetCurrentUserUseCase:
    """Return the account behind the caller's session."""

    def __init__(self, session_gate: SessionGate) -> None:
        self.session_gate = session_gate

    async def execute(self, caller: CallerIdentity | None) -> Result[UserResponse, AppError]:
        if caller is None:
            return Failure(AppError("unauthenticated", "Invalid authorization"))

        try:
            account = await self.session_gate.get_account(caller.user_id)
        except InfrastructureError as e:
            return Failure(AppError("storage_unavailable", f"Failed to load account: {e!s}"))

        if account is None:
            return Failure(AppError("not_found", "User not found"))

        return Success(
            UserResponse(
                user_id=account.user_id,
                email=account.email,
                created_at=account.created_at,
            ),
        )
