from typing import Annotated

from fastapi import APIRouter, Depends, status
from lagom import Container

from application.dtos.auth_dtos import CredentialsRequest, SessionResponse, UserResponse
from application.use_cases.auth_use_cases import (
    GetCurrentUserUseCase,
    LoginUseCase,
    LogoutUseCase,
    RegisterUserUseCase,
)
from domain.value_objects.caller_identity import CallerIdentity
from interfaces.api.middleware import handle_use_case_errors
from interfaces.dependencies import get_bearer_token, get_caller_identity, get_container

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
@handle_use_case_errors
async def register(
    request: CredentialsRequest,
    container: Annotated[Container, Depends(get_container)],
) -> UserResponse:
    use_case = container[RegisterUserUseCase]
    return await use_case.execute(request)


@router.post("/login", status_code=status.HTTP_200_OK)
@handle_use_case_errors
async def login(
    request: CredentialsRequest,
    container: Annotated[Container, Depends(get_container)],
) -> SessionResponse:
    """Exchange credentials for a bearer token."""
    use_case = container[LoginUseCase]
    return await use_case.execute(request)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
@handle_use_case_errors
async def logout(
    container: Annotated[Container, Depends(get_container)],
    token: Annotated[str | None, Depends(get_bearer_token)],
) -> None:
    use_case = container[LogoutUseCase]
    return await use_case.execute(token)


@router.get("/me", status_code=status.HTTP_200_OK)
@handle_use_case_errors
async def me(
    container: Annotated[Container, Depends(get_container)],
    caller: Annotated[CallerIdentity | None, Depends(get_caller_identity)],
) -> UserResponse:
    """Return the account behind the bearer token."""
    use_case = container[GetCurrentUserUseCase]
    return await use_case.execute(caller)
