"""FastAPI dependency injection integration with Lagom."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header
from lagom import Container

from application.ports.session_gate import SessionGate
from domain.value_objects.caller_identity import CallerIdentity
from infrastructure.di.container import create_container
from infrastructure.logging import bind_caller


@lru_cache
def get_container() -> Container:
    """Get the DI container instance.

    Cached to ensure singleton behavior across requests.
    """
    return create_container()


def get_bearer_token(
    authorization: Annotated[str | None, Header()] = None,
) -> str | None:
    """Extract the session token from the Authorization header.

    Both ``Bearer <token>`` and a bare token are accepted.
    """
    if not authorization:
        return None
    token = authorization.strip()
    if token.lower().startswith("bearer "):
        token = token[len("bearer ") :].strip()
    return token or None


async def get_caller_identity(
    container: Annotated[Container, Depends(get_container)],
    token: Annotated[str | None, Depends(get_bearer_token)],
) -> CallerIdentity | None:
    """Resolve the caller, or None when there is no valid session.

    Use cases decide whether an anonymous caller is acceptable.
    """
    if token is None:
        return None
    session_gate = container[SessionGate]
    identity = await session_gate.resolve(token)
    if identity is not None:
        bind_caller(identity.user_id)
    return identity
