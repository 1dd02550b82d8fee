from typing import Annotated

from fastapi import Depends, Request

from gallery.core.config import AuthMode, settings
from gallery.core.exceptions import http_exceptions
from gallery.core.exceptions.domain import UnauthorizedError
from gallery.services.auth_service import AuthStrategy, Identity, get_auth_strategy


def _unauthorized(detail: str = "Unauthorized") -> http_exceptions.UnauthorizedException:
    headers = {"WWW-Authenticate": "Bearer"} if settings.auth_mode == AuthMode.TOKEN else None

    return http_exceptions.UnauthorizedException(detail=detail, headers=headers)


async def get_optional_identity(
    request: Request,
    strategy: Annotated[AuthStrategy, Depends(get_auth_strategy)],
) -> Identity | None:
    """
    Authenticate the request if it carries a credential

    Args:
        request: FastAPI request object
        strategy: Active authentication strategy

    Returns:
        Identity, or None when no credential was supplied

    Raises:
        UnauthorizedException: If a credential was supplied but is invalid
    """
    try:
        return strategy.authenticate(request)
    except UnauthorizedError as e:
        raise _unauthorized(e.message)


async def get_current_identity(
    identity: Annotated[Identity | None, Depends(get_optional_identity)],
) -> Identity:
    """Identity required, used by the write operations"""
    if identity is None:
        raise _unauthorized()

    return identity


async def get_reader_identity(
    identity: Annotated[Identity | None, Depends(get_optional_identity)],
) -> Identity | None:
    """
    Read access: anyone in guest mode, otherwise the owner only.

    A wrong credential is rejected even in guest mode.
    """
    if identity is None and not settings.guest_mode:
        raise _unauthorized()

    return identity
