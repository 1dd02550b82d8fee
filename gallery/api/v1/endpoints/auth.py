from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from gallery.api.v1.deps.rate_limit import rate_limit_login
from gallery.api.v1.deps.services import get_auth_service
from gallery.core import responses
from gallery.core.exceptions import http_exceptions
from gallery.core.exceptions.domain import UnauthorizedError
from gallery.core.utils import get_client_ip
from gallery.schemas import LoginRequest, LoginResponse
from gallery.services.auth_service import AuthService

router = APIRouter()


@router.post(
    "/login",
    response_model=LoginResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(rate_limit_login)],
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": responses.BadRequestResponse},
        status.HTTP_401_UNAUTHORIZED: {"model": responses.UnauthorizedResponse},
        status.HTTP_429_TOO_MANY_REQUESTS: responses.THROTTLED_RESPONSE,
    },
    summary="Login for access token",
    description="Check the gallery owner credentials and return a bearer token.",
)
async def login(
    credentials: LoginRequest,
    request: Request,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
):
    """
    Throttled before the credentials are looked at, so the sixth attempt in a
    window is refused even with the right password.
    """
    try:
        return await auth_service.login(
            username=credentials.username,
            password=credentials.password.get_secret_value(),
            client_ip=get_client_ip(request),
        )
    except UnauthorizedError as e:
        raise http_exceptions.UnauthorizedException(detail=e.message)
