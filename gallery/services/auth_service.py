import time
from dataclasses import dataclass, field
from typing import Any, Protocol

from fastapi import Request
from loguru import logger
from pwdlib import PasswordHash
from pwdlib.exceptions import UnknownHashError

from gallery.core.config import AuthMode, settings
from gallery.core.exceptions.domain import UnauthorizedError
from gallery.core.tokens import constant_time_compare, extract_token, issue_token, verify_token
from gallery.schemas import LoginResponse
from gallery.services.cache.rate_limiter import RateLimiter

password_hash = PasswordHash.recommended()


@dataclass(frozen=True)
class Identity:
    """Authenticated gallery owner"""

    username: str
    method: AuthMode
    claims: dict[str, Any] = field(default_factory=dict)


def credentials_match(username: str, password: str) -> bool:
    """
    Compare credentials with the configured owner.

    Both comparisons always run so the response time does not tell which
    one failed. A configured pwdlib hash takes precedence over the plain
    password setting.
    """
    username_ok = constant_time_compare(username, settings.gallery_username)

    if settings.gallery_password_hash:
        try:
            password_ok = password_hash.verify(password, settings.gallery_password_hash)
        except UnknownHashError:
            logger.error("GALLERY_PASSWORD_HASH is not a recognized password hash")
            password_ok = False
    else:
        password_ok = constant_time_compare(
            password, settings.gallery_password.get_secret_value()
        )

    return username_ok and password_ok


class AuthStrategy(Protocol):
    """
    One way of proving identity.

    `authenticate` returns None when the request carries no credential for
    this strategy and raises UnauthorizedError when it carries a bad one.
    """

    mode: AuthMode

    def authenticate(self, request: Request) -> Identity | None: ...


class TokenAuthStrategy:
    """Signed bearer token issued by /api/login"""

    mode = AuthMode.TOKEN

    def authenticate(self, request: Request) -> Identity | None:
        token = extract_token(request)
        if token is None:
            return None

        claims = verify_token(token, settings.secret_key.get_secret_value())
        if claims is None:
            raise UnauthorizedError()

        username = claims.get("username")
        if not isinstance(username, str) or not constant_time_compare(
            username, settings.gallery_username
        ):
            raise UnauthorizedError()

        return Identity(username=username, method=self.mode, claims=claims)


class LegacyCredentialStrategy:
    """
    Raw username and password sent with every request.

    Read from the x-username / x-password headers, falling back to the
    username / password query parameters. No expiry and no signature.
    """

    mode = AuthMode.LEGACY

    def authenticate(self, request: Request) -> Identity | None:
        username = request.headers.get("x-username") or request.query_params.get("username")
        password = request.headers.get("x-password") or request.query_params.get("password")

        if not username or not password:
            return None

        if not credentials_match(username, password):
            raise UnauthorizedError()

        return Identity(username=username, method=self.mode)


_STRATEGIES: dict[AuthMode, AuthStrategy] = {
    AuthMode.TOKEN: TokenAuthStrategy(),
    AuthMode.LEGACY: LegacyCredentialStrategy(),
}


def get_auth_strategy() -> AuthStrategy:
    """Strategy selected by settings.auth_mode"""
    return _STRATEGIES[settings.auth_mode]


class AuthService:
    """
    Login handling for the single gallery owner.

    Raises UnauthorizedError, which the deps layer translates to HTTP 401.
    """

    def __init__(self, limiter: RateLimiter):
        self.limiter = limiter

    async def login(self, username: str, password: str, client_ip: str) -> LoginResponse:
        """
        Check the owner credentials and issue a bearer token.

        Args:
            username: Submitted username
            password: Submitted password (plaintext)
            client_ip: Caller address, kept with failed attempts

        Returns:
            LoginResponse, with a token when the token flow is active

        Raises:
            UnauthorizedError: If username or password is incorrect
        """
        if not credentials_match(username, password):
            await self.limiter.record_login_failure(client_ip, username)
            raise UnauthorizedError("Incorrect username or password")

        logger.info(f"Successful login from {client_ip}")

        if settings.auth_mode == AuthMode.LEGACY:
            return LoginResponse(success=True)

        token = issue_token(
            {"username": username, "sub": username, "iat": int(time.time())},
            settings.secret_key.get_secret_value(),
            settings.access_token_expire_seconds,
        )

        return LoginResponse(
            success=True,
            access_token=token,
            token_type="Bearer",
            expires_in=settings.access_token_expire_seconds,
        )
