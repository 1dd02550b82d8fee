"""
Stateless HS256 bearer tokens.

A token is `base64url(header).base64url(claims).base64url(hmac)`. Nothing is
stored server side: rotating the secret key is the only revocation.
"""

import time
from collections.abc import Mapping
from numbers import Real
from typing import Any

from fastapi import Request
from jose import jwk, jwt
from jose.exceptions import JOSEError
from jose.utils import base64url_encode

from gallery.core.exceptions.base import GalleryException

ALGORITHM = "HS256"
BEARER_SCHEME = "bearer"
MAX_TOKEN_LENGTH = 8192


class TokenError(GalleryException):
    """
    Token could not be issued (bad claims or unusable secret)
    """

    def __init__(self, message, exception: Exception | None = None):
        super().__init__(message, exception)


def constant_time_compare(left: str | bytes, right: str | bytes) -> bool:
    """
    Compare two values without exiting at the first differing byte.

    Args:
        left: Value supplied by the client
        right: Value computed by the server

    Returns:
        True when both values are byte-for-byte equal
    """
    if isinstance(left, str):
        left = left.encode()
    if isinstance(right, str):
        right = right.encode()

    if not right:
        return not left

    diff = len(left) ^ len(right)
    for index, byte in enumerate(left):
        diff |= byte ^ right[index % len(right)]

    return diff == 0


def _sign(signing_input: bytes, secret: str) -> bytes:
    key = jwk.construct(secret, ALGORITHM)
    return base64url_encode(key.sign(signing_input))


def issue_token(
    claims: Mapping[str, Any],
    secret: str,
    ttl_seconds: int | None = None,
    *,
    now: float | None = None,
) -> str:
    """
    Issue a signed token

    Args:
        claims: Identity claim and any additional claims
        secret: HMAC signing secret
        ttl_seconds: Lifetime, adds an `exp` claim when given
        now: Issue time in epoch seconds (defaults to the current time)

    Returns:
        Encoded token

    Raises:
        TokenError: If the claims cannot be serialized or the secret is unusable
    """
    to_encode = dict(claims)

    if ttl_seconds is not None:
        issued_at = time.time() if now is None else now
        to_encode["exp"] = int(issued_at) + ttl_seconds

    try:
        return jwt.encode(to_encode, secret, algorithm=ALGORITHM)
    except (JOSEError, TypeError, ValueError) as e:
        raise TokenError("Could not issue token", e)


def verify_token(token: str, secret: str, *, now: float | None = None) -> dict[str, Any] | None:
    """
    Verify a token and return its claims.

    Every failure (shape, signature, header, payload, expiry) returns None so
    callers cannot tell which check rejected the token.

    Args:
        token: Encoded token presented by the client
        secret: HMAC signing secret
        now: Verification time in epoch seconds (defaults to the current time)

    Returns:
        Decoded claims or None when the token is invalid
    """
    if not token or not isinstance(token, str) or len(token) > MAX_TOKEN_LENGTH:
        return None

    segments = token.split(".")
    if len(segments) != 3 or not all(segments):
        return None

    header_segment, payload_segment, signature_segment = segments

    try:
        expected = _sign(f"{header_segment}.{payload_segment}".encode(), secret)
        if not constant_time_compare(signature_segment.encode(), expected):
            return None

        header = jwt.get_unverified_header(token)
        claims = jwt.get_unverified_claims(token)
    except (JOSEError, UnicodeError):
        return None

    if header.get("alg") != ALGORITHM:
        return None

    if "exp" in claims:
        expires_at = claims["exp"]
        if isinstance(expires_at, bool) or not isinstance(expires_at, Real):
            return None

        current_time = time.time() if now is None else now
        if expires_at <= current_time:
            return None

    return claims


def extract_token(request: Request) -> str | None:
    """
    Read a bearer credential from the Authorization header

    Args:
        request: Incoming request

    Returns:
        The raw token, or None when no bearer credential was supplied
    """
    authorization = request.headers.get("Authorization")
    if not authorization:
        return None

    scheme, _, credential = authorization.partition(" ")
    if scheme.lower() != BEARER_SCHEME:
        return None

    return credential.strip() or None
