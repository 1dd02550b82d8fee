from fastapi import Request

from gallery.core.constants import UNKNOWN_CLIENT


def get_client_ip(request: Request) -> str:
    """
    Get client IP address from the proxy headers

    Args:
        request: FastAPI request object

    Returns:
        Client IP address, or "unknown" when no proxy header carries one.
        All such clients share a single rate limit bucket.
    """
    if ip := request.headers.get("CF-Connecting-IP", "").strip():
        return ip

    if "X-Forwarded-For" in request.headers:
        if ip := request.headers["X-Forwarded-For"].split(",")[0].strip():
            return ip

    if ip := request.headers.get("X-Real-IP", "").strip():
        return ip

    return UNKNOWN_CLIENT


def format_size(size: int) -> str:
    """
    Human readable byte count, used in quota messages and logs

    Args:
        size (int): Number of bytes

    Returns:
        str: e.g. "512 B", "1.50 MB", "6.00 GB"
    """
    if size >= 1024 * 1024 * 1024:
        return f"{size / 1024 ** 3:.2f} GB"

    if size >= 1024 * 1024:
        return f"{size / 1024 ** 2:.2f} MB"

    if size >= 1024:
        return f"{size / 1024:.2f} KB"

    return f"{size} B"
