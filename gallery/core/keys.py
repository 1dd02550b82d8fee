"""
Storage key and file name sanitation.

Paths are validated and rejected (never rewritten) because they route into
storage keys. File names only affect the display name of an upload, so they
are repaired instead.
"""

import re
import unicodedata
from urllib.parse import unquote

from gallery.core.constants import ROUTE_KEY_SEPARATOR, FileNameRules
from gallery.core.exceptions.domain import InvalidPathError

_SEGMENT_SPLIT = re.compile(r"[/\\]")
_DIRECTORY_PART = re.compile(r"^.*[/\\]", re.DOTALL)
_DOT_RUNS = re.compile(r"\.{2,}")
_REPEATED_SLASHES = re.compile(r"/{2,}")


def is_safe_key(key: str) -> bool:
    """
    Check that a path or key has no parent-directory segment and no leading
    separator, in either slash convention.
    """
    if key.startswith(("/", "\\")):
        return False

    return ".." not in _SEGMENT_SPLIT.split(key)


def sanitize_path(path: str) -> str:
    """
    Validate an upload path.

    Args:
        path: Folder path supplied by the client, e.g. "albums/2024/"

    Returns:
        The path unchanged

    Raises:
        InvalidPathError: If the path contains ".." segments or starts with a separator
    """
    if not is_safe_key(path):
        raise InvalidPathError("Invalid path")

    return path


def _truncate(name: str) -> str:
    max_length = FileNameRules.MAX_LENGTH
    stem, dot, extension = name.rpartition(".")

    if dot and stem and len(extension) < FileNameRules.MAX_EXTENSION_LENGTH:
        stem = stem[: max_length - len(extension) - 1].rstrip(".")
        return f"{stem}.{extension}"

    return name[:max_length].rstrip(".")


def sanitize_file_name(name: str) -> str:
    """
    Repair an uploaded file name into a safe, non-empty display name.

    Args:
        name: Client supplied file name, possibly with directories

    Returns:
        A name of at most 255 characters with no separators, no control
        characters, no leading dot and no dot runs
    """
    name = _DIRECTORY_PART.sub("", name)

    name = "".join(
        char
        for char in name
        if char not in FileNameRules.ILLEGAL_CHARACTERS and unicodedata.category(char) != "Cc"
    )

    if name in (".", ".."):
        name = FileNameRules.PLACEHOLDER

    if name.startswith("."):
        name = FileNameRules.PLACEHOLDER + name

    if name.split(".", 1)[0].upper() in FileNameRules.RESERVED_NAMES:
        name = f"{FileNameRules.PLACEHOLDER}_{name}"

    name = _DOT_RUNS.sub(".", name).rstrip(".")

    if len(name) > FileNameRules.MAX_LENGTH:
        name = _truncate(name)

    return name or FileNameRules.PLACEHOLDER


def build_object_key(prefix: str, path: str, file_name: str) -> str:
    """
    Assemble the storage key of an upload.

    The path is validated first and the assembled key is validated again,
    both checks have to pass.

    Args:
        prefix: Configured upload prefix
        path: Folder path supplied by the client
        file_name: Original file name of the upload

    Returns:
        Storage key such as "photos/albums/2024/beach.jpg"

    Raises:
        InvalidPathError: If the path or the assembled key is unsafe
    """
    sanitize_path(path)

    parts = [part for part in (prefix, path, sanitize_file_name(file_name)) if part]
    key = _REPEATED_SLASHES.sub("/", "/".join(parts))

    if not is_safe_key(key):
        raise InvalidPathError("Invalid file path")

    return key


def decode_route_key(raw_key: str) -> str:
    """
    Decode an object route key.

    Route keys join URL-encoded key segments with "___" so that a full key
    fits into one path parameter: "albums___beach%20day.jpg" -> "albums/beach day.jpg"
    """
    return "/".join(unquote(segment) for segment in raw_key.split(ROUTE_KEY_SEPARATOR))


def is_allowed_file_type(content_type: str | None, allowed_types: str) -> bool:
    """
    Check a MIME type against a comma-separated allow list, empty list allows all.
    """
    if not allowed_types.strip():
        return True

    allowed = {item.strip() for item in allowed_types.split(",") if item.strip()}
    return (content_type or "") in allowed
