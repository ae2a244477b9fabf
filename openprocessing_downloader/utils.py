"""
Filename and URL helpers shared by the downloader modules.
"""

import logging
import posixpath
import re
from typing import Any

logger = logging.getLogger(__name__)

PLATFORM_ORIGIN = "https://openprocessing.org"

MAX_FILENAME_BYTES = 255

_ILLEGAL_CHARS = re.compile(r'[/\?<>\\:\*\|"]')
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]")
_RESERVED_NAMES = re.compile(r"^\.+$")
_WINDOWS_RESERVED = re.compile(r"^(con|prn|aux|nul|com[0-9]|lpt[0-9])(\..*)?$", re.IGNORECASE)
_WINDOWS_TRAILING = re.compile(r"[\. ]+$")
_WHITESPACE = re.compile(r"\s+")


def _truncate_utf8(value: str, limit: int) -> str:
    encoded = value.encode("utf-8")
    if len(encoded) <= limit:
        return value
    return encoded[:limit].decode("utf-8", errors="ignore")


def fit_filename(name: str, limit: int = MAX_FILENAME_BYTES) -> str:
    """Shorten ``name`` to ``limit`` UTF-8 bytes, keeping its extension."""
    if len(name.encode("utf-8")) <= limit:
        return name
    stem, suffix = posixpath.splitext(name)
    suffix_bytes = len(suffix.encode("utf-8"))
    if suffix_bytes >= limit // 2:
        return _truncate_utf8(name, limit)
    return _truncate_utf8(stem, limit - suffix_bytes) + suffix


def sanitize_filename(name: Any) -> str:
    """Turn an arbitrary title into a single safe path segment.

    Reserved and control characters are dropped, names that only consist of
    dots or match a Windows device name become empty, and interior whitespace
    is collapsed to underscores.
    """
    if name is None:
        return ""
    value = str(name)
    value = _ILLEGAL_CHARS.sub("", value)
    value = _CONTROL_CHARS.sub("", value)
    value = _RESERVED_NAMES.sub("", value)
    value = _WINDOWS_RESERVED.sub("", value)
    value = _WINDOWS_TRAILING.sub("", value)
    value = fit_filename(value)
    return _WHITESPACE.sub("_", value.strip())


def _join_url(base: str, filename: str) -> str:
    cleaned_base = base[:-1] if base.endswith("/") else base
    cleaned_name = filename[1:] if filename.startswith("/") else filename
    return f"{cleaned_base}/{cleaned_name}"


def resolve_asset_url(base_url: str, filename: str) -> str:
    """Build the absolute download URL of a sketch asset.

    Returns an empty string when the inputs cannot be resolved.
    """
    if not base_url:
        logger.error("😬 Missing asset base URL")
        return ""
    if not filename:
        logger.error("😬 Missing asset filename")
        return ""

    # Assets hosted on another domain (S3 and friends)
    if base_url.startswith("http"):
        return _join_url(base_url, filename)

    # Assets hosted on the platform itself
    if base_url.startswith("/"):
        return PLATFORM_ORIGIN + _join_url(base_url, filename)

    logger.error(f"😬 Failed to resolve asset URL (base: {base_url!r}, filename: {filename!r})")
    return ""


def unique_name(name: str, taken: set) -> str:
    """Return ``name`` or the first free ``stem_N.ext`` variant, and reserve it."""
    if name not in taken:
        taken.add(name)
        return name
    stem, suffix = posixpath.splitext(name)
    counter = 2
    while True:
        # The counter must not push the name past the filesystem limit
        tail = f"_{counter}{suffix}"
        candidate = _truncate_utf8(stem, MAX_FILENAME_BYTES - len(tail.encode("utf-8"))) + tail
        if candidate not in taken:
            taken.add(candidate)
            return candidate
        counter += 1
