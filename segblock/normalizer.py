"""Website input normalization.

Turns free-text user input ("https://www.Example.com/path?q=1",
"example.com:8080", "WWW.EXAMPLE.COM") into the bare hostname that keys a
block rule ("example.com").
"""

import logging
from typing import Optional
from urllib.parse import urlsplit

from segblock.errors import InvalidUrl

logger = logging.getLogger(__name__)

SCHEMES = ("http://", "https://")
WWW_PREFIX = "www."

# Characters a browser refuses in a host name
FORBIDDEN_HOST_CHARS = frozenset("<>^|%\"`{}[]\\\x7f")


def normalize_url(raw: str) -> Optional[str]:
    """Normalize user input to a bare, lower-case hostname.

    Args:
        raw: URL or hostname as typed by the user

    Returns:
        Hostname without scheme, port, path or leading "www.", or None if
        the input cannot be parsed as a URL
    """
    url = raw.strip()
    if not url:
        return None

    if not url.lower().startswith(SCHEMES):
        url = "https://" + url

    # Browsers read a backslash in an http(s) URL as a path separator
    url = url.replace("\\", "/")

    try:
        parts = urlsplit(url)
        hostname = parts.hostname
        # Touching .port validates it (raises ValueError when out of range)
        parts.port
    except ValueError as e:
        logger.debug(f"Unparsable URL {raw!r}: {e}")
        return None

    if not hostname:
        return None

    if hostname.startswith(WWW_PREFIX):
        hostname = hostname[len(WWW_PREFIX):]

    if not hostname or any(
        c.isspace() or ord(c) < 0x20 or c in FORBIDDEN_HOST_CHARS for c in hostname
    ):
        return None

    return hostname


def require_url(raw: str) -> str:
    """Normalize input, raising InvalidUrl instead of returning None."""
    if not raw.strip():
        raise InvalidUrl("Please enter a website URL")

    hostname = normalize_url(raw)
    if hostname is None:
        raise InvalidUrl("Please enter a valid URL")
    return hostname
