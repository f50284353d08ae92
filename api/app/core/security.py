"""Identifier generation and the allow-lists guarding generated script text.

Project ids and the API base URL are embedded verbatim into JavaScript that
runs on third-party sites, so anything outside these allow-lists is refused
before it reaches the script generator.
"""

import re
import secrets
from urllib.parse import urlsplit

SAFE_IDENTIFIER = re.compile(r"^[A-Za-z0-9_-]{1,64}$")

# Characters that could terminate a string literal or a <script> element
_UNSAFE_URL_CHARS = re.compile(r"[\s\"'`\\<>\x00-\x1f\x7f\u2028\u2029]")


def generate_project_id() -> str:
    return f"proj_{secrets.token_urlsafe(9)}"


def generate_event_id() -> str:
    return f"evt_{secrets.token_urlsafe(9)}"


def is_safe_identifier(value: str | None) -> bool:
    return bool(value) and SAFE_IDENTIFIER.fullmatch(value) is not None


def is_safe_base_url(value: str | None) -> bool:
    """Absolute http(s) URL with a host and no characters that could break out
    of a JavaScript string literal."""
    if not value or _UNSAFE_URL_CHARS.search(value):
        return False
    parts = urlsplit(value)
    return parts.scheme in ("http", "https") and bool(parts.netloc)
