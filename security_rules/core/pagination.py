"""
Page size policy and continuation tokens for ruleset listings.

Page sizes above MAX_PAGE_SIZE are rejected rather than clamped, so a
caller always receives pages of the size it asked for.
"""

import base64
import binascii
import json
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, Final

from security_rules.core.errors import InvalidArgumentError
from security_rules.core.models import RulesetMetadata, RulesetMetadataList
from security_rules.utils.validation import validate_page_size, validate_page_token

MAX_PAGE_SIZE: Final[int] = 100
DEFAULT_PAGE_SIZE: Final[int] = MAX_PAGE_SIZE


def normalize_page_request(
    page_size: int | None = None, page_token: str | None = None
) -> tuple[int, str | None]:
    """
    Apply defaults and local checks to listing parameters.

    Args:
        page_size: Requested page size, DEFAULT_PAGE_SIZE when None
        page_token: Token from a previous page, None to start from the beginning

    Returns:
        Tuple of (page_size, page_token) ready for the backend

    Raises:
        InvalidArgumentError: If page_size is outside 1..MAX_PAGE_SIZE or the
            token is not a non-empty string
    """
    size = DEFAULT_PAGE_SIZE if page_size is None else validate_page_size(page_size, MAX_PAGE_SIZE)
    token = None if page_token is None else validate_page_token(page_token)
    return size, token


def encode_page_token(offset: int) -> str:
    """Encode a listing offset as an opaque URL-safe token."""
    payload = json.dumps({"offset": offset}, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=")


def decode_page_token(token: str) -> int:
    """
    Decode a token produced by encode_page_token().

    Raises:
        InvalidArgumentError: If the token was not produced by encode_page_token()
    """
    padded = token + "=" * (-len(token) % 4)
    try:
        payload: Any = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise InvalidArgumentError(f"Invalid page token: {token!r}") from e

    offset = payload.get("offset") if isinstance(payload, dict) else None
    if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
        raise InvalidArgumentError(f"Invalid page token: {token!r}")
    return offset


async def iter_pages(
    fetch_page: Callable[[str | None], Awaitable[RulesetMetadataList]],
) -> AsyncIterator[RulesetMetadataList]:
    """
    Yield pages by chaining next_page_token values until the last page.

    Each page is fetched only when the consumer asks for it.
    """
    token: str | None = None
    while True:
        page = await fetch_page(token)
        yield page
        if not page.next_page_token:
            return
        token = page.next_page_token


async def iter_metadata(
    fetch_page: Callable[[str | None], Awaitable[RulesetMetadataList]],
) -> AsyncIterator[RulesetMetadata]:
    """Flatten iter_pages() into individual metadata entries."""
    async for page in iter_pages(fetch_page):
        for metadata in page.rulesets:
            yield metadata
