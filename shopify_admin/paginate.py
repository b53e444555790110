"""Pagination helpers."""
from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, Optional
from urllib.parse import parse_qs, urlsplit

from .errors import ResponseDecodingError
from .options import ListOptions, Options

if TYPE_CHECKING:
    from .client import ShopifyClient

LINK_RE = re.compile(r'^\s*<([^>]*)>;\s*rel="(previous|next)"\s*$')
BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2}).{0,2}")
LIMIT_RE = re.compile(r"[+-]?[0-9]+")


@dataclass
class Pagination:
    """Cursor options for the pages around the one just fetched."""

    next_page_options: Optional[ListOptions] = None
    previous_page_options: Optional[ListOptions] = None


def extract_pagination(link_header: str) -> Pagination:
    """Extract pagination cursors from a ``Link`` header.

    The header looks like::

        <https://shop.myshopify.com/admin/api/2024-01/products.json?page_info=abc&limit=2>; rel="next"

    with an optional ``rel="previous"`` entry separated by a comma. See
    https://shopify.dev/docs/api/usage/pagination-rest

    Raises:
        ResponseDecodingError: If an entry is malformed, its URL is invalid or
            it carries no ``page_info``.
        ValueError: If ``limit`` is present but not an integer.
    """
    pagination = Pagination()
    if not link_header:
        return pagination

    for link in link_header.split(","):
        match = LINK_RE.match(link)
        if match is None:
            raise ResponseDecodingError("could not extract pagination link header")
        url, rel = match.group(1), match.group(2)

        # Relative references are fine; a leading colon means an empty scheme.
        try:
            parts = urlsplit(url)
        except ValueError:
            parts = None
        if parts is None or url.startswith(":"):
            raise ResponseDecodingError("pagination does not contain a valid URL")

        bad_escape = BAD_ESCAPE_RE.search(parts.query)
        if bad_escape is not None:
            raise ResponseDecodingError(f"invalid URL escape {bad_escape.group(0)!r}")
        params = parse_qs(parts.query, keep_blank_values=True)

        page_info = params.get("page_info", [""])[0]
        if not page_info:
            raise ResponseDecodingError("page_info is missing")

        options = ListOptions(page_info=page_info)
        limit = params.get("limit", [""])[0]
        if limit:
            if not LIMIT_RE.fullmatch(limit):
                raise ValueError(f"invalid limit {limit!r}")
            options.limit = int(limit)

        if rel == "next":
            pagination.next_page_options = options
        else:
            pagination.previous_page_options = options

    return pagination


def cursor_pages(
    client: "ShopifyClient",
    path: str,
    resource_key: str,
    options: Optional[Options] = None,
    cancel: Optional[threading.Event] = None,
) -> Iterable[dict[str, Any]]:
    """
    Yield items from a paginated REST collection, following the ``next``
    cursor in each response's ``Link`` header until there is none.

    Args:
        client: A `ShopifyClient`.
        path: Collection path relative to the API prefix, e.g. ``"products.json"``.
        resource_key: Envelope key holding the list, e.g. ``"products"``.
        options: Options for the first request. Later requests only carry the
            cursor's ``page_info`` and ``limit``, as Shopify requires.
        cancel: Optional event that aborts the iteration when set.

    Yields:
        dict: Each entity from the collection, one at a time.

    Raises:
        ValueError: If a page does not contain `resource_key`.

    Example:
        >>> for order in cursor_pages(client, "orders.json", "orders", ListOptions(limit=250)):
        ...     print(order["id"])
    """

    page_options: Optional[Options] = options
    while True:
        page, pagination = client.list_with_pagination(path, page_options, cancel=cancel)
        if not isinstance(page, dict) or resource_key not in page:
            raise ValueError(f"response missing key '{resource_key}'")
        for item in page[resource_key]:
            yield item
        if pagination.next_page_options is None:
            break
        page_options = pagination.next_page_options
