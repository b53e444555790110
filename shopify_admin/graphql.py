"""Throttle-aware GraphQL execution."""
from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any, Mapping, Optional

from .errors import RateLimitError, ResponseDecodingError, ResponseError
from .throttle import GraphQLCost

if TYPE_CHECKING:
    from .client import ShopifyClient

GRAPHQL_PATH = "graphql.json"
THROTTLED = "THROTTLED"


def _error_code(error: Any) -> Optional[str]:
    if not isinstance(error, Mapping):
        return None
    extensions = error.get("extensions")
    if not isinstance(extensions, Mapping):
        return None
    return extensions.get("code")


def _error_message(error: Any) -> str:
    if isinstance(error, Mapping):
        return str(error.get("message", ""))
    return str(error)


_MALFORMED = object()


def _cost_extension(doc: Mapping[str, Any]) -> Any:
    """Return ``extensions.cost``, ``None`` if absent, ``_MALFORMED`` if not objects."""
    extensions = doc.get("extensions")
    if extensions is None:
        return None
    if not isinstance(extensions, Mapping):
        return _MALFORMED
    cost = extensions.get("cost")
    if cost is None:
        return None
    if not isinstance(cost, Mapping):
        return _MALFORMED
    if not isinstance(cost.get("throttleStatus", {}) or {}, Mapping):
        return _MALFORMED
    return cost


def execute(
    client: "ShopifyClient",
    query: str,
    variables: Optional[Mapping[str, Any]] = None,
    cancel: Optional[threading.Event] = None,
) -> Any:
    """Execute a GraphQL query against the Shopify Admin API.

    GraphQL reports throttling in the body with HTTP 200, so this loop sits
    on top of the REST retry loop and retries ``THROTTLED`` errors itself,
    waiting as long as the cost extension says the bucket needs to refill.
    Attempts from both loops count against the same retry budget.

    Args:
        client: The `ShopifyClient` to send through
        query: The GraphQL query string to execute
        variables: Optional mapping of variables for the query
        cancel: Optional event that aborts the call when set

    Returns:
        The ``data`` member of the response.

    Raises:
        RateLimitError: If the query is still throttled when the retry budget
            is spent; ``retry_after`` is the suggested wait.
        ResponseError: For any other query errors, all messages included.

    Example:
        >>> data = execute(client, "{ shop { name } }")
        >>> data["shop"]["name"]
        'Fooshop'
    """
    payload = {"query": query, "variables": variables}
    attempts = 0

    while True:
        exchange = client.send_request("POST", GRAPHQL_PATH, data=payload, cancel=cancel)
        attempts += exchange.attempts
        doc = client.decode(exchange.response)
        if not isinstance(doc, Mapping):
            raise ResponseDecodingError(
                "graphql response is not a JSON object",
                body=exchange.response.content,
                status=exchange.response.status_code,
            )

        wait = 0.0
        cost = _cost_extension(doc)
        if cost is _MALFORMED:
            raise ResponseDecodingError(
                "graphql extensions are not a JSON object",
                body=exchange.response.content,
                status=exchange.response.status_code,
            )
        if cost:
            graphql_cost = GraphQLCost.from_extensions(cost)
            wait = graphql_cost.retry_after_seconds()
            client.rate_limit_tracker.update_from_graphql_cost(graphql_cost, wait)

        errors = doc.get("errors")
        if not errors:
            return doc.get("data")
        if not isinstance(errors, list):
            errors = [errors]

        messages = []
        throttled = False
        for error in errors:
            message = _error_message(error)
            if _error_code(error) == THROTTLED:
                if attempts >= client.session.retries:
                    raise RateLimitError(200, message, retry_after=int(wait))
                throttled = True
            messages.append(message)

        if throttled:
            client.log.debug("graphql query throttled, waiting %.2fs", wait)
            client.wait(wait, cancel)
            continue

        raise ResponseError(200, errors=messages)
