"""Client for the Shopify Admin API."""
from __future__ import annotations

import json
import logging
import posixpath
import threading
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Mapping, Optional, Union
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

import requests
from requests.auth import HTTPBasicAuth

from . import graphql
from .errors import (
    RateLimitError,
    RequestBuildError,
    RequestCancelledError,
    ResponseDecodingError,
    TransportError,
    check_response_error,
)
from .options import Options, encode_options
from .paginate import Pagination, extract_pagination
from .resources import (
    InventoryLevelService,
    PayoutService,
    ShopService,
    SmartCollectionService,
)
from .session import ShopifySession
from .throttle import RateLimitInfo, RateLimitTracker

__version__ = "0.1.0"
USER_AGENT = f"shopify-admin/{__version__}"

logger = logging.getLogger(__name__)


@dataclass
class Exchange:
    """A successful response and the number of attempts it took."""

    response: requests.Response
    attempts: int


def _resolve_url(session: ShopifySession, path: str, options: Optional[Options]) -> str:
    # A leading slash would resolve against the host root and skip the prefix.
    rel = posixpath.join(session.path_prefix, path.lstrip("/"))
    try:
        parts = urlsplit(urljoin(session.base_url, rel))
    except ValueError as exc:
        raise RequestBuildError(f"invalid path {path!r}: {exc}") from exc

    if options is None:
        return urlunsplit(parts)

    # Literal query parameters on the path come first; options are appended.
    query = parse_qsl(parts.query, keep_blank_values=True)
    query.extend(encode_options(options))
    return urlunsplit(parts._replace(query=urlencode(query)))


def build_request(
    session: ShopifySession,
    method: str,
    path: str,
    body: Any = None,
    options: Optional[Options] = None,
) -> requests.PreparedRequest:
    """Create an API request.

    ``path`` is relative to the session's API prefix (``admin`` or
    ``admin/api/<version>``). If ``body`` is not ``None`` it is JSON encoded
    and sent as the request body.

    Raises:
        RequestBuildError: If the path, options or body cannot be encoded.
    """
    url = _resolve_url(session, path, options)

    data = None
    if body is not None:
        try:
            data = json.dumps(body).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise RequestBuildError(f"cannot encode request body: {exc}") from exc

    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
        "User-Agent": USER_AGENT,
    }
    auth = None
    if session.access_token:
        headers["X-Shopify-Access-Token"] = session.access_token
    elif session.password:
        auth = HTTPBasicAuth(session.api_key, session.password)

    try:
        return requests.Request(method, url, headers=headers, data=data, auth=auth).prepare()
    except (requests.RequestException, ValueError) as exc:
        raise RequestBuildError(str(exc)) from exc


class ShopifyClient:
    """Manages communication with one shop's Admin API.

    Every REST call goes through :meth:`send_request`, which retries
    rate-limited (429) and unavailable (503) responses within the session's
    retry budget. Attempt counts are kept per call, and the rate-limit
    snapshot is lock guarded, so a client can be shared between threads.

    Example:
        >>> client = ShopifyClient(ShopifySession("theshop", "token", api_version="2024-01"))
        >>> client.count("products/count.json")
        42
    """

    def __init__(self, session: ShopifySession) -> None:
        self.session = session
        self.log = session.logger or logger
        self.rate_limit_tracker = RateLimitTracker()
        self._version_lock = threading.Lock()
        self._api_version: Optional[str] = session.api_version if session.pinned else None

        self.payouts = PayoutService(self)
        self.shop = ShopService(self)
        self.inventory_levels = InventoryLevelService(self)
        self.smart_collections = SmartCollectionService(self)

    @classmethod
    def from_credentials(cls, shop_name: str, access_token: str, **options: Any) -> "ShopifyClient":
        """Build a client from a shop name, a token and any session options."""
        return cls(ShopifySession(shop_name, access_token, **options))

    def close(self) -> None:
        """Close the session's transport."""
        self.session.transport.close()

    def __enter__(self) -> "ShopifyClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def rate_limits(self) -> RateLimitInfo:
        return self.rate_limit_tracker.snapshot()

    @property
    def api_version(self) -> Optional[str]:
        """The pinned API version, or the one Shopify reported first."""
        return self._api_version

    def _latch_api_version(self, response: requests.Response) -> None:
        reported = response.headers.get("X-Shopify-API-Version")
        if not reported or self._api_version is not None:
            return
        with self._version_lock:
            if self._api_version is None:
                self._api_version = reported
                self.log.info("api version not set, now using %s", reported)

    def check_cancelled(self, cancel: Optional[threading.Event]) -> None:
        if cancel is not None and cancel.is_set():
            raise RequestCancelledError("request cancelled")

    def wait(self, seconds: float, cancel: Optional[threading.Event] = None) -> None:
        """Block for ``seconds`` before a retry.

        Uses the session's delay function when one is configured, otherwise
        waits on ``cancel`` so that setting it ends the wait early.
        """
        if self.session.sleep is not None:
            self.session.sleep(seconds)
        else:
            (cancel or threading.Event()).wait(max(seconds, 0))
        self.check_cancelled(cancel)

    def do(
        self,
        request: requests.PreparedRequest,
        cancel: Optional[threading.Event] = None,
    ) -> Exchange:
        """Send ``request``, retrying within the session's retry budget.

        Raises:
            TransportError: If the transport fails; never retried.
            ResponseError: The last classified error once retries stop.
            ResponseDecodingError: If an error body is not valid JSON.
        """
        retries = self.session.retries
        attempts = 0
        self._log_request(request)

        # Every attempt sends the same bytes.
        body = request.body

        while True:
            self.check_cancelled(cancel)
            attempts += 1
            attempt = request.copy()
            attempt.body = body
            try:
                response = self.session.transport.send(attempt, self.session.timeout)
            except requests.RequestException as exc:
                raise TransportError(str(exc)) from exc
            self._log_response(response)

            err = check_response_error(response)
            if err is None:
                break

            response.close()

            if retries <= 1:
                raise err

            if isinstance(err, RateLimitError):
                self.log.debug("rate limited waiting %ss", err.retry_after)
                self.wait(err.retry_after, cancel)
                retries -= 1
                continue

            if response.status_code == HTTPStatus.SERVICE_UNAVAILABLE:
                self.log.debug("service unavailable, retrying")
                retries -= 1
                continue

            raise err

        self._latch_api_version(response)
        self.rate_limit_tracker.update_from_headers(response.headers)
        return Exchange(response, attempts)

    def send_request(
        self,
        method: str,
        path: str,
        data: Any = None,
        options: Optional[Options] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Exchange:
        """Build and send a request, returning the raw successful exchange."""
        request = build_request(self.session, method, path, data, options)
        return self.do(request, cancel)

    def decode(self, response: requests.Response) -> Any:
        """Decode a successful JSON body; an empty body decodes to ``None``."""
        if not response.content:
            return None
        try:
            return json.loads(response.content)
        except ValueError as exc:
            raise ResponseDecodingError(
                str(exc), body=response.content, status=response.status_code
            ) from exc

    def create_and_do(
        self,
        method: str,
        path: str,
        data: Any = None,
        options: Optional[Options] = None,
        decode: bool = True,
        cancel: Optional[threading.Event] = None,
    ) -> Any:
        """Perform a request and return the decoded body.

        ``data`` becomes the JSON body for POST and PUT requests; ``options``
        become query parameters such as ``created_at_min``. With
        ``decode=False`` the body is ignored and ``None`` is returned.
        """
        exchange = self.send_request(method, path, data, options, cancel)
        if not decode:
            return None
        return self.decode(exchange.response)

    def get(
        self, path: str, options: Optional[Options] = None, cancel: Optional[threading.Event] = None
    ) -> Any:
        return self.create_and_do("GET", path, None, options, cancel=cancel)

    def post(
        self, path: str, data: Any = None, cancel: Optional[threading.Event] = None
    ) -> Any:
        return self.create_and_do("POST", path, data, None, cancel=cancel)

    def put(
        self, path: str, data: Any = None, cancel: Optional[threading.Event] = None
    ) -> Any:
        return self.create_and_do("PUT", path, data, None, cancel=cancel)

    def delete(
        self, path: str, options: Optional[Options] = None, cancel: Optional[threading.Event] = None
    ) -> None:
        self.create_and_do("DELETE", path, None, options, decode=False, cancel=cancel)

    def count(
        self, path: str, options: Optional[Options] = None, cancel: Optional[threading.Event] = None
    ) -> int:
        resource = self.get(path, options, cancel=cancel)
        if not isinstance(resource, Mapping):
            return 0
        return int(resource.get("count") or 0)

    def list_with_pagination(
        self, path: str, options: Optional[Options] = None, cancel: Optional[threading.Event] = None
    ) -> tuple[Any, Pagination]:
        """GET ``path`` and return the decoded body with its pagination cursors."""
        exchange = self.send_request("GET", path, None, options, cancel)
        result = self.decode(exchange.response)
        pagination = extract_pagination(exchange.response.headers.get("Link", ""))
        return result, pagination

    def graphql(
        self,
        query: str,
        variables: Optional[Mapping[str, Any]] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Any:
        """Run a GraphQL query and return its ``data`` member."""
        return graphql.execute(self, query, variables, cancel=cancel)

    def _log_request(self, request: requests.PreparedRequest) -> None:
        self.log.debug("%s: %s", request.method, request.url)
        self._log_body(request.body, "SENT: %s")

    def _log_response(self, response: requests.Response) -> None:
        self.log.debug("Shopify X-Request-Id: %s", response.headers.get("X-Request-Id", ""))
        self.log.debug("RECV %d: %s", response.status_code, response.reason)
        self._log_body(response.content, "RESP: %s")

    def _log_body(self, body: Union[bytes, str, None], fmt: str) -> None:
        if not body or not self.log.isEnabledFor(logging.DEBUG):
            return
        if isinstance(body, str):
            body = body.encode("utf-8")
        limit = self.session.max_body_bytes
        if len(body) > limit:
            self.log.warning(
                "body truncated to %d bytes, consider increasing max_body_bytes", limit
            )
            body = body[:limit]
        self.log.debug(fmt, body.decode("utf-8", errors="replace"))
