"""Session object holding a client's configuration for one shop."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Optional

from .transport import RequestsTransport, Transport

UNSTABLE_API_VERSION = "unstable"
DEFAULT_API_PATH_PREFIX = "admin"
DEFAULT_MAX_BODY_BYTES = 16 * 1024
DEFAULT_TIMEOUT = 10.0

API_VERSION_RE = re.compile(r"^[0-9]{4}-[0-9]{2}$")


def shop_short_name(shop_name: str) -> str:
    """Reduce ``https://theshop.myshopify.com/`` or ``theshop`` to ``theshop``."""
    name = shop_name.strip()
    for scheme in ("https://", "http://"):
        if name.startswith(scheme):
            name = name[len(scheme):]
    name = name.split("/", 1)[0]
    return name.replace(".myshopify.com", "")


def shop_base_url(shop_name: str) -> str:
    return f"https://{shop_short_name(shop_name)}.myshopify.com/"


def is_valid_api_version(api_version: str) -> bool:
    return bool(API_VERSION_RE.match(api_version)) or api_version == UNSTABLE_API_VERSION


@dataclass
class ShopifySession:
    """Configuration for talking to a single Shopify store's Admin API.

    Each store needs its own session. Configuration is fixed once the session
    is built; the client only reads it.

    Attributes:
        shop_name: The shop's myshopify domain (``theshop.myshopify.com``) or
            simply ``theshop``
        access_token: Permanent access token, sent as ``X-Shopify-Access-Token``
        api_key: API key, used as the basic-auth username for private apps
        password: Private app password; basic auth is used only when no
            access token is set
        api_version: ``YYYY-MM`` or ``unstable`` to pin a version. Anything
            else leaves the session unpinned: requests go to the bare
            ``admin`` prefix and the client adopts whatever version Shopify
            reports on the first response.
        retries: Retry budget per call. A call retries while more than one
            unit of budget is left, so ``0`` and ``1`` both mean no retries.
        max_body_bytes: Maximum number of body bytes written to debug logs
        sleep: Delay function called with a number of seconds before a retry.
            Defaults to waiting on the call's cancel event.
        logger: Logger used for request/response tracing
        transport: Transport implementation for sending requests
        timeout: Per-request timeout in seconds handed to the transport
    """

    shop_name: str
    access_token: str = ""
    api_key: str = ""
    password: str = ""
    api_version: str = ""
    retries: int = 0
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    sleep: Optional[Callable[[float], None]] = None
    logger: Optional[logging.Logger] = None
    transport: Transport = field(default_factory=RequestsTransport)
    timeout: float = DEFAULT_TIMEOUT
    base_url: str = field(init=False)
    path_prefix: str = field(init=False)

    def __post_init__(self) -> None:
        """Derive the base URL and the API path prefix."""
        self.base_url = shop_base_url(self.shop_name)
        if self.api_version and is_valid_api_version(self.api_version):
            self.path_prefix = f"admin/api/{self.api_version}"
        else:
            self.path_prefix = DEFAULT_API_PATH_PREFIX
        if self.max_body_bytes <= 0:
            self.max_body_bytes = DEFAULT_MAX_BODY_BYTES

    @property
    def pinned(self) -> bool:
        return self.path_prefix != DEFAULT_API_PATH_PREFIX
