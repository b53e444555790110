"""Public API exports."""
from .session import ShopifySession
from .client import ShopifyClient, __version__, build_request
from .errors import (
    RateLimitError,
    RequestBuildError,
    RequestCancelledError,
    ResponseDecodingError,
    ResponseError,
    ShopifyError,
    TransportError,
)
from .options import CountOptions, ListOptions
from .paginate import Pagination, cursor_pages, extract_pagination
from .throttle import GraphQLCost, GraphQLThrottleStatus, RateLimitInfo
from .transport import RequestsTransport, Transport

__all__ = [
    "ShopifySession",
    "ShopifyClient",
    "build_request",
    "ShopifyError",
    "RequestBuildError",
    "TransportError",
    "RequestCancelledError",
    "ResponseDecodingError",
    "ResponseError",
    "RateLimitError",
    "ListOptions",
    "CountOptions",
    "Pagination",
    "extract_pagination",
    "cursor_pages",
    "RateLimitInfo",
    "GraphQLCost",
    "GraphQLThrottleStatus",
    "Transport",
    "RequestsTransport",
    "__version__",
]
