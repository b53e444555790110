"""Error classes and response classification for the Shopify Admin API."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Mapping, Optional, Union

import requests


class ShopifyError(Exception):
    """Base class for every error raised by this package."""


class RequestBuildError(ShopifyError):
    """Raised when a path, options or body cannot be turned into a request."""


class TransportError(ShopifyError):
    """Raised when the transport fails before any response is received."""


class RequestCancelledError(ShopifyError):
    """Raised when the caller's cancel event is set during a call."""


class ResponseDecodingError(ShopifyError):
    """Raised when a response body or header from Shopify could not be parsed."""

    def __init__(
        self, message: str, body: bytes = b"", status: Optional[int] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.body = body
        self.status = status

    def __str__(self) -> str:
        return self.message


class ResponseError(ShopifyError):
    """A general API error, either a single message or a list of messages.

    Mirrors the layout of Shopify's own error payloads. ``errors`` holds the
    flattened messages and ``message`` the primary one.
    """

    def __init__(
        self,
        status: int,
        message: str = "",
        errors: Optional[list[str]] = None,
    ) -> None:
        self.status = status
        self.message = message
        self.errors = list(errors or [])
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.message:
            return self.message
        joined = ", ".join(sorted(self.errors))
        if joined:
            return joined
        return "Unknown Error"


class RateLimitError(ResponseError):
    """A rate-limited response; ``retry_after`` is the advertised wait in seconds."""

    def __init__(
        self,
        status: int,
        message: str = "",
        errors: Optional[list[str]] = None,
        retry_after: int = 0,
    ) -> None:
        super().__init__(status, message, errors)
        self.retry_after = retry_after

    @classmethod
    def from_response_error(cls, err: ResponseError, retry_after: int) -> "RateLimitError":
        return cls(err.status, err.message, err.errors, retry_after=retry_after)


# Shopify is inconsistent about the shape of the "errors" field, so it is
# decoded into one of three variants, each with its own flattening rule.


@dataclass(frozen=True)
class ErrorString:
    value: str

    def flatten(self, message: str) -> tuple[str, list[str]]:
        return self.value, []


@dataclass(frozen=True)
class ErrorList:
    values: list[str] = field(default_factory=list)

    def flatten(self, message: str) -> tuple[str, list[str]]:
        return ", ".join(self.values), list(self.values)


@dataclass(frozen=True)
class ErrorMap:
    values: dict[str, list[str]] = field(default_factory=dict)

    def flatten(self, message: str) -> tuple[str, list[str]]:
        # {"title": ["is blank"]} -> ["title: is blank"]
        flattened = []
        for key, elems in self.values.items():
            for elem in elems:
                topic = f"{key}: {elem}"
                if not message:
                    message = topic
                flattened.append(topic)
        return message, flattened


ErrorsShape = Union[ErrorString, ErrorList, ErrorMap]


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else str(value)


def parse_errors_field(value: Any) -> Optional[ErrorsShape]:
    """Decode the raw ``errors`` value into its tagged variant.

    Returns ``None`` for missing values and for shapes Shopify never sends
    (numbers, booleans).
    """
    if value is None:
        return None
    if isinstance(value, str):
        return ErrorString(value)
    if isinstance(value, list):
        return ErrorList([_as_text(elem) for elem in value])
    if isinstance(value, Mapping):
        values: dict[str, list[str]] = {}
        for key, elems in value.items():
            if isinstance(elems, list):
                values[key] = [_as_text(elem) for elem in elems]
            elif isinstance(elems, str):
                values[key] = [elems]
        return ErrorMap(values)
    return None


def retry_after_from_headers(headers: Mapping[str, str]) -> int:
    """Whole seconds from ``Retry-After``; 0 when absent or unparseable."""
    try:
        return int(float(headers.get("Retry-After", "")))
    except (TypeError, ValueError, OverflowError):
        return 0


def wrap_specific_error(response: requests.Response, err: ResponseError) -> ResponseError:
    """Re-wrap status codes that carry extra meaning.

    See https://shopify.dev/docs/api/usage/response-codes
    """
    if err.status == HTTPStatus.TOO_MANY_REQUESTS:
        return RateLimitError.from_response_error(
            err, retry_after_from_headers(response.headers)
        )
    if err.status == HTTPStatus.NOT_ACCEPTABLE:
        err.message = HTTPStatus.NOT_ACCEPTABLE.phrase
    return err


def check_response_error(response: requests.Response) -> Optional[ShopifyError]:
    """Classify ``response``, returning ``None`` for any 2xx status."""
    status = response.status_code
    if 200 <= status < 300:
        return None

    body = response.content or b""
    error_message = ""
    raw_errors: Any = None

    # An empty body still produces an error, built from the status alone.
    if body:
        try:
            doc = json.loads(body)
        except ValueError as exc:
            return ResponseDecodingError(str(exc), body=body, status=status)
        if not isinstance(doc, dict):
            return ResponseDecodingError(
                "error body is not a JSON object", body=body, status=status
            )
        error_value = doc.get("error")
        if error_value is not None and not isinstance(error_value, str):
            return ResponseDecodingError(
                "error field is not a string", body=body, status=status
            )
        error_message = error_value or ""
        raw_errors = doc.get("errors")

    shape = parse_errors_field(raw_errors)
    if shape is None:
        return wrap_specific_error(response, ResponseError(status, error_message))

    message, flattened = shape.flatten(error_message)
    return wrap_specific_error(response, ResponseError(status, message, flattened))
