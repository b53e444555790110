"""Transport abstractions."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import requests


class Transport(ABC):
    """Abstract transport interface."""

    @abstractmethod
    def send(
        self,
        request: "requests.PreparedRequest",
        timeout: float,
    ) -> "requests.Response":  # noqa: D401
        """Send a prepared request and return the raw response."""
        raise NotImplementedError

    def close(self) -> None:
        """Release any connections held by the transport."""


class RequestsTransport(Transport):
    """Transport using a ``requests`` session.

    Status-level retries belong to the client, so the adapter's urllib3
    retry policy only covers establishing connections.

    Args:
        connect_retries: Attempts to re-establish a failed connection before
            the request is considered failed. Defaults to ``0``.
        backoff: Exponential backoff factor between connection retries.
        force_close: If True, send ``Connection: close`` with each request to
            disable keep-alives. Set to False to allow persistent connections.
    """

    def __init__(
        self,
        *,
        connect_retries: int = 0,
        backoff: float = 0.5,
        force_close: bool = False,
    ) -> None:
        import requests
        from requests.adapters import HTTPAdapter
        from urllib3.util import Retry

        retry = Retry(
            total=connect_retries,
            connect=connect_retries,
            read=0,
            status=0,
            other=0,
            backoff_factor=backoff,
            raise_on_status=False,
            respect_retry_after_header=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        session = requests.Session()
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        self._session = session
        self._force_close = force_close

    def send(
        self,
        request: "requests.PreparedRequest",
        timeout: float,
    ) -> "requests.Response":
        if self._force_close:
            request.headers.setdefault("Connection", "close")
        return self._session.send(request, timeout=timeout)

    def close(self) -> None:
        self._session.close()
