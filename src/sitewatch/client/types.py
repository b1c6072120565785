"""Type definitions for the monitor service client."""

from typing import Optional

from ..domain.types import SiteWatchError

GATEWAY_STATUS_CODES = frozenset({502, 503, 504})


class ClientError(SiteWatchError):
    """Base exception for monitor service client errors."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class NetworkFailure(ClientError):
    """The request never got a reply (connection refused, timeout, reset)."""

    pass


class ServiceResponseError(ClientError):
    """The service replied with an error status or a body we cannot decode."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        url: Optional[str] = None,
    ):
        super().__init__(message, url=url)
        self.status_code = status_code
        self.body = body

    @property
    def is_gateway_error(self) -> bool:
        """A proxy in front of the service could not reach it."""
        return self.status_code in GATEWAY_STATUS_CODES

    @property
    def is_client_error(self) -> bool:
        return self.status_code is not None and 400 <= self.status_code < 500
