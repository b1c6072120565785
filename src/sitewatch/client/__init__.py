"""HTTP client for the external monitor service."""

from .http import MonitorServiceClient
from .interfaces import MonitorServiceProtocol
from .types import ClientError, NetworkFailure, ServiceResponseError

__all__ = [
    "MonitorServiceClient",
    "MonitorServiceProtocol",
    "ClientError",
    "NetworkFailure",
    "ServiceResponseError",
]
