"""Apache Livy REST client.

Asynchronous client for the Livy interactive sessions API: list, create
and delete sessions over a pooled keep-alive HTTP(S) connection.

Exports:
    LivyClient: Client for the sessions API.
    LivyResult: Error-first (error, body) request outcome.
    LivyClientConfig: Immutable connection configuration.
    InvalidArgumentError, RemoteFailure, TransportFailure: Error types.
"""

from .client import SUCCESS_STATUS_CEILING, LivyClient, LivyResult
from .config import DEFAULT_PORT, LivyClientConfig
from .errors import (
    InvalidArgumentError,
    LivyClientError,
    RemoteFailure,
    TransportFailure,
)

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_PORT",
    "SUCCESS_STATUS_CEILING",
    "InvalidArgumentError",
    "LivyClient",
    "LivyClientConfig",
    "LivyClientError",
    "LivyResult",
    "RemoteFailure",
    "TransportFailure",
]
