"""Apache Livy REST API client.

Provides an asynchronous client for the Livy sessions API over a single
pooled keep-alive connection manager. Arguments are validated eagerly, so
malformed calls fail before any I/O; the round trip itself resolves to an
error-first ``LivyResult`` and never raises for HTTP or transport faults.
"""

import json
import socket
import ssl
import tempfile
from collections.abc import Awaitable, Callable, Mapping
from pathlib import Path
from typing import Any, NamedTuple, Protocol

import httpx
import pydantic
import structlog

from .config import DEFAULT_PORT, LivyClientConfig
from .errors import InvalidArgumentError, RemoteFailure, TransportFailure

SESSIONS_PATH = "/sessions"

DEFAULT_SESSION_KIND = "spark"

# Livy also answers 204 on some endpoints; anything above 201 is still
# reported as a failure to stay compatible with existing callers.
SUCCESS_STATUS_CEILING = 201

HTTP_METHODS = frozenset({"GET", "POST", "DELETE"})


class SupportsLogging(Protocol):
    """Structured logger capability required by the client."""

    def info(self, event: str, **kwargs: Any) -> Any: ...

    def error(self, event: str, **kwargs: Any) -> Any: ...


class LivyResult(NamedTuple):
    """Error-first outcome of a request.

    ``body`` is the decoded response text, present on failures too so that
    server diagnostics are never lost. It is ``None`` only when the
    connection failed before any response arrived.
    """

    error: Exception | None
    body: str | None


Callback = Callable[[Exception | None, str | None], Any]


def _check_callback(callback: Callback | None) -> None:
    if callback is not None and not callable(callback):
        msg = "callback must be callable"
        raise InvalidArgumentError(msg)


def _check_integer(value: Any, name: str) -> None:
    # bool is an int subclass but never a meaningful index or id
    if not isinstance(value, int) or isinstance(value, bool):
        msg = f"{name} must be an integer"
        raise InvalidArgumentError(msg)


def _load_client_certificate(context: ssl.SSLContext, key: str, cert: str) -> None:
    """Load PEM key and certificate text into an SSL context.

    ``ssl`` only reads certificate chains from files, so the material is
    written to a private temporary directory that is removed right after.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        cert_path = Path(tmpdir) / "cert.pem"
        key_path = Path(tmpdir) / "key.pem"
        cert_path.write_text(cert)
        key_path.write_text(key)
        key_path.chmod(0o600)
        context.load_cert_chain(certfile=cert_path, keyfile=key_path)


def build_ssl_context(config: LivyClientConfig) -> ssl.SSLContext:
    """Build the TLS context for a client configuration.

    The peer must always present a certificate. The configured authority
    is trusted when given, the system store otherwise. Key and certificate
    are presented for mutual TLS only when both are set.

    Raises:
        InvalidArgumentError: If the PEM material cannot be loaded.
    """
    try:
        context = ssl.create_default_context(cadata=config.ca)
        context.verify_mode = ssl.CERT_REQUIRED
        if config.mutual_tls:
            _load_client_certificate(context, config.key, config.cert)
    except (ssl.SSLError, ValueError) as exc:
        msg = f"invalid TLS material: {exc}"
        raise InvalidArgumentError(msg) from exc
    return context


class LivyClient:
    """Client for the Apache Livy interactive sessions API.

    Holds one keep-alive ``httpx.AsyncClient`` for its whole lifetime,
    shared by every request it issues. Concurrent requests are multiplexed
    over that pool; their results complete in arrival order.

    Each public operation validates its arguments immediately and returns
    an awaitable resolving to a ``LivyResult``. An optional error-first
    ``callback(error, body)`` is invoked with the same values on completion.

    Can be used as an async context manager for automatic cleanup.
    """

    def __init__(  # noqa: PLR0913
        self,
        host: str,
        port: int = DEFAULT_PORT,
        logger: SupportsLogging | None = None,
        use_https: bool = False,  # noqa: FBT001, FBT002
        key: str | None = None,
        cert: str | None = None,
        ca: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        No network I/O happens here.

        Args:
            host: Hostname or IP of the Livy server.
            port: Port of the Livy server (default: 8998).
            logger: Object with ``info`` and ``error`` methods taking an
                event and keyword context. Defaults to a structlog logger.
            use_https: Whether to connect over TLS.
            key: PEM private key for mutual TLS.
            cert: PEM certificate for mutual TLS.
            ca: PEM authority certificate trusted for peer verification.
            transport: Optional transport override, mostly for tests.

        Raises:
            InvalidArgumentError: If any argument is invalid.
        """
        if logger is None:
            logger = structlog.get_logger(__name__)
        for method in ("info", "error"):
            if not callable(getattr(logger, method, None)):
                msg = f"logger must have {method} method"
                raise InvalidArgumentError(msg)
        try:
            self.config = LivyClientConfig(
                host=host,
                port=port,
                use_https=use_https,
                key=key,
                cert=cert,
                ca=ca,
            )
        except pydantic.ValidationError as exc:
            msg = f"invalid client configuration: {exc}"
            raise InvalidArgumentError(msg) from exc
        self.logger = logger

        if use_https and (key is None) != (cert is None):
            self.logger.info(
                "ignoring TLS key material, key and cert must both be set",
                host=host,
            )

        # One keep-alive pool for the lifetime of the client
        if transport is None:
            transport = httpx.AsyncHTTPTransport(
                verify=build_ssl_context(self.config) if use_https else True,
                socket_options=[(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)],
            )
        try:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                transport=transport,
                timeout=None,
            )
        except httpx.InvalidURL as exc:
            msg = f"invalid server address: {exc}"
            raise InvalidArgumentError(msg) from exc

    @classmethod
    def from_config(
        cls,
        config: LivyClientConfig,
        logger: SupportsLogging | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "LivyClient":
        """Create a client from a loaded configuration."""
        return cls(
            config.host,
            config.port,
            logger,
            config.use_https,
            config.key,
            config.cert,
            config.ca,
            transport=transport,
        )

    @property
    def server_host(self) -> str:
        return self.config.host

    @property
    def server_port(self) -> int:
        return self.config.port

    @property
    def use_https(self) -> bool:
        return self.config.use_https

    async def __aenter__(self) -> "LivyClient":
        """Enter context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager and close the connection pool."""
        await self.aclose()

    async def aclose(self) -> None:
        """Close the pooled connections."""
        await self._client.aclose()

    def get_sessions(
        self,
        start_index: int | None = None,
        num_of_sessions: int | None = None,
        callback: Callback | None = None,
    ) -> Awaitable[LivyResult]:
        """List interactive sessions.

        Only the pagination arguments actually given are sent.

        Args:
            start_index: Index of the first session to list (``from``).
            num_of_sessions: Number of sessions to return (``size``).
            callback: Optional error-first completion callback.

        Returns:
            Awaitable resolving to the raw JSON listing as a ``LivyResult``.

        Raises:
            InvalidArgumentError: If a pagination argument is not a
                non-negative integer.
        """
        _check_callback(callback)
        params: dict[str, int] = {}
        if start_index is not None:
            _check_integer(start_index, "start_index")
            if start_index < 0:
                msg = "start_index must not be negative"
                raise InvalidArgumentError(msg)
            params["from"] = start_index
        if num_of_sessions is not None:
            _check_integer(num_of_sessions, "num_of_sessions")
            if num_of_sessions < 0:
                msg = "num_of_sessions must not be negative"
                raise InvalidArgumentError(msg)
            params["size"] = num_of_sessions
        return self._request("GET", SESSIONS_PATH, params or None, None, callback)

    def post_session(
        self,
        options: Mapping[str, Any],
        callback: Callback | None = None,
    ) -> Awaitable[LivyResult]:
        """Create a new interactive Scala, Python or R shell in the cluster.

        ``options`` is passed through to Livy as the JSON request body; see
        https://livy.apache.org/docs/latest/rest-api.html#post-sessions.
        When ``kind`` is missing or empty it defaults to ``"spark"``. The
        caller's mapping is copied, not modified.

        Raises:
            InvalidArgumentError: If options is not a JSON serializable mapping.
        """
        _check_callback(callback)
        if not isinstance(options, Mapping):
            msg = "options must be a mapping"
            raise InvalidArgumentError(msg)
        payload = dict(options)
        if not payload.get("kind"):
            payload["kind"] = DEFAULT_SESSION_KIND
        try:
            body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            msg = f"options must be JSON serializable: {exc}"
            raise InvalidArgumentError(msg) from exc
        return self._request("POST", SESSIONS_PATH, None, body, callback)

    def delete_session(
        self,
        session_id: int,
        callback: Callback | None = None,
    ) -> Awaitable[LivyResult]:
        """Delete a session.

        Raises:
            InvalidArgumentError: If session_id is not an integer.
        """
        _check_callback(callback)
        _check_integer(session_id, "session_id")
        return self._request(
            "DELETE", f"{SESSIONS_PATH}/{session_id}", None, None, callback
        )

    def _request(  # noqa: PLR0913
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
        body: str | None = None,
        callback: Callback | None = None,
    ) -> Awaitable[LivyResult]:
        """Validate a request and return the coroutine that sends it.

        Args:
            method: HTTP method, one of GET, POST or DELETE.
            path: Request path without query parameters.
            params: Optional query parameters.
            body: Optional request body text.
            callback: Optional error-first completion callback.

        Raises:
            InvalidArgumentError: If any argument is invalid.
        """
        if method not in HTTP_METHODS:
            msg = "http method must be GET, POST or DELETE"
            raise InvalidArgumentError(msg)
        if not isinstance(path, str):
            msg = "path must be a string"
            raise InvalidArgumentError(msg)
        if params is not None and not isinstance(params, Mapping):
            msg = "params must be a mapping"
            raise InvalidArgumentError(msg)
        if body is not None and not isinstance(body, str):
            msg = "body must be a string"
            raise InvalidArgumentError(msg)
        _check_callback(callback)
        return self._send(method, path, params, body, callback)

    async def _send(  # noqa: PLR0913
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None,
        body: str | None,
        callback: Callback | None,
    ) -> LivyResult:
        self.logger.info(
            "sending request",
            http_method=method,
            path=path,
            params=dict(params) if params else None,
        )

        headers = {"content-length": "0"}
        content = None
        if body is not None:
            content = body.encode("utf-8")
            headers["content-type"] = "application/octet-stream"
            headers["content-length"] = str(len(content))

        chunks: list[bytes] | None = None
        try:
            async with self._client.stream(
                method,
                path,
                params=params,
                content=content,
                headers=headers,
            ) as response:
                chunks = []
                # raw bytes, content-encoding is left to the caller
                async for chunk in response.aiter_raw():
                    chunks.append(chunk)
        except httpx.TransportError as exc:
            # covers system errors like connection refused, reset, DNS etc.
            self.logger.error("error sending request to livy", error=repr(exc))
            partial = None if chunks is None else _decode(chunks)
            result = LivyResult(TransportFailure(exc), partial)
        else:
            result = self._end_response(response, _decode(chunks))

        if callback is not None:
            callback(result.error, result.body)
        return result

    def _end_response(self, response: httpx.Response, data: str) -> LivyResult:
        code = response.status_code
        if code <= SUCCESS_STATUS_CEILING:
            self.logger.info(
                f"request to {self.server_host} returned success",
                http_code=code,
            )
            return LivyResult(None, data)
        self.logger.info(
            f"request to {self.server_host} returned error",
            status_code=code,
            status_message=response.reason_phrase,
            info=data,
        )
        return LivyResult(RemoteFailure(code, response.reason_phrase, data), data)


def _decode(chunks: list[bytes]) -> str:
    return b"".join(chunks).decode("utf-8", errors="replace")
