"""
Langfuse client wrapper with graceful degradation.

The client stays disabled when credentials are missing, the SDK cannot be
constructed or the auth check fails. Callers only ask whether it is
enabled; a run never fails because of observability.
"""

import logging
from typing import Optional

from langfuse import Langfuse

logger = logging.getLogger(__name__)


def _connect(public_key: str, secret_key: str, host: str, debug: bool) -> Optional[Langfuse]:
    """Create a Langfuse client and verify it once, or return None."""
    if host and not host.startswith(("http://", "https://")):
        logger.warning("LANGFUSE_HOST '%s' may be malformed, expected http(s)://host:port", host)

    kwargs = {"public_key": public_key, "secret_key": secret_key, "debug": debug}
    if host:
        kwargs["host"] = host

    try:
        client = Langfuse(**kwargs)
        if client.auth_check():
            return client
        logger.warning("Tracing disabled: Langfuse auth_check() failed")
    except Exception as e:
        logger.warning("Tracing disabled: Langfuse unavailable: %s", e)
    return None


class TracingClient:
    """Holds a verified Langfuse client, or nothing when tracing is off."""

    def __init__(
        self,
        public_key: str = "",
        secret_key: str = "",
        host: str = "",
        debug: bool = False,
    ):
        self._client: Optional[Langfuse] = None
        if not public_key or not secret_key:
            logger.debug("Tracing disabled: Langfuse credentials not configured")
            return

        self._client = _connect(public_key, secret_key, host, debug)
        if self._client is not None:
            logger.info("Langfuse tracing enabled (host: %s)", host or "default")

    @property
    def enabled(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> Optional[Langfuse]:
        """The underlying Langfuse client (None if disabled)."""
        return self._client

    def shutdown(self) -> None:
        """Flush pending events and close the client."""
        if self._client is None:
            return
        try:
            self._client.shutdown()
        except Exception as e:
            logger.warning("Error during tracing client shutdown: %s", e)
        self._client = None


_tracing_client: Optional[TracingClient] = None


def init_tracing_client(
    public_key: str = "",
    secret_key: str = "",
    host: str = "",
    debug: bool = False,
) -> TracingClient:
    """Initialize the global tracing client used by ``TracingContext``."""
    global _tracing_client
    _tracing_client = TracingClient(public_key, secret_key, host, debug)
    return _tracing_client


def get_tracing_client() -> Optional[TracingClient]:
    return _tracing_client


def shutdown_tracing() -> None:
    """Shut down and forget the global tracing client."""
    global _tracing_client
    if _tracing_client:
        _tracing_client.shutdown()
        _tracing_client = None
