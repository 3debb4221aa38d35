"""
Langfuse tracing integration for tool-loop.

Provides observability for oracle calls, tool executions, and run lifecycle.
"""

from .client import (
    TracingClient,
    init_tracing_client,
    get_tracing_client,
    shutdown_tracing,
)
from .context import ObservationContext, TracingContext

__all__ = [
    "TracingClient",
    "init_tracing_client",
    "get_tracing_client",
    "shutdown_tracing",
    "TracingContext",
    "ObservationContext",
]
