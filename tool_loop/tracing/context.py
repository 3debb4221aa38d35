"""
Run-scoped tracing context.

Wraps one orchestration run in a Langfuse root span and offers nested
``span`` and ``generation`` context managers. Everything degrades to a
no-op when the global tracing client is disabled.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Generator, Optional

from langfuse.types import TraceContext

from .client import get_tracing_client

logger = logging.getLogger(__name__)


def _start_observation(name: str, trace_context: Optional[TraceContext], **kwargs: Any) -> tuple[Any, Any]:
    """Open a Langfuse observation, returning (context manager, observation)."""
    client = get_tracing_client()
    if not client or not client.client:
        return None, None
    context_manager = client.client.start_as_current_observation(
        trace_context=trace_context,
        name=name,
        **kwargs,
    )
    return context_manager, context_manager.__enter__()


@dataclass
class TracingContext:
    """Tracing state for a single orchestration run."""

    execution_id: str
    session_id: Optional[str] = None
    _context_manager: Any = field(default=None, repr=False)
    _root_span: Any = field(default=None, repr=False)
    _enabled: bool = field(default=False, repr=False)
    _start_time: float = field(default_factory=time.time, repr=False)
    _trace_id: Optional[str] = field(default=None, repr=False)
    _root_span_id: Optional[str] = field(default=None, repr=False)

    def __post_init__(self):
        client = get_tracing_client()
        self._enabled = client is not None and client.enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def start_trace(self, name: str = "tool_loop_run", query: Optional[str] = None) -> None:
        """Open the root span for this run."""
        if not self._enabled:
            return

        try:
            self._context_manager, self._root_span = _start_observation(
                name,
                None,
                as_type="span",
                input={"query": query} if query else None,
                metadata={"execution_id": self.execution_id},
            )
            if self._root_span is None:
                return
            self._trace_id = getattr(self._root_span, "trace_id", None)
            self._root_span_id = getattr(self._root_span, "id", None)
            self._root_span.update_trace(session_id=self.session_id)
            self._start_time = time.time()
        except Exception as e:
            logger.warning("[%s] Failed to start trace: %s", self.execution_id, e)
            self._root_span = None

    def get_trace_context(self) -> Optional[TraceContext]:
        """Parent link for child observations, or None before ``start_trace``."""
        if not self._trace_id or not self._root_span_id:
            return None
        return TraceContext(trace_id=self._trace_id, parent_span_id=self._root_span_id)

    def end_trace(self, output: Optional[str] = None, status: str = "success") -> None:
        """Close the root span."""
        if not self._enabled or not self._root_span:
            return

        try:
            duration_ms = (time.time() - self._start_time) * 1000
            self._root_span.update(
                output=output,
                metadata={"status": status, "duration_ms": round(duration_ms, 2)},
            )
            if self._context_manager:
                self._context_manager.__exit__(None, None, None)
        except Exception as e:
            logger.warning("[%s] Failed to end trace: %s", self.execution_id, e)
        finally:
            self._root_span = None

    @contextmanager
    def span(
        self,
        name: str,
        metadata: Optional[dict] = None,
        input: Optional[Any] = None,
    ) -> Generator["ObservationContext", None, None]:
        """Create a span context manager."""
        observation = ObservationContext(
            name=name,
            as_type="span",
            enabled=self._enabled,
            metadata=metadata,
            input=input,
            _trace_context=self.get_trace_context(),
        )
        try:
            observation.start()
            yield observation
        finally:
            observation.end()

    @contextmanager
    def generation(
        self,
        name: str,
        model: str = "",
        input: Optional[Any] = None,
        metadata: Optional[dict] = None,
    ) -> Generator["ObservationContext", None, None]:
        """Create a generation context manager for oracle calls."""
        observation = ObservationContext(
            name=name,
            as_type="generation",
            enabled=self._enabled,
            metadata=metadata,
            input=input,
            model=model or None,
            _trace_context=self.get_trace_context(),
        )
        try:
            observation.start()
            yield observation
        finally:
            observation.end()


@dataclass
class ObservationContext:
    """A single span or generation."""

    name: str
    as_type: str = "span"
    enabled: bool = False
    metadata: Optional[dict] = None
    input: Optional[Any] = None
    model: Optional[str] = None
    _context_manager: Any = field(default=None, repr=False)
    _observation: Any = field(default=None, repr=False)
    _start_time: float = field(default=0.0, repr=False)
    _output: Optional[Any] = field(default=None, repr=False)
    _status: str = field(default="success", repr=False)
    _trace_context: Optional[Any] = field(default=None, repr=False)

    def start(self) -> None:
        if not self.enabled:
            return

        kwargs: dict[str, Any] = {
            "as_type": self.as_type,
            "metadata": self.metadata,
            "input": self.input,
        }
        if self.model:
            kwargs["model"] = self.model

        try:
            self._start_time = time.time()
            self._context_manager, self._observation = _start_observation(
                self.name, self._trace_context, **kwargs
            )
        except Exception as e:
            logger.warning("Failed to start %s '%s': %s", self.as_type, self.name, e)
            self._observation = None

    def end(self) -> None:
        if not self.enabled or not self._observation:
            return

        try:
            duration_ms = (time.time() - self._start_time) * 1000
            update_kwargs: dict[str, Any] = {
                "metadata": {"status": self._status, "duration_ms": round(duration_ms, 2)}
            }
            if self._output is not None:
                update_kwargs["output"] = self._output
            self._observation.update(**update_kwargs)
            if self._context_manager:
                self._context_manager.__exit__(None, None, None)
        except Exception as e:
            logger.warning("Failed to end %s '%s': %s", self.as_type, self.name, e)

    def set_output(self, output: Any) -> None:
        self._output = output

    def set_status(self, status: str) -> None:
        self._status = status
