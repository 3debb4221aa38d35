"""
Tool contract.

A tool has a unique name, a self-contained description that is inserted
verbatim into the oracle prompt, and an ``invoke`` method. Expected
failures are returned as ``ToolFailure``, never raised.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Protocol, Union, runtime_checkable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolSuccess:
    """Successful tool result."""

    data: Any
    ok: bool = True


@dataclass(frozen=True)
class ToolFailure:
    """Failed tool result with a human-readable error."""

    error: str
    ok: bool = False


ToolResult = Union[ToolSuccess, ToolFailure]


@runtime_checkable
class Tool(Protocol):
    """Anything the orchestration loop can call."""

    name: str
    description: str

    def invoke(self, tool_input: Any) -> ToolResult: ...


@dataclass
class FunctionTool:
    """Adapts a plain handler function to the ``Tool`` contract."""

    name: str
    description: str
    handler: Callable[[Any], ToolResult]

    def invoke(self, tool_input: Any) -> ToolResult:
        try:
            return self.handler(tool_input)
        except Exception as e:
            logger.debug("Tool '%s' handler raised: %s", self.name, e)
            return ToolFailure(error=f"{type(e).__name__}: {e}")
