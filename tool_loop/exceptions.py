"""
Exception hierarchy for tool-loop.

Recoverable conditions (malformed oracle output, unknown tools, tool
failures) are folded into the transcript by the orchestration loop. Only
configuration errors and oracle transport faults reach the caller.
"""


class ToolLoopError(Exception):
    """Base class for all tool-loop errors."""


class DecisionFormatError(ToolLoopError, ValueError):
    """Raised when oracle output matches neither permitted decision shape."""


class DuplicateToolError(ToolLoopError, ValueError):
    """Raised when a registry is built with two tools sharing a name."""


class OracleError(ToolLoopError, RuntimeError):
    """Raised when the oracle backend fails; fatal to the current run."""


class ConfigError(ToolLoopError, ValueError):
    """Raised when configuration is invalid."""
