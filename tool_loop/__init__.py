"""
tool-loop - a bounded oracle/tool orchestration loop

This package provides:
- Decision parsing for JSON oracle output
- Tool contract, registry and a calculator tool
- The step loop with retry accounting and a windowed transcript
- Mock, Ollama and OpenAI-compatible oracle backends
- A command-line interface
"""

from .exceptions import (
    ConfigError,
    DecisionFormatError,
    DuplicateToolError,
    OracleError,
    ToolLoopError,
)
from .orchestration import OrchestrationLoop, RunResult
from .tools import ToolFailure, ToolRegistry, ToolSuccess

__all__ = [
    "OrchestrationLoop",
    "RunResult",
    "ToolRegistry",
    "ToolSuccess",
    "ToolFailure",
    "ToolLoopError",
    "DecisionFormatError",
    "DuplicateToolError",
    "OracleError",
    "ConfigError",
]

__version__ = "0.1.0"
