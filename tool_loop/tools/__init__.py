"""
tool-loop Tools Package

Available tools:
- calc: Arithmetic expression evaluation
"""

from .base import FunctionTool, Tool, ToolFailure, ToolResult, ToolSuccess
from .calculator import calc, calculate, default_tools
from .registry import ToolRegistry

__all__ = [
    "FunctionTool",
    "Tool",
    "ToolFailure",
    "ToolResult",
    "ToolSuccess",
    "ToolRegistry",
    "calc",
    "calculate",
    "default_tools",
]
