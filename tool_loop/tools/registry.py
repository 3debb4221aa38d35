"""
Tool Registry - name-indexed lookup over the tools of one run.

Unlike a process-wide registry, each instance is built from an explicit
list of tools and is not mutated afterwards.
"""

from typing import Iterable, Iterator, Optional

from ..exceptions import DuplicateToolError
from .base import Tool


class ToolRegistry:
    """Immutable set of tools keyed by exact, case-sensitive name."""

    def __init__(self, tools: Iterable[Tool] = ()):
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise DuplicateToolError(f"Duplicate tool name: '{tool.name}'")
            self._tools[tool.name] = tool

    def find(self, name: str) -> Optional[Tool]:
        """Get a tool by name."""
        return self._tools.get(name)

    def names(self) -> list[str]:
        """Tool names in registration order."""
        return list(self._tools)

    def describe(self) -> str:
        """Get formatted summary of all tools for prompts."""
        lines = []
        for name, tool in self._tools.items():
            lines.append(f" - {name}: {tool.description}")
        return "\n".join(lines)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)
