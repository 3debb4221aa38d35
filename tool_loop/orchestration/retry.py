"""
Per-run retry accounting for tool calls.

A call is identified by its fingerprint: the tool name plus the canonical
JSON of its input. The tracker only counts; whether a repeated call is
allowed is decided by the orchestration loop.
"""

from dataclasses import dataclass
from typing import Any

from .decision import canonical_json


@dataclass(frozen=True)
class CallFingerprint:
    """Identity of a tool call, independent of when it was issued."""

    tool_name: str
    serialized_input: str

    @classmethod
    def of(cls, tool_name: str, tool_input: Any) -> "CallFingerprint":
        return cls(tool_name=tool_name, serialized_input=canonical_json(tool_input))

    def __str__(self) -> str:
        return f"{self.tool_name}::{self.serialized_input}"


class RetryTracker:
    """Maps call fingerprints to failed-attempt counts."""

    def __init__(self) -> None:
        self._attempts: dict[CallFingerprint, int] = {}

    def attempts_for(self, fingerprint: CallFingerprint) -> int:
        """Current count for a fingerprint, 0 if never recorded."""
        return self._attempts.get(fingerprint, 0)

    def record_attempt(self, fingerprint: CallFingerprint) -> int:
        """Increment the count for a fingerprint and return the new value."""
        count = self._attempts.get(fingerprint, 0) + 1
        self._attempts[fingerprint] = count
        return count

    def __len__(self) -> int:
        return len(self._attempts)
