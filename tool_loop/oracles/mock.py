"""
Offline oracles.

``MockOracle`` is a deliberately naive stand-in for a real model that is
good enough to drive the calculator demo end to end. ``ScriptedOracle``
replays canned responses and records every prompt it receives.
"""

import json
import logging
from typing import Iterable, Optional

from ..exceptions import OracleError
from ..orchestration.decision import canonical_json

logger = logging.getLogger(__name__)

TOOL_LINE_PREFIX = "TOOL: "


def _final(answer: str) -> str:
    return canonical_json({"type": "final", "answer": answer})


def find_last_tool_result(prompt: str) -> Optional[str]:
    """Return the payload of the last ``TOOL:`` line in a prompt."""
    for line in reversed(prompt.split("\n")):
        line = line.strip()
        if line.startswith(TOOL_LINE_PREFIX):
            return line[len(TOOL_LINE_PREFIX):]
    return None


class MockOracle:
    """Rule-based oracle for demos and smoke tests."""

    def generate(self, prompt: str) -> str:
        last = find_last_tool_result(prompt)
        if last is not None:
            return self._answer_from_tool_result(last)

        if "VAT" in prompt or "DPH" in prompt:
            return canonical_json(
                {
                    "type": "tool",
                    "name": "calc",
                    "input": {"expression": "(123.45*1.19)+6.90"},
                }
            )

        return _final("Mock: No tool needed.")

    @staticmethod
    def _answer_from_tool_result(payload: str) -> str:
        try:
            result = json.loads(payload)
        except json.JSONDecodeError:
            return _final("Mock: I saw a tool result but couldn't parse it.")
        if not isinstance(result, dict):
            return _final("Mock: I saw a tool result but couldn't parse it.")

        tool = result.get("name", "?")
        if not result.get("ok"):
            return _final(f'Mock: Tool "{tool}" failed: {result.get("error")}')

        data = result.get("data")
        value = data.get("value") if isinstance(data, dict) else None
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return _final(f"Total is {value:.2f}")

        return _final(
            f'Mock: Tool "{tool}" succeeded but result shape is unexpected: '
            f"{canonical_json(data)}"
        )


class ScriptedOracle:
    """Replays a fixed sequence of responses."""

    def __init__(self, responses: Iterable[str]):
        self._responses = list(responses)
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if len(self.prompts) > len(self._responses):
            raise OracleError(
                f"Scripted oracle exhausted after {len(self._responses)} responses"
            )
        return self._responses[len(self.prompts) - 1]

    @property
    def calls(self) -> int:
        return len(self.prompts)
