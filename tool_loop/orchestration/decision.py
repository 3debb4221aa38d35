"""
Decision parsing for oracle output.

The oracle must answer with exactly one JSON object of one of two shapes::

    {"type": "final", "answer": "..."}
    {"type": "tool", "name": "toolName", "input": {...}}

Output wrapped in a markdown code fence is accepted. Anything else is
reported as a single uniform ``DecisionFormatError``.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Union

from ..exceptions import DecisionFormatError

# Opening fence with optional language hint, and trailing closing fence.
_OPEN_FENCE = re.compile(r"^```[a-zA-Z0-9_-]*\s*")
_CLOSE_FENCE = re.compile(r"\s*```$")


@dataclass(frozen=True)
class FinalAnswer:
    """The oracle is done and returns an answer."""

    answer: str


@dataclass(frozen=True)
class ToolCall:
    """The oracle asks for one tool invocation."""

    name: str
    input: Any = None


AgentDecision = Union[FinalAnswer, ToolCall]


def strip_fences(text: str) -> str:
    """Strip an optional wrapping code fence and surrounding whitespace."""
    stripped = text.strip()
    stripped = _OPEN_FENCE.sub("", stripped, count=1)
    stripped = _CLOSE_FENCE.sub("", stripped, count=1)
    return stripped.strip()


def parse_decision(raw_text: str) -> AgentDecision:
    """
    Parse raw oracle text into a decision.

    Args:
        raw_text: Text returned by the oracle.

    Returns:
        FinalAnswer or ToolCall.

    Raises:
        DecisionFormatError: If the text does not match either shape.
    """
    if not isinstance(raw_text, str):
        raise DecisionFormatError("invalid JSON: oracle output is not text")

    try:
        data = json.loads(strip_fences(raw_text))
    except json.JSONDecodeError as e:
        raise DecisionFormatError(f"invalid JSON: {e.msg}") from e
    except RecursionError as e:
        raise DecisionFormatError("invalid JSON: nesting too deep") from e

    if not isinstance(data, dict):
        raise DecisionFormatError("non-object")

    kind = data.get("type")
    if kind == "final":
        answer = data.get("answer")
        if not isinstance(answer, str):
            raise DecisionFormatError("final.answer must be text")
        return FinalAnswer(answer=answer)

    if kind == "tool":
        name = data.get("name")
        if not isinstance(name, str):
            raise DecisionFormatError("tool.name must be text")
        return ToolCall(name=name, input=data.get("input"))

    raise DecisionFormatError("unrecognized type")


def try_parse_decision(raw_text: str) -> Union[AgentDecision, DecisionFormatError]:
    """Like ``parse_decision`` but returns the error instead of raising it."""
    try:
        return parse_decision(raw_text)
    except DecisionFormatError as e:
        return e


def serialize_decision(decision: AgentDecision) -> str:
    """Serialize a decision to the canonical JSON the oracle is asked to emit."""
    if isinstance(decision, FinalAnswer):
        payload: dict[str, Any] = {"type": "final", "answer": decision.answer}
    else:
        payload = {"type": "tool", "name": decision.name, "input": decision.input}
    return canonical_json(payload)


def canonical_json(value: Any) -> str:
    """Deterministic JSON: sorted keys, compact separators."""
    return json.dumps(
        value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str
    )
