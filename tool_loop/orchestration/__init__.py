"""
Oracle/tool orchestration.

Decision parsing, transcript handling, retry accounting and the step loop.
"""

from .context import ContextManager, Message, Role
from .decision import (
    AgentDecision,
    FinalAnswer,
    ToolCall,
    parse_decision,
    serialize_decision,
    try_parse_decision,
)
from .loop import OrchestrationLoop, OrchestrationStep, RunResult
from .retry import CallFingerprint, RetryTracker

__all__ = [
    "ContextManager",
    "Message",
    "Role",
    "AgentDecision",
    "FinalAnswer",
    "ToolCall",
    "parse_decision",
    "serialize_decision",
    "try_parse_decision",
    "OrchestrationLoop",
    "OrchestrationStep",
    "RunResult",
    "CallFingerprint",
    "RetryTracker",
]
