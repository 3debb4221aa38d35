"""
Transcript storage and bounded rendering.

The transcript only grows. Prompts see a sliding window over its tail,
and rendering that window never changes what is stored.
"""

from dataclasses import dataclass
from enum import Enum


class Role(Enum):
    """Author of a transcript message."""

    USER = "user"
    SYSTEM = "system"
    ASSISTANT = "assistant"
    TOOL = "tool"


# Line prefix used when rendering each role into a prompt.
ROLE_PREFIXES = {
    Role.USER: "USER",
    Role.SYSTEM: "SYSTEM",
    Role.ASSISTANT: "ASSISTANT",
    Role.TOOL: "TOOL",
}


@dataclass(frozen=True)
class Message:
    """A single transcript entry."""

    role: Role
    content: str

    def render(self) -> str:
        return f"{ROLE_PREFIXES[self.role]}: {self.content}"


class ContextManager:
    """Ordered, append-only transcript."""

    def __init__(self) -> None:
        self._messages: list[Message] = []

    def append(self, message: Message) -> None:
        """Add a message to the end of the transcript."""
        self._messages.append(message)

    def add(self, role: Role, content: str) -> Message:
        """Build a message and append it."""
        message = Message(role=role, content=content)
        self.append(message)
        return message

    def window(self, n: int) -> list[Message]:
        """Return the last ``n`` messages (all of them if fewer exist)."""
        if n <= 0:
            return []
        return list(self._messages[-n:])

    def render_window(self, n: int) -> str:
        """
        Render the last ``n`` messages as role-prefixed lines.

        Args:
            n: Number of trailing messages to include.

        Returns:
            Newline-joined lines in transcript order.
        """
        return "\n".join(message.render() for message in self.window(n))

    @property
    def messages(self) -> tuple[Message, ...]:
        """Snapshot of the full transcript."""
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)
