"""Oracle contract: one prompt in, one completion out."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class Oracle(Protocol):
    """A text-generation backend.

    ``generate`` may block on I/O and may raise; the orchestration loop
    treats any exception as fatal to the current run.
    """

    def generate(self, prompt: str) -> str: ...
