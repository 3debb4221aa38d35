"""
OpenAI-compatible oracle (vLLM, SGLang, OpenAI, ...).

The whole prompt is sent as a single user message.
"""

import logging
from typing import Optional

from openai import OpenAI

from ..exceptions import OracleError

logger = logging.getLogger(__name__)


class OpenAICompatibleOracle:
    """Oracle backed by a chat-completions endpoint."""

    def __init__(
        self,
        base_url: str,
        model: str,
        temperature: float = 0.2,
        timeout: int = 120,
        api_key: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ):
        self.base_url = base_url
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = OpenAI(
            base_url=base_url,
            api_key=api_key or "not-needed",  # local servers do not require auth
            timeout=timeout,
        )

    def generate(self, prompt: str) -> str:
        """
        Generate a completion for a prompt.

        Raises:
            OracleError: On any client or server failure.
        """
        create_kwargs: dict = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
        }
        if self.max_tokens is not None:
            create_kwargs["max_tokens"] = self.max_tokens

        try:
            response = self._client.chat.completions.create(**create_kwargs)
        except Exception as e:
            logger.error("OpenAI-compatible call to %s failed: %s", self.base_url, e)
            raise OracleError(f"OpenAI-compatible request failed: {e}") from e

        return response.choices[0].message.content or ""

    def close(self) -> None:
        """Close the underlying OpenAI client."""
        try:
            self._client.close()
        except Exception as e:
            logger.debug("Error closing OpenAI client: %s", e)
