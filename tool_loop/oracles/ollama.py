"""
Ollama oracle.

Calls the non-streaming ``/api/generate`` endpoint of an Ollama server.
"""

import logging

import requests

from ..exceptions import OracleError

logger = logging.getLogger(__name__)

DEFAULT_OLLAMA_URL = "http://127.0.0.1:11434"


class OllamaOracle:
    """Oracle backed by a local or remote Ollama server."""

    def __init__(
        self,
        model: str,
        base_url: str = "",
        temperature: float = 0.2,
        timeout: int = 120,
    ):
        self.model = model
        self.base_url = (base_url or DEFAULT_OLLAMA_URL).rstrip("/")
        self.temperature = temperature
        self.timeout = timeout

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/api/generate"

    def generate(self, prompt: str) -> str:
        """
        Generate a completion for a prompt.

        Raises:
            OracleError: On transport failure or a non-success response.
        """
        try:
            response = requests.post(
                self.endpoint,
                json={
                    "model": self.model,
                    "prompt": prompt,
                    "stream": False,
                    "options": {"temperature": self.temperature},
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Ollama call to %s failed: %s", self.endpoint, e)
            raise OracleError(f"Ollama request failed: {e}") from e

        if not response.ok:
            raise OracleError(
                f"Ollama error: {response.status_code} {response.reason} {response.text}".rstrip()
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise OracleError(f"Ollama returned invalid JSON: {e}") from e

        return payload.get("response") or ""
