"""
Oracle backends and backend selection.
"""

import logging
from typing import Union

from ..config import OracleConfig
from ..exceptions import ConfigError
from ..models import OracleBackend, OracleSettings
from .base import Oracle
from .mock import MockOracle, ScriptedOracle
from .ollama import OllamaOracle
from .openai_compatible import OpenAICompatibleOracle

logger = logging.getLogger(__name__)


def create_oracle(settings: Union[OracleConfig, OracleSettings]) -> Oracle:
    """
    Build the oracle selected by configuration.

    Args:
        settings: Environment (``OracleConfig``) or file (``OracleSettings``)
            oracle configuration.

    Raises:
        ConfigError: If the backend is unknown or under-specified.
    """
    backend = settings.backend
    if not isinstance(backend, OracleBackend):
        try:
            backend = OracleBackend(str(backend).lower())
        except ValueError:
            raise ConfigError(f"Unknown oracle backend: {settings.backend}")

    logger.debug("Creating oracle backend=%s model=%s", backend.value, settings.model)

    if backend is OracleBackend.MOCK:
        return MockOracle()
    if backend is OracleBackend.OLLAMA:
        return OllamaOracle(
            model=settings.model,
            base_url=settings.base_url,
            temperature=settings.temperature,
            timeout=settings.timeout,
        )
    if not settings.base_url:
        raise ConfigError("base_url is required for the openai_compatible backend")
    return OpenAICompatibleOracle(
        base_url=settings.base_url,
        model=settings.model,
        temperature=settings.temperature,
        timeout=settings.timeout,
        api_key=settings.api_key or None,
    )


__all__ = [
    "Oracle",
    "MockOracle",
    "ScriptedOracle",
    "OllamaOracle",
    "OpenAICompatibleOracle",
    "create_oracle",
]
