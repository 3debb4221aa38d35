"""
Configuration models for tool-loop.

Defines dataclasses for the YAML configuration file.
"""

from dataclasses import dataclass, field
from enum import Enum


class OracleBackend(Enum):
    """Supported text-generation backends."""

    MOCK = "mock"
    OLLAMA = "ollama"
    OPENAI_COMPATIBLE = "openai_compatible"


@dataclass
class OracleSettings:
    """Connection and sampling settings for the oracle."""
    backend: OracleBackend = OracleBackend.MOCK
    base_url: str = ""
    model: str = "llama3.1"
    temperature: float = 0.2
    timeout: int = 120
    api_key: str = ""


@dataclass
class LoopSettings:
    """Budgets for a single orchestration run."""
    max_steps: int = 6
    context_window: int = 20
    max_tool_retries: int = 1


@dataclass
class LoggingSettings:
    """Configuration for logging."""
    level: str = "INFO"


@dataclass
class LangfuseSettings:
    """Configuration for Langfuse observability."""
    enabled: bool = False
    public_key: str = ""
    secret_key: str = ""
    host: str = "https://cloud.langfuse.com"
    debug: bool = False

    @property
    def is_configured(self) -> bool:
        """Check if Langfuse is configured (both keys present)."""
        return bool(self.public_key and self.secret_key)


@dataclass
class AppConfig:
    """
    Unified application configuration container.

    Holds all configuration sections loaded from a YAML file.
    """
    version: str = "1.0"
    oracle: OracleSettings = field(default_factory=OracleSettings)
    loop: LoopSettings = field(default_factory=LoopSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    langfuse: LangfuseSettings = field(default_factory=LangfuseSettings)
