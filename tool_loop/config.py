"""
Configuration management for tool-loop.

Loads all configuration from environment variables with sensible defaults
for local development.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass
class OracleConfig:
    """Configuration for the text-generation backend."""
    backend: str = os.getenv("ORACLE_BACKEND", "mock")
    base_url: str = os.getenv("ORACLE_BASE_URL", "")
    model: str = os.getenv("ORACLE_MODEL", "llama3.1")
    temperature: float = float(os.getenv("ORACLE_TEMPERATURE", "0.2"))
    timeout: int = int(os.getenv("ORACLE_TIMEOUT", "120"))
    api_key: str = os.getenv("ORACLE_API_KEY", "")


@dataclass
class LoopConfig:
    """Budgets for a single orchestration run."""
    max_steps: int = int(os.getenv("MAX_STEPS", "6"))
    context_window: int = int(os.getenv("CONTEXT_WINDOW", "20"))
    max_tool_retries: int = int(os.getenv("MAX_TOOL_RETRIES", "1"))


@dataclass
class LangfuseConfig:
    """Configuration for Langfuse observability.

    Tracing auto-enables when both public_key and secret_key are provided.
    """
    public_key: str = os.getenv("LANGFUSE_PUBLIC_KEY", "")
    secret_key: str = os.getenv("LANGFUSE_SECRET_KEY", "")
    host: str = os.getenv("LANGFUSE_HOST", "")
    debug: bool = os.getenv("LANGFUSE_DEBUG", "false").lower() == "true"

    @property
    def enabled(self) -> bool:
        """Auto-enable when both keys are configured."""
        return bool(self.public_key and self.secret_key)


@dataclass
class Config:
    """Main configuration container."""
    oracle: OracleConfig
    loop: LoopConfig
    langfuse: LangfuseConfig
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def get_config() -> Config:
    """Get the application configuration."""
    return Config(
        oracle=OracleConfig(),
        loop=LoopConfig(),
        langfuse=LangfuseConfig(),
    )


# Global config instance
config = get_config()
