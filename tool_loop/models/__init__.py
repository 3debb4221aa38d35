"""
Data models for tool-loop.
"""

from .config import (
    OracleBackend,
    OracleSettings,
    LoopSettings,
    LoggingSettings,
    LangfuseSettings,
    AppConfig,
)

__all__ = [
    "OracleBackend",
    "OracleSettings",
    "LoopSettings",
    "LoggingSettings",
    "LangfuseSettings",
    "AppConfig",
]
