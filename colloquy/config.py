"""
Colloquy Configuration

Loads configuration from environment variables with sensible defaults.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load .env file if it exists
load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Application configuration loaded from environment variables."""

    # LLM Provider Configuration
    LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "openai")
    LLM_MODEL: str = os.getenv("LLM_MODEL", "gpt-4o-mini")

    # API Keys
    ANTHROPIC_API_KEY: str | None = os.getenv("ANTHROPIC_API_KEY")
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")

    # Local Ollama server, used when LLM_PROVIDER=ollama
    OLLAMA_BASE_URL: str | None = os.getenv("OLLAMA_BASE_URL")

    # Per-call timeout handed to the completion gateway
    LLM_TIMEOUT_SECONDS: float = float(os.getenv("LLM_TIMEOUT_SECONDS", "120"))

    # Conversation defaults
    DEFAULT_MAX_ROUNDS: int = int(os.getenv("COLLOQUY_MAX_ROUNDS", "10"))
    DEFAULT_TEMPERATURE: float = float(os.getenv("COLLOQUY_TEMPERATURE", "0.8"))
    VALIDATION_TEMPERATURE: float = float(
        os.getenv("COLLOQUY_VALIDATION_TEMPERATURE", "0.3")
    )
    ENABLE_CROSS_VALIDATION: bool = _env_flag("COLLOQUY_CROSS_VALIDATION", "true")

    # Threshold for the log_* helpers (ERROR shows only [!] lines)
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and raise errors if required values are missing."""
        if not cls.LLM_MODEL:
            raise ValueError("LLM_MODEL is required to create a completion gateway")

        if cls.LLM_PROVIDER == "anthropic" and not cls.ANTHROPIC_API_KEY:
            raise ValueError(
                "ANTHROPIC_API_KEY is required when using the 'anthropic' provider"
            )

        if cls.LLM_PROVIDER == "openai" and not cls.OPENAI_API_KEY:
            raise ValueError(
                "OPENAI_API_KEY is required when using the 'openai' provider. "
                "For local models, set LLM_PROVIDER=ollama instead."
            )

        if cls.LLM_TIMEOUT_SECONDS <= 0:
            raise ValueError("LLM_TIMEOUT_SECONDS must be positive")

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        lines = [
            "Colloquy Configuration:",
            f"  LLM Provider: {cls.LLM_PROVIDER}",
            f"  LLM Model: {cls.LLM_MODEL}",
            f"  Timeout: {cls.LLM_TIMEOUT_SECONDS:g}s",
            f"  Max Rounds: {cls.DEFAULT_MAX_ROUNDS}",
            f"  Temperature: {cls.DEFAULT_TEMPERATURE}",
            f"  Cross-validation: {'on' if cls.ENABLE_CROSS_VALIDATION else 'off'}",
            f"  Log Level: {cls.LOG_LEVEL}",
        ]
        return "\n".join(lines)


class OrchestratorConfig(BaseModel):
    """Per-conversation settings for an Orchestrator instance.

    ``max_rounds`` may be zero or negative; the conversation then records no
    turns at all.
    """

    max_rounds: int = Field(10, description="Upper bound on turns per run")
    temperature: float = Field(0.8, ge=0.0, le=2.0, description="Turn sampling temperature")
    validation_temperature: float = Field(
        0.3, ge=0.0, le=2.0, description="Temperature for validator ratings"
    )
    enable_cross_validation: bool = Field(True, description="Run the cross-validator after extraction")
    model: str = Field("", description="Model label reported in collaboration metadata")

    @classmethod
    def from_env(cls, **overrides) -> "OrchestratorConfig":
        """Build a config from Config defaults, applying explicit overrides."""
        values = {
            "max_rounds": Config.DEFAULT_MAX_ROUNDS,
            "temperature": Config.DEFAULT_TEMPERATURE,
            "validation_temperature": Config.VALIDATION_TEMPERATURE,
            "enable_cross_validation": Config.ENABLE_CROSS_VALIDATION,
            "model": Config.LLM_MODEL,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)
