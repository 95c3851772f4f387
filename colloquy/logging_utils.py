"""Logging utilities for Colloquy conversations.

Provides color-coded output to distinguish deterministic steps (routing,
extraction) from completion calls, degraded turns, and results.
"""

import os
from enum import Enum


class Color(Enum):
    """ANSI color codes for terminal output."""

    BLUE = "\033[94m"      # Deterministic operations (routing, extraction)
    YELLOW = "\033[93m"    # Completion calls (turns, validators)
    RED = "\033[91m"       # Degraded turns and failed validators
    GREEN = "\033[92m"     # Success/completion
    CYAN = "\033[96m"      # Info/metadata

    BOLD = "\033[1m"
    RESET = "\033[0m"


def colored(text: str, color: Color, bold: bool = False) -> str:
    """Wrap text in ANSI color codes if colors are enabled.

    Args:
        text: Text to colorize
        color: Color to apply
        bold: Whether to make text bold

    Returns:
        Colorized text if COLLOQUY_NO_COLOR is not set, otherwise plain text
    """
    if os.getenv("COLLOQUY_NO_COLOR"):
        return text

    prefix = color.value
    if bold:
        prefix = Color.BOLD.value + prefix

    return f"{prefix}{text}{Color.RESET.value}"


# Errors (red) sit at ERROR; every other tag is INFO.
_LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "WARN": 30, "ERROR": 40, "CRITICAL": 50}


def log_enabled(level: str) -> bool:
    """Return True when LOG_LEVEL lets messages of ``level`` through.

    Unknown LOG_LEVEL values fall back to INFO.
    """
    threshold = _LEVELS.get(os.getenv("LOG_LEVEL", "INFO").strip().upper(), _LEVELS["INFO"])
    return _LEVELS[level] >= threshold


def is_verbose() -> bool:
    """Return True when COLLOQUY_VERBOSE asks for message previews."""
    return os.getenv("COLLOQUY_VERBOSE", "").lower() in ("1", "true", "yes")


def is_llm_debug() -> bool:
    """Return True when DEBUG_LLM asks for full prompt dumps."""
    return os.getenv("DEBUG_LLM", "").lower() in ("1", "true", "yes")


def preview(text: str, limit: int = 80) -> str:
    """Single-line preview of a message for console output."""
    flat = " ".join(text.split())
    if len(flat) > limit:
        return flat[: limit - 3] + "..."
    return flat


def log_deterministic(message: str) -> None:
    """Log a deterministic operation (blue)."""
    if log_enabled("INFO"):
        print(colored(f"{LOG_TAG_DETERMINISTIC} {message}", Color.BLUE))


def log_llm(message: str) -> None:
    """Log a completion call (yellow)."""
    if log_enabled("INFO"):
        print(colored(f"{LOG_TAG_LLM} {message}", Color.YELLOW))


def log_error(message: str) -> None:
    """Log an error or degraded result (red)."""
    if log_enabled("ERROR"):
        print(colored(f"{LOG_TAG_ERROR} {message}", Color.RED))


def log_success(message: str) -> None:
    """Log a success (green)."""
    if log_enabled("INFO"):
        print(colored(f"{LOG_TAG_SUCCESS} {message}", Color.GREEN))


def log_info(message: str) -> None:
    """Log metadata/info (cyan)."""
    if log_enabled("INFO"):
        print(colored(f"{LOG_TAG_INFO} {message}", Color.CYAN))


# Markers for operation types (color-blind accessible)
LOG_TAG_DETERMINISTIC = "[•]"
LOG_TAG_LLM = "[AI]"
LOG_TAG_ERROR = "[!]"
LOG_TAG_SUCCESS = "[✓]"
LOG_TAG_INFO = "[i]"
