"""Exception hierarchy shared across Colloquy modules."""

from typing import Iterable


class ColloquyError(Exception):
    """Base class for all errors raised by Colloquy."""


class InvalidAgentError(ColloquyError, ValueError):
    """Raised when an agent registration is missing required fields."""

    def __init__(self, message: str, *, missing: Iterable[str] = ()) -> None:
        self.missing = tuple(missing)
        super().__init__(message)


class InvalidArgumentError(ColloquyError, ValueError):
    """Raised when a caller passes an unusable argument (e.g. empty prompt)."""


class NoAvailableAgentError(ColloquyError, LookupError):
    """Raised when the routing pool is empty after exclusions."""

    def __init__(self, *, excluded: Iterable[str] = ()) -> None:
        self.excluded = tuple(excluded)
        message = "No available agents to route to"
        if self.excluded:
            message += f" (excluded: {', '.join(self.excluded)})"
        super().__init__(message)


class CompletionError(ColloquyError, RuntimeError):
    """Raised by a completion gateway on any transport or model failure.

    The orchestrator never inspects provider-specific details; ``cause`` keeps
    the underlying exception for diagnostics only.
    """

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        self.cause = cause
        super().__init__(message)


__all__ = [
    "ColloquyError",
    "InvalidAgentError",
    "InvalidArgumentError",
    "NoAvailableAgentError",
    "CompletionError",
]
