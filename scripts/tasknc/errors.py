"""Error types shared by the tasknc core and UI."""

from typing import Any, Dict, Optional


class TaskncError(RuntimeError):
    """
    Base error for tasknc components. Carries metadata for structured logging.
    """

    category: str = "runtime"

    def __init__(self, message: str, *, metadata: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.metadata = metadata or {}


class ConfigError(TaskncError):
    """Raised when configuration is invalid or missing."""

    category = "config"


class CommandError(TaskncError):
    """Raised when a command line (config file or prompt) cannot be run."""

    category = "command"


class PredicateError(TaskncError):
    """Raised when a color rule predicate is malformed."""

    category = "predicate"


class ColorError(TaskncError):
    """Raised when a color rule cannot be registered."""

    category = "color"


class ColorPairsExhaustedError(ColorError):
    """Raised when the attribute allocator has no free color pairs left."""


class TaskCommandError(TaskncError):
    """Raised when the external task binary fails or cannot be run."""

    category = "task"
