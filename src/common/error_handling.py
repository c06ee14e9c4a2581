"""
Centralized error handling for the competence-file editor.

Provides the exception hierarchy raised by external collaborators and
utilities for consistent logging and fallback behavior.

Policy:
- Parsing and normalization never raise (they degrade to a more generic shape).
- Unknown section ids are silent no-ops.
- Persistence, AI rewrite and render failures raise the exceptions below,
  except inside the autosave coordinator where they are logged and swallowed.
"""

import logging
from typing import Any, Callable, Optional, TypeVar

# Type variable for generic return types
T = TypeVar("T")


class CompetenceFileError(Exception):
    """Base class for competence-file editor errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class PersistenceError(CompetenceFileError):
    """Raised when the persistence store rejects or fails a save."""


class RewriteError(CompetenceFileError):
    """Raised when the AI rewrite service fails."""


class RenderError(CompetenceFileError):
    """Raised when no renderer could produce the requested document."""


def log_on_exception(
    logger: Any,
    operation: str,
    level: int = logging.WARNING,
    include_traceback: bool = False,
):
    """
    Context manager for logging exceptions without swallowing them silently.

    Usage:
        with log_on_exception(self.logger, "AI rewrite", level=logging.ERROR):
            result = await rewriter.rewrite(...)

    Args:
        logger: Logger instance to use (logging.Logger or EditorLogger)
        operation: Operation description for the log message
        level: Log level (default: WARNING)
        include_traceback: Whether to include stack trace in log
    """

    class ExceptionLogger:
        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc_val, exc_tb):
            if exc_val is not None and isinstance(exc_val, Exception):
                if include_traceback:
                    logger.log(level, f"[{operation}] Failed: {exc_val}", exc_info=True)
                else:
                    logger.log(level, f"[{operation}] Failed: {exc_val}")
            # Return False to not suppress the exception
            return False

    return ExceptionLogger()


def safe_execute(
    func: Callable[..., T],
    *args,
    operation_name: str = "operation",
    logger: Optional[logging.Logger] = None,
    fallback: T = None,
    critical: bool = False,
    **kwargs,
) -> T:
    """
    Execute a function safely with error handling and logging.

    Args:
        func: Function to execute
        *args: Positional arguments for func
        operation_name: Name for logging
        logger: Logger instance (uses module logger if None)
        fallback: Value to return on failure
        critical: If True, log at ERROR level with traceback
        **kwargs: Keyword arguments for func

    Returns:
        Function result or fallback value on error

    Usage:
        meta = safe_execute(
            extract_date_location,
            section.html,
            operation_name="experience metadata",
            fallback=ExperienceMeta(),
        )
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    try:
        return func(*args, **kwargs)
    except Exception as e:
        log_level = logging.ERROR if critical else logging.WARNING
        logger.log(
            log_level,
            f"[{operation_name}] Failed: {e}",
            exc_info=critical,
        )
        return fallback
