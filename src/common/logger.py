"""
Centralized logging configuration for the competence-file editor.

Provides structured logging with document_id and component tagging so that
autosave, rendering and rewrite activity can be correlated per editing session.
Supports a debug_mode flag for verbose logging. Handlers and formatting are
left to the host application.
"""

import logging
import os
from typing import Optional


# Global debug mode flag - can be set via environment or by the host shell
_GLOBAL_DEBUG_MODE = os.getenv("DEBUG_MODE", "false").lower() == "true"


def set_global_debug_mode(enabled: bool) -> None:
    """Set global debug mode."""
    global _GLOBAL_DEBUG_MODE
    _GLOBAL_DEBUG_MODE = enabled


def is_debug_mode() -> bool:
    """Check if debug mode is enabled globally."""
    return _GLOBAL_DEBUG_MODE


class EditorLogger:
    """
    Structured logger for an editing session.

    Adds contextual information like document_id and component to all log messages.
    """

    def __init__(
        self,
        name: str,
        document_id: Optional[str] = None,
        component: Optional[str] = None,
        debug_mode: Optional[bool] = None
    ):
        """
        Initialize editor logger.

        Args:
            name: Logger name (usually __name__)
            document_id: Optional competence-file id for correlation
            component: Optional component name (e.g., "autosave", "renderer")
            debug_mode: If True, enables DEBUG level for this logger.
                       If None, uses global debug mode setting.
        """
        self.logger = logging.getLogger(name)
        self.document_id = document_id
        self.component = component

        # Determine debug mode: explicit param > global setting
        self._debug_mode = debug_mode if debug_mode is not None else is_debug_mode()

        if self._debug_mode:
            self.logger.setLevel(logging.DEBUG)

    @property
    def level(self) -> int:
        """Get current logging level."""
        return self.logger.level

    def _format_message(self, message: str) -> str:
        """Add contextual prefix to message."""
        prefix_parts = []
        if self.document_id:
            prefix_parts.append(f"[doc:{self.document_id[:8]}]")
        if self.component:
            prefix_parts.append(f"[{self.component}]")

        if prefix_parts:
            return f"{' '.join(prefix_parts)} {message}"
        return message

    def debug(self, message: str, **kwargs):
        """Log debug message."""
        self.logger.debug(self._format_message(message), **kwargs)

    def info(self, message: str, **kwargs):
        """Log info message."""
        self.logger.info(self._format_message(message), **kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message."""
        self.logger.warning(self._format_message(message), **kwargs)

    def error(self, message: str, **kwargs):
        """Log error message."""
        self.logger.error(self._format_message(message), **kwargs)

    def exception(self, message: str, **kwargs):
        """Log exception with traceback."""
        self.logger.exception(self._format_message(message), **kwargs)

    def log(self, level: int, message: str, **kwargs):
        """Log at an explicit level."""
        self.logger.log(level, self._format_message(message), **kwargs)


def get_logger(
    name: str,
    document_id: Optional[str] = None,
    component: Optional[str] = None,
    debug_mode: Optional[bool] = None
) -> EditorLogger:
    """
    Get an editor logger instance.

    Args:
        name: Logger name (usually __name__)
        document_id: Optional competence-file id
        component: Optional component name
        debug_mode: If True, enables DEBUG level. If None, uses global setting.

    Returns:
        EditorLogger instance
    """
    return EditorLogger(name, document_id, component, debug_mode)
