"""
Configuration loader for the competence-file editor.

Loads all settings from environment variables (.env file).
Validates required settings and provides type-safe access.
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """
    Centralized configuration for the editor core and its collaborators.

    All values loaded from environment variables - NO SECRETS IN CODE.
    """

    # ===== Competence-file API (persistence + AI edit) =====
    COMPETENCE_API_URL: str = os.getenv("COMPETENCE_API_URL", "http://localhost:3000")
    COMPETENCE_API_TOKEN: str = os.getenv("COMPETENCE_API_TOKEN", "")

    # ===== PDF render service =====
    PDF_SERVICE_URL: str = os.getenv("PDF_SERVICE_URL", "http://localhost:8001")
    ENABLE_PDF_SERVICE: bool = os.getenv("ENABLE_PDF_SERVICE", "true").lower() == "true"
    PAGE_SIZE: str = os.getenv("PAGE_SIZE", "a4")
    RENDER_MAX_ATTEMPTS: int = int(os.getenv("RENDER_MAX_ATTEMPTS", "3"))

    # ===== Autosave =====
    # Quiet window before a debounced save fires
    AUTOSAVE_DEBOUNCE_MS: int = int(os.getenv("AUTOSAVE_DEBOUNCE_MS", "800"))
    AUTOSAVE_STATUS: str = os.getenv("AUTOSAVE_STATUS", "DRAFT")

    # ===== Timeouts (seconds) =====
    REQUEST_TIMEOUT_SECONDS: float = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30"))
    PDF_TIMEOUT_SECONDS: float = float(os.getenv("PDF_TIMEOUT_SECONDS", "60"))

    @classmethod
    def autosave_debounce_seconds(cls) -> float:
        """Autosave quiet window in seconds."""
        return cls.AUTOSAVE_DEBOUNCE_MS / 1000.0

    @classmethod
    def validate(cls) -> None:
        """
        Validate that all required configuration is present.
        Raises ValueError if critical settings are missing.
        """
        required_settings = {
            "COMPETENCE_API_URL": cls.COMPETENCE_API_URL,
        }

        if cls.ENABLE_PDF_SERVICE:
            required_settings["PDF_SERVICE_URL"] = cls.PDF_SERVICE_URL

        missing = [name for name, value in required_settings.items() if not value]

        if missing:
            raise ValueError(
                f"Missing required configuration: {', '.join(missing)}. "
                f"Please check your .env file."
            )

        if cls.AUTOSAVE_DEBOUNCE_MS <= 0:
            raise ValueError(
                f"AUTOSAVE_DEBOUNCE_MS must be positive, got {cls.AUTOSAVE_DEBOUNCE_MS}"
            )

        if cls.RENDER_MAX_ATTEMPTS < 1:
            raise ValueError(
                f"RENDER_MAX_ATTEMPTS must be at least 1, got {cls.RENDER_MAX_ATTEMPTS}"
            )

    @classmethod
    def summary(cls) -> str:
        """Return a summary of the current configuration (safe for logging)."""
        return f"""
Configuration Summary:
  Competence API: {cls.COMPETENCE_API_URL} (token {'✓' if cls.COMPETENCE_API_TOKEN else '✗'})
  PDF Service: {cls.PDF_SERVICE_URL if cls.ENABLE_PDF_SERVICE else 'Disabled'} (page size {cls.PAGE_SIZE}, {cls.RENDER_MAX_ATTEMPTS} attempts)
  Autosave: {cls.AUTOSAVE_DEBOUNCE_MS}ms debounce, status {cls.AUTOSAVE_STATUS}
  Timeouts: request {cls.REQUEST_TIMEOUT_SECONDS}s, render {cls.PDF_TIMEOUT_SECONDS}s
"""


# Validate on import (fail fast if misconfigured)
# Comment out during development if you want to test without all keys
# Config.validate()
