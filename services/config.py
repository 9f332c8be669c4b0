"""Centralized editor configuration.

Single source of truth for upload limits, session bounds and export
options. Reads from environment variables with sensible defaults.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Literal, Tuple

PdfPageType = Literal["landscape-a4", "a4"]


@dataclass
class EditorSettings:
    """Editor settings loaded from environment.

    Usage:
        settings = get_editor_settings()
        print(settings.max_upload_mb)  # 10
        print(settings.allowed_extensions)  # (".xlsx", ".csv")
    """
    # Uploads
    max_upload_mb: int = 10
    allowed_extensions: Tuple[str, ...] = field(default_factory=lambda: (".xlsx", ".csv"))

    # Sessions (in-memory only, oldest evicted first)
    max_sessions: int = 50

    # Exports
    pdf_page: PdfPageType = "landscape-a4"

    # Logging
    log_level: str = "INFO"

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


def _load_settings_from_env() -> EditorSettings:
    """Load editor settings from environment variables."""
    settings = EditorSettings()

    if os.getenv("SHEET_EDITOR_MAX_UPLOAD_MB"):
        settings.max_upload_mb = int(os.getenv("SHEET_EDITOR_MAX_UPLOAD_MB"))
    if os.getenv("SHEET_EDITOR_MAX_SESSIONS"):
        settings.max_sessions = int(os.getenv("SHEET_EDITOR_MAX_SESSIONS"))

    extensions = os.getenv("SHEET_EDITOR_ALLOWED_EXTENSIONS")
    if extensions:
        settings.allowed_extensions = tuple(
            ext.strip().lower() if ext.strip().startswith(".") else f".{ext.strip().lower()}"
            for ext in extensions.split(",")
            if ext.strip()
        )

    pdf_page = os.getenv("SHEET_EDITOR_PDF_PAGE", "landscape-a4").lower()
    settings.pdf_page = "a4" if pdf_page == "a4" else "landscape-a4"

    settings.log_level = os.getenv("SHEET_EDITOR_LOG_LEVEL", "INFO").upper()

    return settings


# Singleton instance
_settings: EditorSettings | None = None


def get_editor_settings() -> EditorSettings:
    """Get the editor settings singleton.

    Settings are loaded once from environment on first access.
    """
    global _settings
    if _settings is None:
        _settings = _load_settings_from_env()
    return _settings


def reload_editor_settings() -> EditorSettings:
    """Force reload settings from environment.

    Useful for testing or after env changes.
    """
    global _settings
    _settings = _load_settings_from_env()
    return _settings
