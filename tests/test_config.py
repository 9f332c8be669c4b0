"""Tests for environment-driven editor settings."""

import pytest

from services.config import get_editor_settings, reload_editor_settings


ENV_VARS = (
    "SHEET_EDITOR_MAX_UPLOAD_MB",
    "SHEET_EDITOR_MAX_SESSIONS",
    "SHEET_EDITOR_ALLOWED_EXTENSIONS",
    "SHEET_EDITOR_PDF_PAGE",
    "SHEET_EDITOR_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    monkeypatch.undo()
    reload_editor_settings()


class TestEditorSettings:

    def test_defaults(self):
        settings = reload_editor_settings()
        assert settings.max_upload_mb == 10
        assert settings.max_upload_bytes == 10 * 1024 * 1024
        assert settings.allowed_extensions == (".xlsx", ".csv")
        assert settings.max_sessions == 50
        assert settings.pdf_page == "landscape-a4"
        assert settings.log_level == "INFO"

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("SHEET_EDITOR_MAX_UPLOAD_MB", "2")
        monkeypatch.setenv("SHEET_EDITOR_MAX_SESSIONS", "5")
        monkeypatch.setenv("SHEET_EDITOR_ALLOWED_EXTENSIONS", "XLSX, csv ,")
        monkeypatch.setenv("SHEET_EDITOR_PDF_PAGE", "A4")
        monkeypatch.setenv("SHEET_EDITOR_LOG_LEVEL", "debug")

        settings = reload_editor_settings()
        assert settings.max_upload_bytes == 2 * 1024 * 1024
        assert settings.max_sessions == 5
        assert settings.allowed_extensions == (".xlsx", ".csv")
        assert settings.pdf_page == "a4"
        assert settings.log_level == "DEBUG"

    def test_unknown_pdf_page_falls_back(self, monkeypatch):
        monkeypatch.setenv("SHEET_EDITOR_PDF_PAGE", "letter")
        assert reload_editor_settings().pdf_page == "landscape-a4"

    def test_singleton(self):
        assert get_editor_settings() is get_editor_settings()
