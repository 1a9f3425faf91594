"""Tests for settings and component wiring."""

import pytest
from pydantic import ValidationError

from splitsync.config import (
    AppSettings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)
from splitsync.orchestrator import create_app_components, create_repository
from splitsync.services.storage import (
    InMemoryLedgerRepository,
    JsonFileLedgerRepository,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate from any .env file and reset the settings cache."""
    monkeypatch.chdir(tmp_path)
    for name in [
        "SPLITSYNC_STORAGE_BACKEND",
        "SPLITSYNC_STORAGE_DATA_DIR",
        "SPLITSYNC_STORAGE_STORAGE_KEY",
        "GEMINI_API_KEY",
        "INSIGHT_WINDOW",
        "DEFAULT_GROUP_NAME",
        "GOOGLE_SHEETS_CREDENTIALS_PATH",
        "GOOGLE_SHEETS_SPREADSHEET_ID",
    ]:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Tests for environment-driven configuration."""

    def test_defaults(self):
        storage = StorageSettings()
        app = AppSettings()

        assert storage.backend == "json_file"
        assert storage.storage_key == "pentsplit_vault"
        assert app.settled_epsilon == 0.01
        assert app.insight_window == 50
        assert app.default_group_name == "Main Squad"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("SPLITSYNC_STORAGE_BACKEND", "memory")
        monkeypatch.setenv("INSIGHT_WINDOW", "10")

        assert StorageSettings().backend == "memory"
        assert AppSettings().insight_window == 10

    def test_unknown_backend_rejected(self, monkeypatch):
        monkeypatch.setenv("SPLITSYNC_STORAGE_BACKEND", "postgres")
        with pytest.raises(ValidationError):
            StorageSettings()

    def test_format_currency(self):
        assert AppSettings().format_currency(1234.5) == "₹1,234.50"

    def test_validate_all_settings_reports_missing_gemini_key(self):
        status = validate_all_settings()

        assert status["storage"] is True
        assert status["app"] is True
        assert status["gemini"] is False
        assert "gemini_error" in status
        assert "google_sheets" not in status

    def test_validate_all_settings_with_gemini_key(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        assert validate_all_settings()["gemini"] is True


class TestWiring:
    """Tests for building the app components from settings."""

    def test_memory_backend(self, monkeypatch):
        monkeypatch.setenv("SPLITSYNC_STORAGE_BACKEND", "memory")
        repository = create_repository(get_settings())
        assert isinstance(repository, InMemoryLedgerRepository)

    def test_json_backend_uses_data_dir(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SPLITSYNC_STORAGE_DATA_DIR", str(tmp_path / "vaults"))
        repository = create_repository(get_settings())
        assert isinstance(repository, JsonFileLedgerRepository)
        assert repository.path == tmp_path / "vaults" / "pentsplit_vault.json"

    def test_components_start_with_default_group(self, monkeypatch):
        monkeypatch.setenv("SPLITSYNC_STORAGE_BACKEND", "memory")
        monkeypatch.setenv("DEFAULT_GROUP_NAME", "Flatmates")

        store, insight_flow = create_app_components()

        assert store.active_group.name == "Flatmates"
        assert insight_flow.latest() is None

    def test_unconfigured_sheets_falls_back_to_configured_local_vault(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SPLITSYNC_STORAGE_BACKEND", "google_sheets")
        monkeypatch.setenv("SPLITSYNC_STORAGE_DATA_DIR", str(tmp_path / "vaults"))
        monkeypatch.setenv("SPLITSYNC_STORAGE_STORAGE_KEY", "flat_vault")

        store, _ = create_app_components()

        vault = JsonFileLedgerRepository(tmp_path / "vaults", "flat_vault")
        assert vault.path.exists()
        assert vault.load() == store.groups
        assert not (tmp_path / ".splitsync").exists()
