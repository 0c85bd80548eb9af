"""Unit-suite fixtures: isolated configuration, settings and the fake page."""

import pytest

from dexsuites.ui_testing.framework.config import ConfigLoader, Settings, reset_settings

from .fakes import FakeAssertions, FakePage


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch):
    """Keep the process-wide settings cache out of every unit test."""
    for key in ("BASE_URL", "USER_EMAIL", "USER_PASSWORD", "LOG_LEVEL", "LOG_FILE"):
        monkeypatch.delenv(key, raising=False)
    reset_settings()
    yield
    reset_settings()
    ConfigLoader.reset()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        base_url="https://dex.example.com/DexFrontEnd/",
        user_email="qa@example.com",
        user_password="secret",
        action_timeout=1000,
        navigation_timeout=2000,
        test_files_path=tmp_path / "test-files",
        screenshots_path=tmp_path / "screenshots",
        downloads_path=tmp_path / "downloads",
        report_path=tmp_path / "reports",
        trace_path=tmp_path / "trace",
        auth_state_path=tmp_path / "auth" / "storage_state.json",
    )


@pytest.fixture
def fake_page():
    return FakePage()


@pytest.fixture
def fake_expect(monkeypatch):
    monkeypatch.setattr("dexsuites.ui_testing.framework.page_base.expect", FakeAssertions)
    return FakeAssertions
