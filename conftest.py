"""
Repository-level pytest configuration.

Provides:
  - Command-line options shared by the browser suites (`--browser`, `--headed`)
  - The repository root as a fixture

Secrets are never defined here: BASE_URL / USER_EMAIL / USER_PASSWORD come
from the environment or a local `.env` file (see `.env.example`).
"""

from __future__ import annotations

from pathlib import Path

import pytest


def pytest_addoption(parser):
    group = parser.getgroup("dex", "DEX Manager browser options")
    group.addoption(
        "--browser",
        action="store",
        default="chromium",
        choices=("chromium", "firefox", "webkit"),
        help="Browser engine for UI suites (default: chromium)",
    )
    group.addoption(
        "--headed",
        action="store_true",
        default=False,
        help="Run the browser with a visible window",
    )


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent
