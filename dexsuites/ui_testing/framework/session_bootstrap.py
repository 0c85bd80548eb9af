"""
================================================================================
Session Bootstrap
================================================================================

One-time login producing the session snapshot every test context loads.

Manages the snapshot with:
    - Fail-fast credential validation before any browser is launched
    - Login through LoginPage (the same primitives the tests use)
    - Dashboard URL confirmation before the snapshot is written
    - Single-writer guarantee across pytest-xdist workers using an async filelock
      and a per-run marker file

Snapshot lifecycle: written once at the start of a run, read-only while
tests execute, replaced by the next run.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

from filelock import AsyncFileLock, Timeout
from loguru import logger
from playwright.async_api import Error as PlaywrightError

from dexsuites.ui_testing.pages.login_page import LoginPage

from .browser_manager import BrowserManager
from .config import ConfigurationError, Settings, get_settings


# Dashboard must appear within this window after submitting the login form
LOGIN_CONFIRMATION_TIMEOUT = 30000

# Seconds a worker waits for another worker that is logging in
DEFAULT_LOCK_TIMEOUT = 300


class AuthenticationError(Exception):
    """Raised when the bootstrap login does not reach the dashboard."""
    pass


def _check_credentials(settings: Settings) -> None:
    missing = settings.missing_credentials
    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}. "
            f"Copy .env.example to .env and fill in the values."
        )


def load_session_snapshot(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read and shape-check a session snapshot.

    Raises:
        ConfigurationError: Missing file, invalid JSON, or no cookies/origins lists
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Session snapshot not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            state = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Session snapshot is not valid JSON: {path}: {e}") from e

    if not isinstance(state, dict):
        raise ConfigurationError(f"Session snapshot must be a JSON object: {path}")
    for key in ("cookies", "origins"):
        if not isinstance(state.get(key), list):
            raise ConfigurationError(f"Session snapshot {path} has no '{key}' list")

    return state


async def bootstrap_session(
    settings: Optional[Settings] = None,
    state_path: Optional[Union[str, Path]] = None,
    browser_type: str = "chromium",
) -> Path:
    """
    Log in once and persist the session snapshot.

    Args:
        settings: Harness settings (process-wide settings if omitted)
        state_path: Snapshot destination (Settings.auth_state_path if omitted)
        browser_type: Browser used for the login

    Returns:
        Path of the written snapshot

    Raises:
        ConfigurationError: Required credentials missing (no browser launched)
        AuthenticationError: Login did not land on the dashboard, or the
            browser could not reach the application at all
    """
    settings = settings or get_settings()
    _check_credentials(settings)

    state_path = Path(state_path or settings.auth_state_path)
    settings.ensure_directories()

    logger.info(f"Authenticating against {settings.base_url} as {settings.user_email}")
    try:
        async with BrowserManager(settings, browser_type=browser_type) as manager:
            context = await manager.new_context(fresh=True)
            page = await context.new_page()
            login_page = LoginPage(page, settings)

            # Timeouts and navigation failures (refused connection, unknown host) alike
            try:
                await login_page.go_to_login_page()
                await login_page.login_with_env_credentials(settings)
                await login_page.wait_for_dashboard(timeout=LOGIN_CONFIRMATION_TIMEOUT)
            except PlaywrightError as e:
                raise AuthenticationError(
                    f"Login did not reach the dashboard (current URL: {page.url}): {e}"
                ) from e

            state_path.parent.mkdir(parents=True, exist_ok=True)
            await context.storage_state(path=str(state_path))
    except PlaywrightError as e:
        raise AuthenticationError(f"Session bootstrap failed: {e}") from e

    logger.info(f"Authentication successful. Session snapshot saved to {state_path}")
    return state_path


def _marker_path(state_path: Path) -> Path:
    return state_path.with_name(state_path.name + ".run")


def _lock_path(state_path: Path) -> Path:
    return state_path.with_name(state_path.name + ".lock")


def snapshot_is_current(state_path: Union[str, Path], run_id: str) -> bool:
    """True when the snapshot exists, is well-formed and was written by `run_id`."""
    state_path = Path(state_path)
    marker = _marker_path(state_path)
    if not marker.exists() or marker.read_text(encoding="utf-8").strip() != run_id:
        return False
    try:
        load_session_snapshot(state_path)
    except ConfigurationError as e:
        logger.warning(f"Discarding unusable session snapshot: {e}")
        return False
    return True


async def ensure_session_snapshot(
    run_id: str,
    settings: Optional[Settings] = None,
    state_path: Optional[Union[str, Path]] = None,
    browser_type: str = "chromium",
    lock_timeout: float = DEFAULT_LOCK_TIMEOUT,
) -> Path:
    """
    Make sure this run's session snapshot exists, logging in at most once.

    The first worker to take the lock logs in and writes `run_id` to the
    marker file; workers that follow find the marker and reuse the file.

    Args:
        run_id: Identifier shared by every worker of one test run
        settings: Harness settings (process-wide settings if omitted)
        state_path: Snapshot location (Settings.auth_state_path if omitted)
        browser_type: Browser used for the login
        lock_timeout: Seconds to wait for another worker's login

    Raises:
        ConfigurationError: Required credentials missing
        AuthenticationError: Login failed or another worker never finished
    """
    settings = settings or get_settings()
    _check_credentials(settings)

    state_path = Path(state_path or settings.auth_state_path)
    state_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        async with AsyncFileLock(str(_lock_path(state_path)), timeout=lock_timeout):
            if snapshot_is_current(state_path, run_id):
                logger.debug(f"Reusing session snapshot of run {run_id}")
                return state_path

            await bootstrap_session(settings, state_path, browser_type=browser_type)
            _marker_path(state_path).write_text(run_id, encoding="utf-8")
            return state_path
    except Timeout as e:
        raise AuthenticationError(
            f"Timed out after {lock_timeout}s waiting for the session bootstrap lock"
        ) from e


__all__ = [
    "AuthenticationError",
    "LOGIN_CONFIRMATION_TIMEOUT",
    "bootstrap_session",
    "ensure_session_snapshot",
    "load_session_snapshot",
    "snapshot_is_current",
]
