"""
================================================================================
UI Testing Pytest Configuration
================================================================================

This module configures pytest for the DEX Manager browser suites, providing
fixtures for configuration, the shared session snapshot, browser lifecycle
and page objects.

Key Features:
- Fail-fast configuration check (run aborts with exit code 3)
- One login per run, shared by every test and every xdist worker
- Isolated context per test, restored from the session snapshot
- Logged-out context for login tests
- Screenshot, URL and API responses attached to Allure on failure
- Playwright trace kept for failed tests, discarded for passing ones
- Per-test wall-clock limit from TEST_TIMEOUT

================================================================================
"""

import os
import uuid
from pathlib import Path
from typing import AsyncGenerator, Dict

import pytest
import pytest_asyncio
from loguru import logger
from playwright.async_api import BrowserContext, Error as PlaywrightError, Page

from dex_tools.common import init_logger
from dex_tools.data_generator import ensure_test_images, generate_folder_name
from dexsuites.ui_testing.framework.browser_manager import BrowserManager
from dexsuites.ui_testing.framework.config import (
    ConfigurationError,
    Settings,
    get_settings,
    validate_environment,
)
from dexsuites.ui_testing.framework.page_base import BasePage
from dexsuites.ui_testing.framework.session_bootstrap import (
    AuthenticationError,
    ensure_session_snapshot,
)
from dexsuites.ui_testing.framework.test_data import ContentData, TestDataError, load_content_data
from dexsuites.ui_testing.framework.wait_helpers import bounded_test_body
from dexsuites.ui_testing.pages.content_page import ContentPage
from dexsuites.ui_testing.pages.dashboard_page import DashboardPage
from dexsuites.ui_testing.pages.login_page import LoginPage


# Exit code used when configuration or the session bootstrap aborts the run
CONFIGURATION_EXIT_CODE = 3


# ================================================================================
# Configuration Fixtures
# ================================================================================

@pytest.fixture(scope="session")
def settings() -> Settings:
    """
    Session-scoped harness settings.

    Missing BASE_URL / USER_EMAIL / USER_PASSWORD abort the whole run before
    any browser is launched.
    """
    init_logger()
    try:
        settings = get_settings()
        validate_environment()
    except ConfigurationError as e:
        pytest.exit(f"Configuration error: {e}", returncode=CONFIGURATION_EXIT_CODE)

    settings = settings.for_environment(os.getenv("TEST_ENV"))
    settings.ensure_directories()
    logger.info(f"Target: {settings.base_url}")
    return settings


@pytest.fixture(scope="session")
def run_id() -> str:
    """Identifier shared by every worker of this run (xdist sets it for us)."""
    return os.getenv("PYTEST_XDIST_TESTRUNUID") or uuid.uuid4().hex


@pytest.fixture(scope="session")
def browser_name(pytestconfig) -> str:
    return pytestconfig.getoption("--browser")


@pytest.fixture(scope="session")
def content_data() -> ContentData:
    """Validated content test data."""
    try:
        return load_content_data()
    except TestDataError as e:
        pytest.exit(f"Test data error: {e}", returncode=CONFIGURATION_EXIT_CODE)


@pytest.fixture(scope="session")
def test_files(settings: Settings) -> Dict[str, Path]:
    """Upload fixtures, generated on first use."""
    return ensure_test_images(settings.test_files_path)


@pytest.fixture
def folder_name(content_data: ContentData) -> str:
    """Unique, valid folder name for the current test."""
    return generate_folder_name(content_data.folder_names.prefix)


# ================================================================================
# Browser Fixtures
# ================================================================================

@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def session_snapshot(settings: Settings, run_id: str, browser_name: str) -> Path:
    """
    Path of the authenticated session snapshot for this run.

    The first worker logs in; the others wait on the lock and reuse the file.
    """
    try:
        return await ensure_session_snapshot(run_id, settings, browser_type=browser_name)
    except (ConfigurationError, AuthenticationError) as e:
        pytest.exit(f"Session bootstrap failed: {e}", returncode=CONFIGURATION_EXIT_CODE)


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def browser_manager(
    settings: Settings,
    browser_name: str,
    pytestconfig,
) -> AsyncGenerator[BrowserManager, None]:
    """
    Session-scoped browser manager fixture.

    One browser per worker; each test gets its own context from it.
    """
    headless = False if pytestconfig.getoption("--headed") else None
    manager = BrowserManager(settings, browser_type=browser_name, headless=headless)
    await manager.start()
    yield manager
    await manager.close()


def _test_failed(request) -> bool:
    report = getattr(request.node, "rep_call", None)
    return report is not None and report.failed


async def _close_context(request, manager: BrowserManager, context: BrowserContext) -> None:
    try:
        await manager.stop_tracing(context, request.node.name if _test_failed(request) else None)
    except PlaywrightError as e:
        logger.warning(f"Failed to save trace: {e}")
    await manager.close_context(context)


async def _close_page(request, page: Page, settings: Settings) -> None:
    if _test_failed(request):
        try:
            await BasePage(page, settings).capture_failure(request.node.name)
        except PlaywrightError as e:
            logger.warning(f"Failed to capture failure details: {e}")
    await page.close()


@pytest_asyncio.fixture
async def context(
    request,
    browser_manager: BrowserManager,
    session_snapshot: Path,
) -> AsyncGenerator[BrowserContext, None]:
    """Authenticated context restored from the session snapshot, traced."""
    context = await browser_manager.new_context(restore_auth=True)
    await browser_manager.start_tracing(context)
    yield context
    await _close_context(request, browser_manager, context)


@pytest_asyncio.fixture
async def page(request, context: BrowserContext, settings: Settings) -> AsyncGenerator[Page, None]:
    """Authenticated page, captured to Allure if the test fails."""
    page = await context.new_page()
    yield page
    await _close_page(request, page, settings)


@pytest_asyncio.fixture
async def fresh_context(
    request,
    browser_manager: BrowserManager,
) -> AsyncGenerator[BrowserContext, None]:
    """Logged-out context (empty cookies and origins)."""
    context = await browser_manager.new_context(fresh=True)
    await browser_manager.start_tracing(context)
    yield context
    await _close_context(request, browser_manager, context)


@pytest_asyncio.fixture
async def fresh_page(
    request,
    fresh_context: BrowserContext,
    settings: Settings,
) -> AsyncGenerator[Page, None]:
    page = await fresh_context.new_page()
    yield page
    await _close_page(request, page, settings)


# ================================================================================
# Page Object Fixtures
# ================================================================================

@pytest.fixture
def login_page(fresh_page: Page, settings: Settings) -> LoginPage:
    """
    Provides LoginPage on a logged-out page.

    Use this fixture for tests that exercise the login form itself.
    """
    return LoginPage(fresh_page, settings)


@pytest.fixture
def dashboard_page(page: Page, settings: Settings) -> DashboardPage:
    return DashboardPage(page, settings)


@pytest.fixture
def content_page(page: Page, settings: Settings, content_data: ContentData) -> ContentPage:
    """ContentPage on an authenticated page (not yet navigated)."""
    return ContentPage(page, settings, forbidden_chars=content_data.folder_names.forbidden_chars)


@pytest_asyncio.fixture
async def content_library(content_page: ContentPage) -> ContentPage:
    """ContentPage already showing the media library."""
    await content_page.navigate()
    await content_page.go_to_content_module()
    return content_page


# ================================================================================
# Test Lifecycle Hooks
# ================================================================================

@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """
    Keep each phase's report on the item.

    The page fixtures read `rep_call` during teardown to decide whether to
    capture the failure.
    """
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"rep_{report.when}", report)


@pytest.hookimpl(hookwrapper=True, tryfirst=True)
def pytest_runtest_call(item):
    """
    Bound every async browser test by `settings.test_timeout`.

    Runs after setup, so the wall-clock limit covers the test body only.
    """
    settings = getattr(item, "funcargs", {}).get("settings")
    if settings is None:
        yield
        return
    with bounded_test_body(item, settings.test_timeout / 1000):
        yield
