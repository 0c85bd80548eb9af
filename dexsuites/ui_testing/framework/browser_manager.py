"""
================================================================================
Browser Manager
================================================================================

Browser lifecycle management for UI automation.

Features:
    - One browser instance per manager
    - Isolated contexts (own cookies, storage and pages) per test
    - Session snapshot restore, or an explicitly empty session
    - Downloads accepted in every context
    - Playwright tracing per context, kept only for failed tests

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import copy
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger
from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
)

from .config import ConfigurationError, Settings, get_settings


SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")

# Storage state of a context that has never logged in
EMPTY_STORAGE_STATE: Dict[str, list] = {"cookies": [], "origins": []}


class BrowserManager:
    """
    Manages a browser instance and its contexts.

    Usage:
        async with BrowserManager(settings) as manager:
            context = await manager.new_context()            # logged in
            page = await context.new_page()

            fresh = await manager.new_context(fresh=True)    # logged out
    """

    # Default browser launch options
    DEFAULT_LAUNCH_OPTIONS: Dict[str, Any] = {
        "args": [
            "--ignore-certificate-errors",
        ],
    }

    # Default context options
    DEFAULT_CONTEXT_OPTIONS: Dict[str, Any] = {
        "viewport": {"width": 1920, "height": 1080},
        "ignore_https_errors": True,
        "accept_downloads": True,
    }

    def __init__(
        self,
        settings: Optional[Settings] = None,
        browser_type: str = "chromium",
        headless: Optional[bool] = None,
        slow_mo: Optional[int] = None,
        storage_state_path: Optional[Path] = None,
    ):
        """
        Initialize browser manager.

        Args:
            settings: Harness settings (process-wide settings if omitted)
            browser_type: Browser to use - 'chromium', 'firefox', 'webkit'
            headless: Override Settings.headless
            slow_mo: Override Settings.slow_mo (ms between operations)
            storage_state_path: Session snapshot (Settings.auth_state_path if omitted)
        """
        if browser_type not in SUPPORTED_BROWSERS:
            raise ConfigurationError(
                f"Unsupported browser '{browser_type}'. Use one of: {', '.join(SUPPORTED_BROWSERS)}"
            )

        self.settings = settings or get_settings()
        self.browser_type = browser_type
        self.headless = self.settings.headless if headless is None else headless
        self.slow_mo = self.settings.slow_mo if slow_mo is None else slow_mo
        self.storage_state_path = Path(storage_state_path or self.settings.auth_state_path)

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._contexts: List[BrowserContext] = []

    async def __aenter__(self) -> "BrowserManager":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def start(self) -> None:
        """Start Playwright and launch browser."""
        self._playwright = await async_playwright().start()
        browser_launcher = getattr(self._playwright, self.browser_type)

        launch_options = {
            **self.DEFAULT_LAUNCH_OPTIONS,
            "headless": self.headless,
            "slow_mo": self.slow_mo,
        }
        if self.browser_type != "chromium":
            launch_options.pop("args")

        self._browser = await browser_launcher.launch(**launch_options)
        logger.debug(
            f"Browser started: {self.browser_type} "
            f"(headless={self.headless}, slow_mo={self.slow_mo})"
        )

    async def close(self) -> None:
        """Close all contexts, the browser and Playwright."""
        for context in self._contexts:
            try:
                await context.close()
            except PlaywrightError as e:
                logger.debug(f"Context already closed: {e}")
        self._contexts.clear()

        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        logger.debug("Browser closed")

    async def new_context(
        self,
        restore_auth: bool = True,
        fresh: bool = False,
        **options: Any,
    ) -> BrowserContext:
        """
        Create a new isolated browser context.

        Args:
            restore_auth: Load the session snapshot (ignored when fresh=True)
            fresh: Start with an empty session, discarding the snapshot
            **options: Additional Playwright context options

        Returns:
            New BrowserContext

        Raises:
            ConfigurationError: restore_auth requested but no snapshot exists
        """
        if not self._browser:
            raise RuntimeError("Browser not started. Call start() first.")

        context_options = {**self.DEFAULT_CONTEXT_OPTIONS, **options}
        context_options.setdefault("base_url", self.settings.base_url or None)

        if fresh:
            context_options["storage_state"] = copy.deepcopy(EMPTY_STORAGE_STATE)
        elif restore_auth:
            if not self.storage_state_path.exists():
                raise ConfigurationError(
                    f"Session snapshot not found: {self.storage_state_path}. "
                    f"Run the session bootstrap first."
                )
            context_options["storage_state"] = str(self.storage_state_path)
            logger.debug(f"Restored session from {self.storage_state_path}")

        context = await self._browser.new_context(**context_options)
        context.set_default_timeout(self.settings.action_timeout)
        context.set_default_navigation_timeout(self.settings.navigation_timeout)
        self._contexts.append(context)

        return context

    async def new_page(
        self,
        context: Optional[BrowserContext] = None,
        **context_options: Any,
    ) -> Page:
        """
        Create new page in new or existing context.

        Args:
            context: Existing context to use (creates new if None)
            **context_options: Options for new context
        """
        if context is None:
            context = await self.new_context(**context_options)

        return await context.new_page()

    async def start_tracing(self, context: BrowserContext) -> None:
        """Record screenshots and DOM snapshots for the context's lifetime."""
        await context.tracing.start(screenshots=True, snapshots=True)

    async def stop_tracing(
        self,
        context: BrowserContext,
        name: Optional[str] = None,
    ) -> Optional[Path]:
        """
        Stop tracing, saving `<trace_path>/<name>.zip` when a name is given.

        Without a name the recording is discarded.

        Returns:
            Path of the saved trace, or None
        """
        if name is None:
            await context.tracing.stop()
            return None

        directory = self.settings.trace_path
        directory.mkdir(parents=True, exist_ok=True)
        safe_name = re.sub(r'[^\w.-]', '_', name)
        trace_file = directory / f"{safe_name}.zip"
        await context.tracing.stop(path=str(trace_file))
        logger.info(f"Trace saved: {trace_file}")
        return trace_file

    async def close_context(self, context: BrowserContext) -> None:
        """Close one context and stop tracking it."""
        if context in self._contexts:
            self._contexts.remove(context)
        await context.close()

    @property
    def browser(self) -> Optional[Browser]:
        """Get browser instance."""
        return self._browser


__all__ = [
    "BrowserManager",
    "EMPTY_STORAGE_STATE",
    "SUPPORTED_BROWSERS",
]
