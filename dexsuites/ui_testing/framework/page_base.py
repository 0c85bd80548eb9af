"""
================================================================================
Base Page Object
================================================================================

Foundation class for Page Object Model implementation.

Provides:
    - Explicit-wait interactions (wait for state first, then act)
    - Boolean visibility checks that never raise
    - Navigation and URL waits
    - Dialog auto-accept / auto-dismiss policy
    - Screenshot and failure capture utilities

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Pattern, Union

import allure
from loguru import logger
from playwright.async_api import Dialog, Locator, Page, Response, expect
from playwright.async_api import Error as PlaywrightError

from dex_tools.report_tools.artifacts import attach_json, attach_png, attach_text, take_screenshot

from .config import Settings, get_settings


DIALOG_ACCEPT = "accept"
DIALOG_DISMISS = "dismiss"

# Boolean existence checks use a short window instead of the action timeout
VISIBILITY_CHECK_TIMEOUT = 5000


class BasePage:
    """
    Base class for all page objects.

    Every interaction first waits for the element to reach the required
    state (visible by default) within the action timeout, then performs the
    action. A timeout propagates to the caller as Playwright's TimeoutError;
    only `is_visible` converts driver errors into ``False``.

    Usage:
        class LoginPage(BasePage):
            def __init__(self, page):
                super().__init__(page)
                self.login_button = page.get_by_role("button", name="Login")

            async def submit(self):
                await self.click(self.login_button)
    """

    def __init__(
        self,
        page: Page,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize page object.

        Args:
            page: Playwright Page object this page object is bound to
            settings: Harness settings (process-wide settings if omitted)
        """
        self.page = page
        self.settings = settings or get_settings()
        self.action_timeout = self.settings.action_timeout
        self.navigation_timeout = self.settings.navigation_timeout

        self._dialog_policy: Optional[str] = None
        self._dialog_handler_registered = False

        # API response capture for failure reports
        self._captured_responses: List[Dict[str, Any]] = []
        self._setup_response_capture()

    def _setup_response_capture(self) -> None:
        """Keep the last API responses for debugging failed tests."""

        async def capture_response(response: Response) -> None:
            if "/api/" not in response.url:
                return
            self._captured_responses.append({
                "timestamp": datetime.now().isoformat(),
                "url": response.url,
                "status": response.status,
            })
            if len(self._captured_responses) > 20:
                self._captured_responses.pop(0)

        self.page.on("response", capture_response)

    # =========================================================================
    # Navigation
    # =========================================================================

    async def navigate(self, path: str = "") -> None:
        """
        Navigate to a path relative to the base URL.

        Args:
            path: Path to navigate to ('' for the application root)
        """
        url = f"{self.settings.base_url.rstrip('/')}/{path.lstrip('/')}" if path else self.settings.base_url
        with allure.step(f"Navigate to {path or '/'}"):
            await self.page.goto(url, timeout=self.navigation_timeout)
            logger.debug(f"Navigated to: {url}")

    async def wait_for_url(
        self,
        url_pattern: Union[str, Pattern[str]],
        timeout: Optional[int] = None,
    ) -> None:
        """Wait for the page URL to match a glob or regex pattern."""
        with allure.step(f"Wait for URL: {url_pattern}"):
            await self.page.wait_for_url(
                url_pattern, timeout=timeout or self.navigation_timeout
            )

    async def wait_for_page_load(
        self,
        state: str = "load",
        timeout: Optional[int] = None,
    ) -> None:
        """Wait for 'load', 'domcontentloaded' or 'networkidle'."""
        await self.page.wait_for_load_state(
            state, timeout=timeout or self.navigation_timeout
        )

    @property
    def current_url(self) -> str:
        """Current page URL."""
        return self.page.url

    async def scroll_to_bottom(self) -> None:
        """Scroll the window to the end of the document."""
        await self.page.evaluate("window.scrollTo(0, document.body.scrollHeight)")

    # =========================================================================
    # Element Interactions
    # =========================================================================

    async def click(self, locator: Locator, timeout: Optional[int] = None, **kwargs: Any) -> None:
        """
        Click an element once it is visible.

        Args:
            locator: Element to click
            timeout: Visibility timeout in ms (action timeout if omitted)
            **kwargs: Additional Playwright click options
        """
        await self.wait_for_visible(locator, timeout)
        await locator.click(**kwargs)

    async def fill(self, locator: Locator, value: str, timeout: Optional[int] = None) -> None:
        """Fill an input once it is visible."""
        await self.wait_for_visible(locator, timeout)
        await locator.fill(value)

    async def hover(self, locator: Locator, timeout: Optional[int] = None) -> None:
        """Hover an element once it is visible."""
        await self.wait_for_visible(locator, timeout)
        await locator.hover()

    async def select_option(self, locator: Locator, value: str, timeout: Optional[int] = None) -> None:
        """Select a dropdown option once the select is visible."""
        await self.wait_for_visible(locator, timeout)
        await locator.select_option(value)

    async def press(self, key: str) -> None:
        """Press a keyboard key on the page."""
        await self.page.keyboard.press(key)

    async def get_text(self, locator: Locator, timeout: Optional[int] = None) -> str:
        """
        Get the text content of a visible element.

        Returns:
            Text content, or an empty string when the element has none
        """
        await self.wait_for_visible(locator, timeout)
        return await locator.text_content() or ""

    # =========================================================================
    # Wait Utilities
    # =========================================================================

    async def wait_for_visible(self, locator: Locator, timeout: Optional[int] = None) -> None:
        """Wait for an element to become visible."""
        await locator.wait_for(state="visible", timeout=timeout or self.action_timeout)

    async def wait_for_hidden(self, locator: Locator, timeout: Optional[int] = None) -> None:
        """Wait for an element to become hidden or detached."""
        await locator.wait_for(state="hidden", timeout=timeout or self.action_timeout)

    async def is_visible(self, locator: Locator, timeout: int = VISIBILITY_CHECK_TIMEOUT) -> bool:
        """
        Check whether an element becomes visible within `timeout`.

        Never raises: a timeout, a strict-mode violation or a closed page
        all read as "not visible". Used for existence checks, not actions.
        """
        try:
            await locator.wait_for(state="visible", timeout=timeout)
            return True
        except PlaywrightError as e:
            logger.debug(f"Visibility check failed: {e}")
            return False

    async def expect_enabled(self, locator: Locator, timeout: Optional[int] = None) -> None:
        """Assert that an element is (or becomes) enabled."""
        await expect(locator).to_be_enabled(timeout=timeout or self.action_timeout)

    async def expect_disabled(self, locator: Locator, timeout: Optional[int] = None) -> None:
        """Assert that an element is (or becomes) disabled."""
        await expect(locator).to_be_disabled(timeout=timeout or self.action_timeout)

    # =========================================================================
    # Dialog Policy
    # =========================================================================

    @property
    def dialog_policy(self) -> Optional[str]:
        """Active dialog policy ('accept', 'dismiss' or None)."""
        return self._dialog_policy

    def accept_dialogs(self) -> None:
        """Auto-accept every subsequent dialog on this page."""
        self._set_dialog_policy(DIALOG_ACCEPT)

    def dismiss_dialogs(self) -> None:
        """Auto-dismiss every subsequent dialog on this page."""
        self._set_dialog_policy(DIALOG_DISMISS)

    def _set_dialog_policy(self, policy: str) -> None:
        # One policy per page lifetime; a later call replaces the earlier one.
        if self._dialog_policy and self._dialog_policy != policy:
            logger.warning(
                f"Dialog policy changed from '{self._dialog_policy}' to '{policy}'; "
                f"only the last registered policy applies"
            )
        self._dialog_policy = policy

        if not self._dialog_handler_registered:
            self.page.on("dialog", self._handle_dialog)
            self._dialog_handler_registered = True

    async def _handle_dialog(self, dialog: Dialog) -> None:
        logger.debug(f"Dialog '{dialog.type}' -> {self._dialog_policy}: {dialog.message}")
        if self._dialog_policy == DIALOG_DISMISS:
            await dialog.dismiss()
        else:
            await dialog.accept()

    # =========================================================================
    # Screenshot and Debug Utilities
    # =========================================================================

    async def screenshot(
        self,
        name: str,
        step: Optional[str] = None,
        full_page: bool = True,
        attach_to_allure: bool = True,
    ) -> Path:
        """
        Take a screenshot named `<name>_<timestamp>[_<step>].png`.

        Returns:
            Path to saved screenshot
        """
        filepath = await take_screenshot(
            self.page, self.settings.screenshots_path, name, step=step, full_page=full_page
        )
        if attach_to_allure:
            attach_png(filepath, name=name if step is None else f"{name} ({step})")
        return filepath

    async def capture_failure(self, test_name: str) -> None:
        """Attach screenshot, current URL and recent API responses to Allure."""
        with allure.step("Capture failure details"):
            await self.screenshot(f"failure_{test_name}")

            attach_text(self.page.url, name="Current URL")
            if self._captured_responses:
                attach_json(self._captured_responses[-10:], name="Recent API Responses")


__all__ = [
    "BasePage",
    "DIALOG_ACCEPT",
    "DIALOG_DISMISS",
    "VISIBILITY_CHECK_TIMEOUT",
]
