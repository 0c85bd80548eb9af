"""
================================================================================
Login Page Object (Async / Playwright)
================================================================================

Login screen of DEX Manager.

Design goals:
  - Locators built once with role/text queries (re-resolved on every action)
  - Boolean checks (`has_*`, `is_*`) never raise on timeout
  - Dashboard landing detected by URL pattern, not by a fixed sleep

================================================================================
"""

from __future__ import annotations

import re
from typing import Optional

import allure
from loguru import logger
from playwright.async_api import Page

from dexsuites.ui_testing.framework.config import Settings
from dexsuites.ui_testing.framework.page_base import BasePage

from .dashboard_page import DASHBOARD_URL_PATTERN


class LoginPage(BasePage):
    """Login page object (async)."""

    ERROR_TEXT_PATTERN = re.compile(r"invalid|error|incorrect", re.IGNORECASE)
    LOGIN_FORM_TEXT = "Login with your credentials"

    def __init__(self, page: Page, settings: Optional[Settings] = None):
        super().__init__(page, settings)

        self.username_input = page.get_by_role("textbox", name="User")
        self.password_input = page.get_by_role("textbox", name="Password")
        self.login_button = page.get_by_role("button", name="Login")
        self.error_message = page.get_by_text(self.ERROR_TEXT_PATTERN)
        self.login_form = page.get_by_text(self.LOGIN_FORM_TEXT)

    @allure.step("Open login page")
    async def go_to_login_page(self) -> None:
        """Navigate to the application root, which shows the login form."""
        await self.navigate()

    @allure.step("Login (username={username})")
    async def login(self, username: str, password: str) -> None:
        """
        Fill the credentials and submit the form.

        Waits for the load events after submitting but does not assert the
        landing page; use `wait_for_dashboard()` or `is_login_successful()`.
        """
        await self.wait_for_visible(self.login_form)
        await self.fill(self.username_input, username)
        await self.fill(self.password_input, password)
        await self.click(self.login_button)

        await self.wait_for_page_load("load")
        await self.wait_for_page_load("domcontentloaded")
        logger.debug(f"Login submitted for {username}")

    async def login_with_env_credentials(self, settings: Optional[Settings] = None) -> None:
        """Login with USER_EMAIL / USER_PASSWORD from the configuration."""
        settings = settings or self.settings
        await self.login(settings.user_email, settings.user_password)

    @allure.step("Wait for dashboard")
    async def wait_for_dashboard(self, timeout: Optional[int] = None) -> None:
        """Wait until the URL matches the dashboard pattern."""
        await self.wait_for_url(DASHBOARD_URL_PATTERN, timeout=timeout)

    async def is_login_page_displayed(self) -> bool:
        return await self.is_visible(self.login_form)

    async def get_error_message(self) -> str:
        """Text of the visible login error (raises TimeoutError if none shows)."""
        return (await self.get_text(self.error_message)).strip()

    async def is_login_successful(self) -> bool:
        """
        True when the browser left the login screen.

        Either the URL no longer looks like a login/auth route, or a
        dashboard container is visible.
        """
        url = self.current_url.lower()
        if "login" not in url and "auth" not in url:
            return True
        dashboard = self.page.locator('[data-testid="dashboard"], .dashboard, .main-content')
        return await self.is_visible(dashboard.first, timeout=2000)

    async def has_username_field(self) -> bool:
        return await self.is_visible(self.username_input)

    async def has_password_field(self) -> bool:
        return await self.is_visible(self.password_input)

    async def is_login_button_enabled(self) -> bool:
        await self.wait_for_visible(self.login_button)
        return await self.login_button.is_enabled()


__all__ = ["LoginPage"]
