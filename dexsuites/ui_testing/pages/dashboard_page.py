"""
================================================================================
Dashboard Page Object (Async / Playwright)
================================================================================

Post-login landing page. Only the landing check lives here; content
management has its own page object.

================================================================================
"""

from __future__ import annotations

import re
from typing import Optional

import allure

from dexsuites.ui_testing.framework.page_base import BasePage


DASHBOARD_URL_PATTERN = re.compile(r".*dashboard")


class DashboardPage(BasePage):
    """Dashboard page object (async)."""

    URL_PATTERN = DASHBOARD_URL_PATTERN

    def is_loaded(self) -> bool:
        """True when the current URL matches the dashboard pattern."""
        return bool(self.URL_PATTERN.match(self.current_url))

    @allure.step("Wait for dashboard to load")
    async def wait_until_loaded(self, timeout: Optional[int] = None) -> None:
        await self.wait_for_url(self.URL_PATTERN, timeout=timeout)
        await self.wait_for_page_load("domcontentloaded")


__all__ = ["DASHBOARD_URL_PATTERN", "DashboardPage"]
