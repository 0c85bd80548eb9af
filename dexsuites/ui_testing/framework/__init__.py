"""
================================================================================
UI Testing Framework
================================================================================

Playwright-based Page Object framework for DEX Manager.

Components:
    - config: Environment/YAML configuration and fail-fast validation
    - page_base: Base page object with explicit-wait interactions
    - wait_helpers: Backoff and fixed-interval polling
    - test_data: Typed content test-data file
    - browser_manager: Browser lifecycle and isolated contexts
    - session_bootstrap: One-time login producing the session snapshot

Author: Automation Team
License: MIT
================================================================================
"""

from .config import ConfigurationError, Settings, get_settings
from .page_base import BasePage
from .browser_manager import BrowserManager

__all__ = [
    "BasePage",
    "BrowserManager",
    "ConfigurationError",
    "Settings",
    "get_settings",
]
