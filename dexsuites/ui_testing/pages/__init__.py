"""
================================================================================
Page Objects
================================================================================

Page Object Model implementations for DEX Manager screens.

Each page class encapsulates:
    - Element locators (built once, resolved on every action)
    - Atomic actions and business flows
    - Boolean queries that never raise on timeout

Author: Automation Team
License: MIT
================================================================================
"""

from .content_page import ContentPage, FolderDialogState, FolderNameRejectedError, ViewMode
from .dashboard_page import DashboardPage
from .login_page import LoginPage

__all__ = [
    "ContentPage",
    "DashboardPage",
    "FolderDialogState",
    "FolderNameRejectedError",
    "LoginPage",
    "ViewMode",
]
