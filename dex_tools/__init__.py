"""
================================================================================
DEX Tools
================================================================================

Support utilities for the DEX Manager automation harness.

Modules:
    - common: Logging setup shared by the runner and the suites
    - report_tools: Screenshots, Allure attachments and result summaries
    - data_generator: Unique names, validation helpers and fixture files

Example:
    from dex_tools.common import init_logger
    from dex_tools.data_generator import generate_folder_name

    init_logger(level="DEBUG")
    name = generate_folder_name("Automated Test")

================================================================================
"""

__version__ = "1.0.0"

__all__ = [
    "common",
    "report_tools",
    "data_generator",
]
