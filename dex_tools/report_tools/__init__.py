"""Report and artifact helpers (screenshots, Allure, JSON summaries)."""

from .artifacts import (
    ResultSummary,
    attach_json,
    attach_png,
    attach_text,
    capture_console_logs,
    capture_network_errors,
    generate_allure_report,
    get_performance_metrics,
    screenshot_filename,
    serve_allure_report,
    summarize_allure_results,
    take_screenshot,
    write_json_summary,
)

__all__ = [
    "ResultSummary",
    "attach_json",
    "attach_png",
    "attach_text",
    "capture_console_logs",
    "capture_network_errors",
    "generate_allure_report",
    "get_performance_metrics",
    "screenshot_filename",
    "serve_allure_report",
    "summarize_allure_results",
    "take_screenshot",
    "write_json_summary",
]
