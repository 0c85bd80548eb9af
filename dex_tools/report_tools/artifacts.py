"""
================================================================================
Test Artifacts and Report Utilities
================================================================================

Helpers for the artifacts a DEX Manager run leaves behind.

Features:
- Screenshot naming and capture (`<name>_<timestamp>[_<step>].png`)
- Allure attachment helpers
- Browser console / network error capture and navigation timing
- Allure result summaries and machine-readable JSON summary
- Allure HTML report generation and serving

================================================================================
"""

import json
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import allure
from loguru import logger


# ================================================================================
# Screenshots
# ================================================================================

def screenshot_filename(
    name: str,
    step: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Build a screenshot file name.

    Args:
        name: Test or page name
        step: Optional step label appended after the timestamp
        now: Timestamp to use (current time if omitted)

    Returns:
        File name of the form `<name>_<timestamp>[_<step>].png`
    """
    timestamp = (now or datetime.now()).strftime("%Y-%m-%dT%H-%M-%S-%f")
    step_suffix = f"_{step}" if step else ""
    return f"{name}_{timestamp}{step_suffix}.png"


async def take_screenshot(
    page,
    directory: Union[str, Path],
    name: str,
    step: Optional[str] = None,
    full_page: bool = True,
) -> Path:
    """
    Save a full-page screenshot under `directory` and return its path.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    filepath = directory / screenshot_filename(name, step)
    await page.screenshot(path=str(filepath), full_page=full_page)
    logger.debug(f"Screenshot saved: {filepath}")
    return filepath


# ================================================================================
# Attachment Helpers
# ================================================================================

def attach_json(data: Any, name: str = "Data"):
    """
    Attach JSON data to Allure report.

    Args:
        data: Data to attach (will be JSON serialized)
        name: Attachment name
    """
    allure.attach(
        json.dumps(data, indent=2, default=str),
        name=name,
        attachment_type=allure.attachment_type.JSON
    )


def attach_text(text: str, name: str = "Text"):
    """Attach text content to Allure report."""
    allure.attach(
        text,
        name=name,
        attachment_type=allure.attachment_type.TEXT
    )


def attach_png(path: Union[str, Path], name: Optional[str] = None):
    """Attach an existing PNG file to Allure report."""
    allure.attach.file(
        str(path),
        name=name or Path(path).stem,
        attachment_type=allure.attachment_type.PNG
    )


# ================================================================================
# Browser Diagnostics
# ================================================================================

def capture_console_logs(page) -> List[str]:
    """
    Start collecting browser console messages.

    Returns:
        A list that fills up as `[<type>] <text>` entries arrive
    """
    logs: List[str] = []
    page.on("console", lambda msg: logs.append(f"[{msg.type}] {msg.text}"))
    return logs


def capture_network_errors(page) -> List[str]:
    """
    Start collecting responses with status >= 400.

    Returns:
        A list that fills up as `<status> <url>` entries arrive
    """
    errors: List[str] = []

    def on_response(response) -> None:
        if response.status >= 400:
            errors.append(f"{response.status} {response.url}")

    page.on("response", on_response)
    return errors


_PERFORMANCE_SCRIPT = """
() => {
    const navigation = performance.getEntriesByType('navigation')[0];
    const paints = performance.getEntriesByType('paint');
    return {
        dom_content_loaded: navigation
            ? navigation.domContentLoadedEventEnd - navigation.domContentLoadedEventStart : 0,
        load_complete: navigation
            ? navigation.loadEventEnd - navigation.loadEventStart : 0,
        first_paint: paints[0] ? paints[0].startTime : 0,
        first_contentful_paint: paints[1] ? paints[1].startTime : 0,
    };
}
"""


async def get_performance_metrics(page) -> Dict[str, float]:
    """Navigation timing of the current document, in milliseconds."""
    return await page.evaluate(_PERFORMANCE_SCRIPT)


# ================================================================================
# Result Summaries
# ================================================================================

@dataclass
class ResultSummary:
    """Summary of test execution results."""
    total: int = 0
    passed: int = 0
    failed: int = 0
    broken: int = 0
    skipped: int = 0
    unknown: int = 0
    duration_ms: int = 0
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def pass_rate(self) -> float:
        """Calculate pass rate percentage."""
        if self.total == 0:
            return 0.0
        return (self.passed / self.total) * 100

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "broken": self.broken,
            "skipped": self.skipped,
            "unknown": self.unknown,
            "pass_rate": round(self.pass_rate, 2),
            "duration_ms": self.duration_ms,
            "timestamp": self.timestamp,
        }


def summarize_allure_results(results_dir: Union[str, Path]) -> ResultSummary:
    """
    Count Allure `*-result.json` files by status.

    Unreadable result files are logged and skipped.
    """
    summary = ResultSummary()
    results_dir = Path(results_dir)
    if not results_dir.exists():
        return summary

    for result_file in sorted(results_dir.glob("*-result.json")):
        try:
            with open(result_file, encoding="utf-8") as f:
                result = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to parse {result_file}: {e}")
            continue

        summary.total += 1
        status = result.get("status", "unknown")
        if status in ("passed", "failed", "broken", "skipped"):
            setattr(summary, status, getattr(summary, status) + 1)
        else:
            summary.unknown += 1

        summary.duration_ms += result.get("stop", 0) - result.get("start", 0)

    return summary


def write_json_summary(
    summary: ResultSummary,
    output_file: Union[str, Path],
    exit_code: Optional[int] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> Path:
    """
    Write the machine-readable run summary.

    Args:
        summary: Counts to write
        output_file: Destination JSON file
        exit_code: pytest exit code, when known
        extra: Additional top-level keys (suite, browser, ...)
    """
    payload: Dict[str, Any] = {"summary": summary.to_dict()}
    if exit_code is not None:
        payload["exit_code"] = exit_code
    if extra:
        payload.update(extra)

    output_file = Path(output_file)
    output_file.parent.mkdir(parents=True, exist_ok=True)
    with open(output_file, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)

    logger.info(f"JSON summary written to {output_file}")
    return output_file


# ================================================================================
# Allure CLI
# ================================================================================

def generate_allure_report(
    results_dir: Union[str, Path],
    report_dir: Union[str, Path],
) -> bool:
    """
    Generate Allure HTML report from results.

    Returns:
        True if successful
    """
    cmd = [
        "allure", "generate",
        str(results_dir),
        "-o", str(report_dir),
        "--clean"
    ]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except FileNotFoundError:
        logger.warning("Allure CLI not found. Please install Allure to generate reports.")
        return False

    if result.returncode != 0:
        logger.error(f"Report generation failed: {result.stderr}")
        return False

    logger.info(f"Report generated at {report_dir}")
    return True


def serve_allure_report(report_dir: Union[str, Path]) -> int:
    """
    Open the last generated HTML report (`allure open`).

    Returns:
        Process exit code (1 when no report exists or the CLI is missing)
    """
    report_dir = Path(report_dir)
    if not (report_dir / "index.html").exists():
        logger.error(f"No report found at {report_dir}. Run the tests first.")
        return 1

    try:
        return subprocess.run(["allure", "open", str(report_dir)]).returncode
    except FileNotFoundError:
        logger.error("Allure CLI not found. Please install Allure to serve reports.")
        return 1


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
