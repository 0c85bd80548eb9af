"""
Offline fakes for the Playwright async API.

`FakePage` / `FakeLocator` record every driver call in `page.calls` as
`(action, locator description, args)` so tests can assert the order of
interactions a page object performs. Element state is configured on the page:

    page.invisible      descriptions that never become visible
    page.never_hidden   descriptions that never become hidden
    page.disabled       descriptions reported as disabled
    page.texts          description -> text content
    page.checked        description -> checkbox state
    page.counts         description -> number of matches
    page.attributes     (description, attribute) -> value
    page.broken         description -> driver error message (strict mode, closed page)
"""

import inspect
import re
from pathlib import Path

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError


def _describe(value):
    if isinstance(value, re.Pattern):
        return f"/{value.pattern}/"
    return str(value)


class FakeLocator:
    def __init__(self, page, description):
        self.page = page
        self.description = description

    def __repr__(self):
        return f"FakeLocator({self.description!r})"

    # Queries

    def _child(self, description):
        if self.description is None:
            return FakeLocator(self.page, description)
        return FakeLocator(self.page, f"{self.description} >> {description}")

    def locator(self, selector):
        return self._child(f"css={selector}")

    def get_by_role(self, role, name=None, **kwargs):
        suffix = f"[name={_describe(name)}]" if name is not None else ""
        return self._child(f"role={role}{suffix}")

    def get_by_text(self, text, exact=False):
        return self._child(f"text={_describe(text)}")

    def get_by_label(self, text):
        return self._child(f"label={_describe(text)}")

    def get_by_placeholder(self, text):
        return self._child(f"placeholder={_describe(text)}")

    def or_(self, other):
        return FakeLocator(self.page, f"({self.description} | {other.description})")

    @property
    def first(self):
        return FakeLocator(self.page, f"{self.description}.first")

    def nth(self, index):
        return FakeLocator(self.page, f"{self.description}.nth({index})")

    # Actions

    def _record(self, action, *args):
        self.page.calls.append((action, self.description, args))

    def _raise_if_broken(self):
        if self.description in self.page.broken:
            raise PlaywrightError(self.page.broken[self.description])

    async def wait_for(self, state="visible", timeout=None):
        self._record("wait_for", state)
        self._raise_if_broken()
        if state == "visible" and self.description in self.page.invisible:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms waiting for {self.description}")
        if state == "hidden" and self.description in self.page.never_hidden:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms waiting for {self.description} to hide")

    async def click(self, **kwargs):
        self._record("click", kwargs)

    async def fill(self, value):
        self._record("fill", value)

    async def clear(self):
        self._record("clear")

    async def press(self, key):
        self._record("press", key)

    async def hover(self):
        self._record("hover")

    async def select_option(self, value):
        self._record("select_option", value)

    async def set_input_files(self, files):
        self._record("set_input_files", list(files))

    async def dispatch_event(self, event, init=None):
        self._record("dispatch_event", event)

    async def text_content(self):
        return self.page.texts.get(self.description)

    async def is_checked(self):
        return self.page.checked.get(self.description, False)

    async def is_enabled(self):
        return self.description not in self.page.disabled

    async def count(self):
        return self.page.counts.get(self.description, 0)

    async def get_attribute(self, name, timeout=None):
        self._raise_if_broken()
        if self.description in self.page.invisible:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms reading {name} of {self.description}")
        return self.page.attributes.get((self.description, name))


class FakeKeyboard:
    def __init__(self, page):
        self.page = page

    async def press(self, key):
        self.page.calls.append(("keyboard.press", None, (key,)))


class FakeDownload:
    def __init__(self, suggested_filename, content=b"fake-download"):
        self.suggested_filename = suggested_filename
        self.content = content

    async def save_as(self, path):
        Path(path).write_bytes(self.content)


class FakeEventInfo:
    def __init__(self, value):
        self._value = value

    @property
    def value(self):
        async def resolve():
            return self._value
        return resolve()


class FakeExpectDownload:
    def __init__(self, page):
        self.page = page

    async def __aenter__(self):
        self.page.calls.append(("expect_download", None, ()))
        return FakeEventInfo(self.page.download)

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeDialog:
    def __init__(self, type="confirm", message="¿Está seguro?"):
        self.type = type
        self.message = message
        self.outcome = None

    async def accept(self):
        self.outcome = "accepted"

    async def dismiss(self):
        self.outcome = "dismissed"


class FakePage(FakeLocator):
    """Page-level fake; also the root of every locator chain."""

    def __init__(self, url="about:blank"):
        super().__init__(self, None)
        self.url = url
        self.calls = []
        self.handlers = {}
        self.invisible = set()
        self.never_hidden = set()
        self.disabled = set()
        self.texts = {}
        self.checked = {}
        self.counts = {}
        self.attributes = {}
        self.broken = {}
        self.keyboard = FakeKeyboard(self)
        self.download = FakeDownload("test_imagen_1.png")
        self.evaluate_result = None
        self.url_after_goto = None

    def on(self, event, handler):
        self.handlers.setdefault(event, []).append(handler)

    async def emit(self, event, payload):
        for handler in self.handlers.get(event, []):
            result = handler(payload)
            if inspect.isawaitable(result):
                await result

    def actions(self, action=None):
        """Recorded (action, description) pairs, optionally filtered by action."""
        return [
            (name, description)
            for name, description, _ in self.calls
            if action is None or name == action
        ]

    async def goto(self, url, timeout=None):
        self.calls.append(("goto", None, (url,)))
        self.url = self.url_after_goto or url

    async def wait_for_url(self, pattern, timeout=None):
        self.calls.append(("wait_for_url", None, (pattern,)))
        matched = pattern.match(self.url) if isinstance(pattern, re.Pattern) else pattern == self.url
        if not matched:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms waiting for URL {pattern}")

    async def wait_for_load_state(self, state="load", timeout=None):
        self.calls.append(("wait_for_load_state", None, (state,)))

    async def screenshot(self, path=None, full_page=False):
        self.calls.append(("screenshot", None, (path,)))
        data = b"\x89PNG\r\n\x1a\n"
        if path:
            Path(path).write_bytes(data)
        return data

    async def evaluate(self, script, arg=None):
        self.calls.append(("evaluate", None, ()))
        return self.evaluate_result

    async def evaluate_handle(self, script, arg=None):
        self.calls.append(("evaluate_handle", None, (arg,)))
        return object()

    def expect_download(self, timeout=None):
        return FakeExpectDownload(self)


class FakeAssertions:
    """Subset of Playwright's `expect(locator)` backed by `page.disabled`."""

    def __init__(self, locator):
        self.locator = locator

    async def to_be_enabled(self, timeout=None):
        self.locator._record("expect_enabled")
        if self.locator.description in self.locator.page.disabled:
            raise AssertionError(f"{self.locator.description} is disabled")

    async def to_be_disabled(self, timeout=None):
        self.locator._record("expect_disabled")
        if self.locator.description not in self.locator.page.disabled:
            raise AssertionError(f"{self.locator.description} is enabled")
