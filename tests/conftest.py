"""
Shared fixtures and fake Playwright objects for unit tests.
"""

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest

from recipe_engine.core.types import ExecutionOptions, TestScenario


class FakeTimeoutError(Exception):
    """Stands in for playwright's TimeoutError in unit tests."""


class FakeLocator:
    """Records locator calls against its page."""

    def __init__(self, page: "FakePage", selector: str) -> None:
        self.page = page
        self.selector = selector

    @property
    def first(self) -> "FakeLocator":
        return self

    def _check(self, timeout: Optional[int]) -> None:
        if self.selector in self.page.missing_selectors:
            raise FakeTimeoutError(
                f"Timeout {timeout}ms exceeded waiting for locator('{self.selector}')"
            )

    async def wait_for(self, state: str = "visible", timeout: Optional[int] = None) -> None:
        self.page.calls.append(("wait_for", self.selector, state, timeout))
        self._check(timeout)

    async def click(self, timeout: Optional[int] = None) -> None:
        self.page.calls.append(("click", self.selector, timeout))
        self._check(timeout)
        handler = self.page.click_handlers.get(self.selector)
        if handler:
            handler(self.page)

    async def fill(self, value: str, timeout: Optional[int] = None) -> None:
        self.page.calls.append(("fill", self.selector, value, timeout))
        self._check(timeout)

    async def select_option(self, value: str, timeout: Optional[int] = None) -> None:
        self.page.calls.append(("select_option", self.selector, value, timeout))
        self._check(timeout)

    async def hover(self, timeout: Optional[int] = None) -> None:
        self.page.calls.append(("hover", self.selector, timeout))
        self._check(timeout)

    async def scroll_into_view_if_needed(self, timeout: Optional[int] = None) -> None:
        self.page.calls.append(("scroll_into_view", self.selector, timeout))
        self._check(timeout)


class FakePage:
    """Minimal async page double covering the calls the engine makes."""

    def __init__(
        self,
        title: str = "Example",
        visible_text: str = "",
        html: str = "<html><body></body></html>",
    ) -> None:
        self.url = "about:blank"
        self._title = title
        self.visible_text = visible_text
        self.html = html
        self.calls: List[tuple] = []
        self.handlers: Dict[str, List[Callable[[Any], None]]] = {}
        self.missing_selectors: set = set()
        self.failing_urls: set = set()
        self.click_handlers: Dict[str, Callable[["FakePage"], None]] = {}
        self.screenshot_error: Optional[Exception] = None
        self.evaluate_error: Optional[Exception] = None

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    def on(self, event: str, handler: Callable[[Any], None]) -> None:
        self.handlers.setdefault(event, []).append(handler)

    def emit(self, event: str, payload: Any) -> None:
        for handler in self.handlers.get(event, []):
            handler(payload)

    async def goto(self, url: str, wait_until: Optional[str] = None, timeout: Optional[int] = None) -> None:
        self.calls.append(("goto", url, wait_until, timeout))
        if url in self.failing_urls:
            raise Exception(f"net::ERR_CONNECTION_REFUSED at {url}")
        self.url = url

    async def wait_for_load_state(self, state: str = "load", timeout: Optional[int] = None) -> None:
        self.calls.append(("wait_for_load_state", state, timeout))

    async def wait_for_timeout(self, timeout: int) -> None:
        self.calls.append(("wait_for_timeout", timeout))

    async def evaluate(self, script: str) -> Any:
        self.calls.append(("evaluate", script))
        if self.evaluate_error:
            raise self.evaluate_error
        if "innerText" in script:
            return self.visible_text
        return None

    async def title(self) -> str:
        return self._title

    async def content(self) -> str:
        return self.html

    async def screenshot(self, path: str, full_page: bool = False) -> bytes:
        self.calls.append(("screenshot", path, full_page))
        if self.screenshot_error:
            raise self.screenshot_error
        Path(path).write_bytes(b"\x89PNG fake")
        return b"\x89PNG fake"


class FakeSession:
    """Browser session double; writes a raw video file on stop when recording."""

    def __init__(
        self,
        page: Optional[FakePage] = None,
        video_dir: Optional[Path] = None,
        start_error: Optional[Exception] = None,
    ) -> None:
        self.page = page or FakePage()
        self.video_dir = video_dir
        self.start_error = start_error
        self.started = False
        self.stopped = False

    async def start(self) -> FakePage:
        if self.start_error:
            raise self.start_error
        self.started = True
        return self.page

    async def stop(self) -> None:
        self.stopped = True
        if self.started and self.video_dir is not None:
            (self.video_dir / "3f2a9c.webm").write_bytes(b"webm")


class ConsoleMessage:
    def __init__(self, type: str, text: str) -> None:
        self.type = type
        self.text = text


class FailedRequest:
    def __init__(self, url: str, method: str = "GET", failure: Optional[str] = "net::ERR_FAILED") -> None:
        self.url = url
        self.method = method
        self.failure = failure


@pytest.fixture
def fake_page() -> FakePage:
    return FakePage(title="Dashboard", visible_text="Welcome back, Jane")


@pytest.fixture
def options(tmp_path: Path) -> ExecutionOptions:
    return ExecutionOptions(results_root=tmp_path / "results", inter_scenario_delay=0)


@pytest.fixture
def login_recipe() -> List[TestScenario]:
    return [
        TestScenario(
            scenario="User logs in",
            steps="1. Go to /login\n2. Type 'a@b.c' into email\n3. Click 'Sign in'",
            expected="Dashboard shows 'Welcome'",
            priority="Happy Path",
        ),
        TestScenario(
            scenario="Bad password",
            steps="1. Go to /login\n2. Click 'Sign in'",
            expected="Shows 'Invalid credentials'",
            priority="Edge Case",
        ),
    ]
