"""Fake Playwright objects and shared fixtures.

The fakes model just enough of the sync API for the session pipeline:
keyboard/mouse input, navigation, tab enumeration, evaluation and
routing. Pressing the trigger key can "open" a new tab.
"""
from pathlib import Path
from typing import Callable, List, Optional

import pytest

from tabprobe.executor.teardown import Teardown
from tabprobe.models.session import SessionState
from tabprobe.utils.config import Config


class FakeKeyboard:
    def __init__(self, page: "FakePage"):
        self.page = page
        self.events: List[tuple] = []
        self.fail_on_press: Optional[str] = None

    def down(self, key: str):
        self.events.append(("down", key))

    def up(self, key: str):
        self.events.append(("up", key))

    def press(self, key: str):
        self.events.append(("press", key))
        if key == self.fail_on_press:
            raise RuntimeError(f"Target closed while pressing {key}")
        if self.page.context is not None:
            self.page.context.key_pressed(key)


class FakeMouse:
    def __init__(self):
        self.clicks: List[tuple] = []

    def click(self, x, y):
        self.clicks.append((x, y))


class FakePage:
    def __init__(self, url: str = "about:blank", context: Optional["FakeContext"] = None):
        self.url = url
        self.context = context
        self.keyboard = FakeKeyboard(self)
        self.mouse = FakeMouse()
        self.viewport_size = {"width": 1920, "height": 1080}
        self.goto_calls: List[dict] = []
        self.goto_errors: List[Exception] = []
        self.reload_calls: List[dict] = []
        self.routes: List[tuple] = []
        self.unrouted: List[tuple] = []
        self.clipboard_text = ""
        self.clipboard_error: Optional[Exception] = None

    def goto(self, url, wait_until=None, timeout=None):
        self.goto_calls.append({"url": url, "wait_until": wait_until, "timeout": timeout})
        if self.goto_errors:
            raise self.goto_errors.pop(0)
        self.url = url

    def reload(self, wait_until=None):
        self.reload_calls.append({"wait_until": wait_until})

    def evaluate(self, script):
        if self.clipboard_error is not None:
            raise self.clipboard_error
        return self.clipboard_text

    def route(self, pattern, handler):
        self.routes.append((pattern, handler))

    def unroute(self, pattern, handler=None):
        self.unrouted.append((pattern, handler))
        self.routes = [r for r in self.routes if r != (pattern, handler)]


class FakeContext:
    """
    Browser context whose pages list grows when the trigger key is pressed
    on one of the configured attempt numbers.
    """

    def __init__(self, trigger_key: str = "s", open_on_presses=(), new_tab_urls=None):
        self.pages: List[FakePage] = []
        self.trigger_key = trigger_key
        self.open_on_presses = set(open_on_presses)
        self.new_tab_urls = list(new_tab_urls or [])
        self.trigger_presses = 0
        self.on_trigger: Optional[Callable[["FakeContext"], None]] = None

    def new_page(self, url: str = "about:blank") -> FakePage:
        page = FakePage(url, context=self)
        self.pages.append(page)
        return page

    def key_pressed(self, key: str):
        if key != self.trigger_key:
            return
        self.trigger_presses += 1
        if self.on_trigger is not None:
            self.on_trigger(self)
        if self.trigger_presses in self.open_on_presses:
            url = self.new_tab_urls.pop(0) if self.new_tab_urls else f"https://example.com/tab/{self.trigger_presses}"
            self.new_page(url)


class FakePlaywright:
    def __init__(self):
        self.stopped = 0

    def stop(self):
        self.stopped += 1


class FakeHandle:
    """Stand-in for BrowserHandle."""

    def __init__(self, context: Optional[FakeContext] = None, browser_pid=None):
        self.context = context or FakeContext()
        self.page = self.context.new_page("https://example.com/start")
        self.playwright = FakePlaywright()
        self.browser_pid = browser_pid
        self.profile_dir = None

    def pages(self):
        return list(self.context.pages)


class FakeLauncher:
    """Hands out a fresh FakeHandle per session, or raises."""

    def __init__(self, context_factory=FakeContext, error: Optional[Exception] = None):
        self.context_factory = context_factory
        self.error = error
        self.handles: List[FakeHandle] = []
        # Teardown clears handle.page and handle.context, so keep our own refs
        self.pages: List[FakePage] = []
        self.contexts: List[FakeContext] = []

    def launch(self, session):
        if self.error is not None:
            raise self.error
        handle = FakeHandle(self.context_factory())
        self.handles.append(handle)
        self.pages.append(handle.page)
        self.contexts.append(handle.context)
        session.handle = handle
        session.advance(SessionState.LAUNCHED)
        return handle


class SpyTeardown(Teardown):
    """Real teardown that records each session it runs for."""

    def __init__(self, config):
        super().__init__(config)
        self.sessions = []

    def run(self, session):
        self.sessions.append(session)
        super().run(session)


@pytest.fixture
def fast_config(tmp_path: Path) -> Config:
    """Config with every wait set to zero and temp/audit dirs under tmp_path."""
    return Config(
        navigation_backoff=0.0,
        settle_delay=0.0,
        modifier_hold=0.0,
        new_tab_wait=0.0,
        inter_attempt_delay=0.0,
        reload_settle=0.0,
        teardown_grace=0.0,
        temp_dir=tmp_path / "tmp",
        audit_dir=tmp_path / "audit",
    )


@pytest.fixture
def sleeps(monkeypatch) -> List[float]:
    """Record time.sleep calls instead of sleeping."""
    calls: List[float] = []
    monkeypatch.setattr("time.sleep", lambda seconds: calls.append(seconds))
    return calls
