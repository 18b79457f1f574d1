"""Shortcut-trigger strategy engine.

Runs an escalating plan of keyboard-shortcut attempts and detects success
by diffing the set of open tabs before and after each attempt.
"""
import time
from dataclasses import dataclass
from typing import Optional, Tuple

from tabprobe.models.session import Session, SessionState
from tabprobe.models.strategy import (
    AttemptKind,
    StrategyAttempt,
    StrategyOutcome,
    StrategyPlan,
)
from tabprobe.utils.config import config as default_config, Config
from tabprobe.utils.errors import StrategyError
from tabprobe.utils.logger import setup_logger, TimedStep


@dataclass(frozen=True)
class TabSnapshot:
    """Open tabs at one point in time, in browser order."""
    pages: Tuple = ()

    def new_since(self, before: "TabSnapshot") -> list:
        """Pages present in this snapshot but not in ``before``."""
        return [page for page in self.pages if page not in before.pages]

    def __len__(self) -> int:
        return len(self.pages)


class StrategyEngine:
    """
    Escalating state machine that tries to make the page open a new tab.

    Each attempt:
    1. Snapshots the open tabs
    2. Optionally reloads the page or clicks its centre
    3. Presses Escape to dismiss modals
    4. Holds the modifier, pauses, presses the trigger key, releases
    5. Waits for a tab to materialise and diffs the snapshots

    The engine stops at the first attempt that yields a new tab. Running
    out of attempts is a normal outcome, not an error.
    """

    def __init__(self, handle, config: Optional[Config] = None):
        """
        Args:
            handle: BrowserHandle exposing ``page`` and ``pages()``
            config: Timing and key settings (defaults to global config)
        """
        self.handle = handle
        self.config = config or default_config
        self.logger = setup_logger("StrategyEngine")

    @property
    def page(self):
        return self.handle.page

    def snapshot(self) -> TabSnapshot:
        return TabSnapshot(tuple(self.handle.pages()))

    def dismiss_modals(self):
        for _ in range(self.config.escape_presses):
            self.page.keyboard.press("Escape")

    def press_shortcut(self):
        """Hold the modifier long enough for apps that require it, then hit the key."""
        keyboard = self.page.keyboard
        keyboard.down(self.config.trigger_modifier)
        try:
            time.sleep(self.config.modifier_hold)
            keyboard.press(self.config.trigger_key)
        finally:
            keyboard.up(self.config.trigger_modifier)

    def click_center(self) -> bool:
        """
        Click the middle of the viewport to put keyboard focus on the page.

        Returns:
            True if the click was sent
        """
        try:
            viewport = self.page.viewport_size
            if not viewport:
                self.logger.error("Viewport is unknown, skipping center click")
                return False
            self.page.mouse.click(viewport["width"] / 2, viewport["height"] / 2)
            return True
        except Exception as e:
            self.logger.error(f"Center click failed: {e}")
            return False

    def reload(self):
        self.page.reload(wait_until="domcontentloaded")
        time.sleep(self.config.reload_settle)

    def find_new_tab_url(self, before: TabSnapshot) -> Optional[str]:
        """Return the URL of the first tab opened since ``before``, if any."""
        after = self.snapshot()
        new_pages = after.new_since(before)
        if not new_pages:
            return None
        if len(new_pages) > 1:
            self.logger.debug(f"{len(new_pages)} new tabs appeared, using the first")
        return new_pages[0].url

    def run_attempt(self, kind: AttemptKind, index: int = 1) -> StrategyAttempt:
        """
        Run one attempt of the given kind.

        Raises:
            StrategyError: If the browser fails while sending input
        """
        attempt = StrategyAttempt(index=index, kind=kind)
        label = attempt.describe()
        started = time.monotonic()

        try:
            before = self.snapshot()

            if kind == AttemptKind.RELOAD:
                self.logger.info("Refreshing the page before trying again")
                self.reload()
                attempt.reloaded = True
                # Fresh baseline after reload
                before = self.snapshot()
            elif kind == AttemptKind.CLICK_FIRST:
                attempt.clicked = self.click_center()

            self.dismiss_modals()
            self.press_shortcut()
            time.sleep(self.config.new_tab_wait)

            attempt.new_tab_url = self.find_new_tab_url(before)
        except Exception as e:
            raise StrategyError(f"{label} failed: {e}") from e
        finally:
            attempt.duration_seconds = time.monotonic() - started

        if attempt.succeeded:
            self.logger.info(f"New tab opened after {label}: {attempt.new_tab_url}")
        else:
            self.logger.info(f"No new tab opened after {label}")
        return attempt

    def run(self, plan: Optional[StrategyPlan] = None, session: Optional[Session] = None) -> StrategyOutcome:
        """
        Run attempts in plan order until one opens a tab.

        Args:
            plan: Attempt sequence (defaults to the configured escalating plan)
            session: Receives state transitions, attempts and the last snapshot

        Returns:
            StrategyOutcome with the URL (or None) and every attempt made
        """
        if plan is None:
            plan = self.config.strategy_plan()
        outcome = StrategyOutcome()

        if session is not None:
            session.advance(SessionState.STRATEGY_RUNNING)

        with TimedStep(self.logger, "Simulate shortcut and get new tab URL"):
            for position, kind in enumerate(plan.steps, start=1):
                attempt = self.run_attempt(kind, position)
                outcome.attempts.append(attempt)
                if session is not None:
                    session.attempts.append(attempt)

                if attempt.succeeded:
                    outcome.new_tab_url = attempt.new_tab_url
                    break

                if position < len(plan):
                    time.sleep(self.config.inter_attempt_delay)

        if session is not None:
            session.tabs = self.snapshot()

        if outcome.exhausted:
            self.logger.warning(f"No new tab after {len(outcome.attempts)} attempts")
        return outcome
