"""Navigation step with bounded retry on frame detachment."""
import time
from typing import Optional

from playwright.sync_api import Page

from tabprobe.models.session import Session, SessionState
from tabprobe.utils.config import config as default_config, Config
from tabprobe.utils.errors import NavigationError
from tabprobe.utils.logger import setup_logger, TimedStep


class Navigator:
    """
    Loads the target URL in the primary page.

    A navigation whose frame gets detached mid-load (a race during
    redirects and reloads) is retried after a fixed backoff, up to
    ``navigation_retries`` times. Any other failure is fatal at once.
    After a successful load the page is given ``settle_delay`` seconds
    so client-side scripts can wire up their shortcuts.
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or default_config
        self.logger = setup_logger("Navigator")

    def is_frame_detached(self, error: BaseException) -> bool:
        """Check whether a navigation error is the transient detachment race."""
        message = str(error).lower()
        return any(marker in message for marker in self.config.detached_frame_markers)

    def navigate(self, page: Page, url: str, session: Optional[Session] = None) -> int:
        """
        Navigate ``page`` to ``url``.

        Args:
            page: Primary page of the session
            url: Target URL
            session: Advanced to NAVIGATED on success when given

        Returns:
            Number of navigation attempts made

        Raises:
            NavigationError: On a fatal error, or once retries are exhausted
        """
        retries_left = self.config.navigation_retries
        attempts = 0

        while True:
            attempts += 1
            try:
                with TimedStep(self.logger, f"Navigate to {url} (attempt {attempts})"):
                    page.goto(
                        url,
                        wait_until="domcontentloaded",
                        timeout=self.config.navigation_timeout * 1000,
                    )
                break
            except Exception as e:
                if not self.is_frame_detached(e):
                    raise NavigationError(str(e), attempts=attempts) from e

                if retries_left <= 0:
                    raise NavigationError(
                        f"Navigation kept failing after {attempts} attempts: {e}",
                        attempts=attempts,
                        transient=True,
                    ) from e

                retries_left -= 1
                self.logger.warning(
                    f"Frame detached, retrying navigation in {self.config.navigation_backoff:.0f}s "
                    f"({retries_left} retries left)"
                )
                time.sleep(self.config.navigation_backoff)

        self.logger.info("Navigation succeeded, waiting for page to settle")
        time.sleep(self.config.settle_delay)

        if session is not None:
            session.advance(SessionState.NAVIGATED)
        return attempts
