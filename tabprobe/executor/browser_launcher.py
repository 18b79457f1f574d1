"""Browser launch with the fixed capability profile tabprobe needs."""
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import psutil
from playwright.sync_api import sync_playwright, Playwright, BrowserContext, Page

from tabprobe.models.session import Session, SessionState
from tabprobe.utils.config import config as default_config, Config
from tabprobe.utils.errors import LaunchError
from tabprobe.utils.logger import setup_logger, TimedStep


LAUNCH_ARGS = [
    "--start-fullscreen",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-infobars",
    "--disable-web-security",
    "--disable-features=IsolateOrigins,site-per-process,BlockInsecurePrivateNetworkRequests",
    "--disable-site-isolation-trials",
]

CLIPBOARD_PERMISSIONS = ["clipboard-read", "clipboard-write"]


@dataclass
class BrowserHandle:
    """Everything a session owns in the browser."""
    playwright: Optional[Playwright] = None
    context: Optional[BrowserContext] = None
    page: Optional[Page] = None
    profile_dir: Optional[str] = None
    browser_pid: Optional[int] = None

    def pages(self) -> list:
        """Currently open pages (tabs), in creation order."""
        if not self.context:
            return []
        return list(self.context.pages)


def origin_of(url: str) -> Optional[str]:
    """Return ``scheme://host[:port]`` for http(s) URLs, else None."""
    parsed = urlparse(url)
    if parsed.scheme in ("http", "https") and parsed.netloc:
        return f"{parsed.scheme}://{parsed.netloc}"
    return None


def find_browser_pid(profile_dir: str) -> Optional[int]:
    """
    Find the main browser process started for ``profile_dir``.

    Chromium helpers carry a ``--type=`` flag; the browser process does not.
    """
    marker = f"--user-data-dir={profile_dir}"
    for proc in psutil.Process().children(recursive=True):
        try:
            cmdline = proc.cmdline()
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            continue
        if marker in cmdline and not any(arg.startswith("--type=") for arg in cmdline):
            return proc.pid
    return None


class BrowserLauncher:
    """
    Launches Chromium through Playwright for one session.

    Handles:
    - A fresh per-session profile directory in the temp dir
    - Fixed launch flags (no sandbox, no GPU, fullscreen, no site isolation)
    - Clipboard permissions for the target origin
    - Locating the browser PID so teardown can kill it
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or default_config
        self.logger = setup_logger("BrowserLauncher")

    def resolve_executable(self) -> Optional[str]:
        """
        Resolve the browser executable.

        Returns:
            Configured path, or None to use the Playwright-managed Chromium
            (installed with ``playwright install chromium``)
        """
        path = self.config.browser_executable
        if not path:
            return None
        if not Path(path).exists():
            raise LaunchError(f"Browser executable not found: {path}")
        return str(path)

    def launch(self, session: Session) -> BrowserHandle:
        """
        Launch the browser and open the primary page.

        The handle is attached to ``session`` as soon as the driver starts,
        so teardown can release a partially launched browser.

        Raises:
            LaunchError: If the driver, browser or page cannot be started
        """
        handle = BrowserHandle()
        session.handle = handle

        with TimedStep(self.logger, "Launch browser"):
            try:
                executable = self.resolve_executable()

                temp_dir = Path(self.config.temp_dir)
                temp_dir.mkdir(parents=True, exist_ok=True)
                handle.profile_dir = tempfile.mkdtemp(
                    prefix=session.profile_name_prefix(self.config.profile_prefix),
                    dir=str(temp_dir),
                )
                session.profile_dir = handle.profile_dir

                handle.playwright = sync_playwright().start()
                handle.context = handle.playwright.chromium.launch_persistent_context(
                    user_data_dir=handle.profile_dir,
                    headless=self.config.browser_headless,
                    executable_path=executable,
                    args=LAUNCH_ARGS,
                    ignore_https_errors=True,
                    viewport={
                        "width": self.config.viewport_width,
                        "height": self.config.viewport_height,
                    },
                )
                handle.context.set_default_timeout(self.config.action_timeout * 1000)
                handle.browser_pid = find_browser_pid(handle.profile_dir)

                origin = origin_of(session.target_url)
                if origin:
                    handle.context.grant_permissions(CLIPBOARD_PERMISSIONS, origin=origin)
                else:
                    handle.context.grant_permissions(CLIPBOARD_PERMISSIONS)
                self.logger.debug(f"Clipboard permissions granted for {origin or 'all origins'}")

                pages = handle.context.pages
                handle.page = pages[0] if pages else handle.context.new_page()
            except LaunchError:
                raise
            except Exception as e:
                raise LaunchError(f"Failed to launch browser: {e}") from e

        self.logger.info(
            f"Browser launched (pid={handle.browser_pid}, profile={handle.profile_dir})"
        )
        session.advance(SessionState.LAUNCHED)
        return handle
