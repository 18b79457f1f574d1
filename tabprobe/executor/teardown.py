"""Forced teardown of a session's browser and files.

Graceful close can hang when a page sits in an unexpected modal state, so
pages are closed with the OS close-window accelerator and the browser
process is killed afterwards if it survived. Every step is best-effort:
failures are logged and never replace the session's result.
"""
import shutil
import time
from pathlib import Path
from typing import List, Optional

import psutil

from tabprobe.models.session import Session, SessionState
from tabprobe.utils.config import config as default_config, Config
from tabprobe.utils.errors import TeardownError
from tabprobe.utils.logger import setup_logger, TimedStep


def kill_process_tree(pid: int) -> bool:
    """
    Kill a process and all of its descendants.

    Returns:
        True if the process was alive and got killed
    """
    try:
        proc = psutil.Process(pid)
    except psutil.NoSuchProcess:
        return False

    for child in proc.children(recursive=True):
        try:
            child.kill()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            pass

    try:
        proc.kill()
        proc.wait(timeout=5)
    except psutil.NoSuchProcess:
        return False
    except psutil.TimeoutExpired as e:
        raise TeardownError(f"Process {pid} did not exit after kill") from e
    return True


class Teardown:
    """
    Releases everything a session owns, exactly once.

    Order:
    1. Remove page observers (request filter routes)
    2. Send the close-window accelerator to every open page
    3. Wait a short grace period, then kill the browser process tree
    4. Stop the Playwright driver
    5. Delete the session's profile directories from the temp dir
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or default_config
        self.logger = setup_logger("Teardown")

    def run(self, session: Session):
        """Tear the session down. Never raises; a second call is a no-op."""
        if session.is_torn_down:
            self.logger.debug(f"Session {session.session_id} already torn down")
            return

        handle = session.handle
        session.advance(SessionState.TORN_DOWN)

        with TimedStep(self.logger, "Teardown"):
            self._step("remove observers", self.remove_observers, session)
            if handle is not None:
                self._step("close pages", self.force_close_pages, handle)
                self._step("kill browser", self.kill_browser, handle)
                self._step("stop driver", self.stop_driver, handle)
            self._step("clean temp files", self.clean_temp_files, session)

        self.logger.info(f"Total blocked requests: {session.blocked_requests}")

    def _step(self, name: str, func, *args):
        try:
            func(*args)
        except Exception as e:
            self.logger.error(f"Teardown step '{name}' failed: {e}")

    def remove_observers(self, session: Session):
        while session.observers:
            observer = session.observers.pop()
            session.blocked_requests += getattr(observer, "blocked_requests", 0)
            observer.remove()
        self.logger.debug("Cleaned up page observers")

    def force_close_pages(self, handle):
        """Press the close-window accelerator on every open page."""
        modifier = self.config.close_modifier
        for page in handle.pages():
            keyboard = page.keyboard
            keyboard.down(modifier)
            try:
                keyboard.press(self.config.close_key)
            finally:
                keyboard.up(modifier)
        time.sleep(self.config.teardown_grace)

    def kill_browser(self, handle):
        if not handle.browser_pid:
            self.logger.debug("No browser PID recorded, nothing to kill")
            return
        if kill_process_tree(handle.browser_pid):
            self.logger.info(f"Force killed browser process {handle.browser_pid}")

    def stop_driver(self, handle):
        playwright = handle.playwright
        handle.playwright = None
        handle.context = None
        handle.page = None
        if playwright is not None:
            playwright.stop()

    def cleanup_prefixes(self, session: Session) -> List[str]:
        if self.config.sweep_shared_profiles:
            return [self.config.profile_prefix]
        return [session.profile_name_prefix(self.config.profile_prefix)]

    def clean_temp_files(self, session: Session) -> int:
        """
        Remove profile directories in the temp dir.

        Only this session's entries are removed unless
        ``sweep_shared_profiles`` widens it to every tabprobe profile.

        Returns:
            Number of entries removed
        """
        temp_dir = Path(self.config.temp_dir)
        if not temp_dir.exists():
            return 0

        prefixes = self.cleanup_prefixes(session)
        removed = 0
        for entry in temp_dir.iterdir():
            if not entry.name.startswith(tuple(prefixes)):
                continue
            self.logger.debug(f"Removing file: {entry.name}")
            try:
                if entry.is_dir() and not entry.is_symlink():
                    shutil.rmtree(entry, ignore_errors=False)
                else:
                    entry.unlink()
                removed += 1
            except OSError as e:
                self.logger.error(f"Error removing {entry}: {e}")
        return removed
