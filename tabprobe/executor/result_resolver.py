"""Turns a strategy outcome into the session's result payload."""
from typing import Optional

import pyperclip

from tabprobe.models.result_payload import ClipboardText, NewTabUrl
from tabprobe.models.session import Session, SessionState
from tabprobe.models.strategy import StrategyOutcome
from tabprobe.utils.config import config as default_config, Config
from tabprobe.utils.errors import ClipboardReadError
from tabprobe.utils.logger import setup_logger


# Paste into a throwaway invisible input and read it back
CLIPBOARD_READ_JS = """
() => {
    const input = document.createElement('input');
    input.style.position = 'fixed';
    input.style.opacity = '0';
    document.body.appendChild(input);
    input.focus();
    document.execCommand('paste');
    const text = input.value;
    document.body.removeChild(input);
    return text;
}
"""


class ResultResolver:
    """
    Builds the final payload.

    A found tab URL wins. Otherwise the clipboard is read through the
    page; if that read throws, the configured sentinel ("nothing") is
    returned with ``read_failed`` set.
    """

    def __init__(self, config: Optional[Config] = None, clipboard_fallback: bool = True):
        """
        Args:
            config: Sentinel and host-clipboard settings
            clipboard_fallback: Disable to skip the clipboard read entirely
                (the isolated worker never reads it)
        """
        self.config = config or default_config
        self.clipboard_fallback = clipboard_fallback
        self.logger = setup_logger("ResultResolver")

    def read_page_clipboard(self, page) -> str:
        """
        Read clipboard text inside the page's script context.

        Raises:
            ClipboardReadError: If evaluation fails
        """
        try:
            text = page.evaluate(CLIPBOARD_READ_JS)
        except Exception as e:
            raise ClipboardReadError(f"In-page clipboard read failed: {e}") from e
        return "" if text is None else str(text)

    def read_host_clipboard(self) -> str:
        try:
            return pyperclip.paste()
        except pyperclip.PyperclipException as e:
            raise ClipboardReadError(f"Host clipboard read failed: {e}") from e

    def read_clipboard(self, page) -> ClipboardText:
        """Read the clipboard, degrading to the sentinel on failure."""
        try:
            text = self.read_page_clipboard(page)
            self.logger.info(f"Clipboard content: {text}")
            return ClipboardText(text=text)
        except ClipboardReadError as e:
            self.logger.error(str(e))

        if self.config.host_clipboard_fallback:
            try:
                text = self.read_host_clipboard()
                self.logger.info(f"Host clipboard content: {text}")
                return ClipboardText(text=text)
            except ClipboardReadError as e:
                self.logger.error(str(e))

        self.logger.warning(f"Clipboard unreadable, returning sentinel '{self.config.clipboard_sentinel}'")
        return ClipboardText(text=self.config.clipboard_sentinel, read_failed=True)

    def resolve(self, outcome: StrategyOutcome, page, session: Optional[Session] = None):
        """
        Convert the strategy outcome into a payload.

        Returns:
            NewTabUrl or ClipboardText; None when no tab was found and the
            clipboard fallback is disabled
        """
        if outcome.new_tab_url is not None:
            self.logger.info("New tab URL obtained successfully")
            payload = NewTabUrl(url=outcome.new_tab_url)
        elif self.clipboard_fallback:
            self.logger.error("Failed to open new tab or identify new tab URL")
            payload = self.read_clipboard(page)
        else:
            payload = None

        if session is not None:
            session.advance(SessionState.RESOLVED)
        return payload
