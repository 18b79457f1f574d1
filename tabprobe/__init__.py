"""tabprobe - open a page, press its new-tab shortcut, report the new tab's URL."""

__version__ = "0.1.0"
