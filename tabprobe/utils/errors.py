"""Error types raised while running a tabprobe session.

Each error carries a ``kind`` that is reported back to the caller inside
an ``ErrorResult``. Only launch, navigation, strategy and unexpected
failures ever reach the caller; clipboard and teardown errors are
recovered where they happen.
"""


class TabProbeError(Exception):
    """Base class for all tabprobe errors."""

    kind = "UnexpectedError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TabProbeError):
    """Request is missing required input (e.g. no URL)."""

    kind = "ValidationError"


class LaunchError(TabProbeError):
    """Browser or environment could not be started."""

    kind = "LaunchError"


class NavigationError(TabProbeError):
    """Target page could not be loaded."""

    kind = "NavigationError"

    def __init__(self, message: str, attempts: int = 1, transient: bool = False):
        super().__init__(message)
        self.attempts = attempts
        self.transient = transient


class StrategyError(TabProbeError):
    """Browser failed while running a shortcut attempt."""

    kind = "StrategyError"


class ClipboardReadError(TabProbeError):
    """Clipboard could not be read through the page or the host."""

    kind = "ClipboardReadError"


class TeardownError(TabProbeError):
    """A browser process survived the kill during teardown."""

    kind = "TeardownError"


class WorkerError(TabProbeError):
    """Isolated worker process failed or produced no message."""

    kind = "WorkerError"
