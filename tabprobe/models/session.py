"""Session - one browser-controlled request lifecycle."""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from tabprobe.models.strategy import StrategyAttempt


class SessionState(str, Enum):
    CREATED = "created"
    LAUNCHED = "launched"
    NAVIGATED = "navigated"
    STRATEGY_RUNNING = "strategy_running"
    RESOLVED = "resolved"
    TORN_DOWN = "torn_down"


# Forward transitions; TORN_DOWN is reachable from every state
_NEXT_STATE = {
    SessionState.CREATED: SessionState.LAUNCHED,
    SessionState.LAUNCHED: SessionState.NAVIGATED,
    SessionState.NAVIGATED: SessionState.STRATEGY_RUNNING,
    SessionState.STRATEGY_RUNNING: SessionState.RESOLVED,
}


@dataclass
class Session:
    """
    State owned by a single request.

    Holds the target URL, the current lifecycle state, the last tab
    snapshot and the observers registered on its pages. A new Session is
    created for every request; nothing is shared between them.
    """
    target_url: str
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    state: SessionState = SessionState.CREATED
    started_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    tabs: Any = None  # Last TabSnapshot taken
    observers: List[Any] = field(default_factory=list)
    attempts: List[StrategyAttempt] = field(default_factory=list)
    blocked_requests: int = 0
    profile_dir: Optional[str] = None
    handle: Any = None  # BrowserHandle, set by the launcher

    @property
    def is_torn_down(self) -> bool:
        return self.state == SessionState.TORN_DOWN

    def advance(self, target: SessionState):
        """
        Move to the next lifecycle state.

        Raises:
            ValueError: If ``target`` is not the next state in order
        """
        if target == SessionState.TORN_DOWN:
            self.state = target
            return

        expected = _NEXT_STATE.get(self.state)
        if expected != target:
            raise ValueError(
                f"Session {self.session_id}: cannot go from {self.state.value} to {target.value}"
            )
        self.state = target

    def add_observer(self, observer: Any):
        """Register something teardown must remove (e.g. a request filter)."""
        self.observers.append(observer)

    def profile_name_prefix(self, base_prefix: str) -> str:
        """Name prefix of this session's browser profile directory."""
        return f"{base_prefix}{self.session_id}-"
