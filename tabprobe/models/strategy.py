"""Strategy models for the shortcut-trigger state machine.

Attempts escalate from cheap to invasive:
    PLAIN        -> escape, hold modifier, press key
    CLICK_FIRST  -> click page centre to regain focus, then PLAIN
    RELOAD       -> reload the page, let it settle, then PLAIN
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from enum import Enum


class AttemptKind(str, Enum):
    """One state of the escalating attempt sequence."""
    PLAIN = "plain"
    CLICK_FIRST = "click_first"
    RELOAD = "reload"


class StrategyAttempt(BaseModel):
    """Record of a single shortcut attempt."""
    index: int                                  # 1-based position in the plan
    kind: AttemptKind
    clicked: bool = False                       # Pointer click before the keys
    reloaded: bool = False                      # Page reload before the keys
    new_tab_url: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.new_tab_url is not None

    def describe(self) -> str:
        """Get human-readable description."""
        labels = {
            AttemptKind.PLAIN: "shortcut",
            AttemptKind.CLICK_FIRST: "shortcut after clicking center",
            AttemptKind.RELOAD: "shortcut after refresh",
        }
        return f"Attempt {self.index} of {labels[self.kind]}"


class StrategyPlan(BaseModel):
    """Ordered, exhaustible list of attempt kinds."""
    steps: List[AttemptKind] = Field(default_factory=list)

    @classmethod
    def escalating(cls, plain: int = 2, click_first: int = 2, reload: int = 1) -> "StrategyPlan":
        """Plain attempts, then click-first attempts, then post-reload attempts."""
        return cls(steps=(
            [AttemptKind.PLAIN] * plain
            + [AttemptKind.CLICK_FIRST] * click_first
            + [AttemptKind.RELOAD] * reload
        ))

    @classmethod
    def single_plain(cls) -> "StrategyPlan":
        """One plain attempt, used by the isolated worker."""
        return cls(steps=[AttemptKind.PLAIN])

    def __len__(self) -> int:
        return len(self.steps)


class StrategyOutcome(BaseModel):
    """Result of running a plan: the first URL found, if any."""
    new_tab_url: Optional[str] = None
    attempts: List[StrategyAttempt] = Field(default_factory=list)

    @property
    def exhausted(self) -> bool:
        return self.new_tab_url is None
