from .session import Session, SessionState
from .strategy import (
    AttemptKind,
    StrategyAttempt,
    StrategyPlan,
    StrategyOutcome,
)
from .result_payload import (
    NewTabUrl,
    ClipboardText,
    ErrorResult,
    ResultPayload,
    parse_payload,
    to_response,
)

__all__ = [
    # Session
    "Session",
    "SessionState",
    # Strategy
    "AttemptKind",
    "StrategyAttempt",
    "StrategyPlan",
    "StrategyOutcome",
    # Result
    "NewTabUrl",
    "ClipboardText",
    "ErrorResult",
    "ResultPayload",
    "parse_payload",
    "to_response",
]
