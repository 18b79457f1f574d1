"""Shared utilities."""
from .config import config, Config
from .logger import setup_logger, set_log_level, TimedStep
from .audit_log import AuditLog, SessionRecord
from .errors import (
    TabProbeError,
    ValidationError,
    LaunchError,
    NavigationError,
    StrategyError,
    ClipboardReadError,
    TeardownError,
    WorkerError,
)

__all__ = [
    "config",
    "Config",
    "setup_logger",
    "set_log_level",
    "TimedStep",
    # Audit
    "AuditLog",
    "SessionRecord",
    # Errors
    "TabProbeError",
    "ValidationError",
    "LaunchError",
    "NavigationError",
    "StrategyError",
    "ClipboardReadError",
    "TeardownError",
    "WorkerError",
]
