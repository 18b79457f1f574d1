"""Executor component - drives one browser session end to end."""
from .browser_launcher import BrowserLauncher, BrowserHandle
from .request_filter import RequestFilter
from .navigator import Navigator
from .strategy_engine import StrategyEngine, TabSnapshot
from .result_resolver import ResultResolver
from .teardown import Teardown, kill_process_tree
from .session_controller import SessionController, SessionRunner, InProcessRunner
from .isolated_runner import IsolatedRunner, worker_main

__all__ = [
    "BrowserLauncher",
    "BrowserHandle",
    "RequestFilter",
    "Navigator",
    "StrategyEngine",
    "TabSnapshot",
    "ResultResolver",
    "Teardown",
    "kill_process_tree",
    # Runners
    "SessionController",
    "SessionRunner",
    "InProcessRunner",
    "IsolatedRunner",
    "worker_main",
]
