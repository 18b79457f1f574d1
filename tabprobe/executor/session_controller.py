"""Session controller - runs one request from launch to forced teardown."""
import time
from datetime import datetime, timezone
from typing import Optional, Protocol

from tabprobe.executor.browser_launcher import BrowserLauncher
from tabprobe.executor.navigator import Navigator
from tabprobe.executor.request_filter import RequestFilter
from tabprobe.executor.result_resolver import ResultResolver
from tabprobe.executor.strategy_engine import StrategyEngine
from tabprobe.executor.teardown import Teardown
from tabprobe.models.result_payload import ClipboardText, ErrorResult, NewTabUrl
from tabprobe.models.session import Session
from tabprobe.models.strategy import StrategyPlan
from tabprobe.utils.audit_log import AuditLog, SessionRecord
from tabprobe.utils.config import config as default_config, Config
from tabprobe.utils.errors import StrategyError
from tabprobe.utils.logger import setup_logger, TimedStep


class SessionRunner(Protocol):
    """Anything that turns a target URL into a result payload."""

    def run(self, url: str): ...


class SessionController:
    """
    In-process runner for a single session.

    Pipeline (each step blocking):
        launch -> install request filter -> navigate -> strategy engine
        -> result resolver

    Teardown runs in a ``finally`` block, so it happens exactly once
    whether the pipeline succeeded or raised. Any error becomes an
    ``ErrorResult``; teardown problems are only logged.
    """

    runner_name = "in_process"

    def __init__(
        self,
        config: Optional[Config] = None,
        launcher: Optional[BrowserLauncher] = None,
        navigator: Optional[Navigator] = None,
        resolver: Optional[ResultResolver] = None,
        teardown: Optional[Teardown] = None,
        plan: Optional[StrategyPlan] = None,
        engine_factory=StrategyEngine,
        audit_log: Optional[AuditLog] = None,
    ):
        """
        Args:
            config: Settings shared by every component
            launcher: Browser launcher (injectable for tests)
            navigator: Navigation step
            resolver: Result resolver
            teardown: Forced teardown
            plan: Attempt plan (defaults to the configured escalating plan)
            engine_factory: Callable ``(handle, config) -> StrategyEngine``
            audit_log: Where finished sessions are recorded, if auditing
        """
        self.config = config or default_config
        self.launcher = launcher or BrowserLauncher(self.config)
        self.navigator = navigator or Navigator(self.config)
        self.resolver = resolver or ResultResolver(self.config)
        self.teardown = teardown or Teardown(self.config)
        self.plan = plan if plan is not None else self.config.strategy_plan()
        self.engine_factory = engine_factory
        if audit_log is None and self.config.audit_enabled:
            audit_log = AuditLog(self.config.audit_dir)
        self.audit_log = audit_log
        self.logger = setup_logger("SessionController")

    def run(self, url: str):
        """
        Run a full session against ``url``.

        Returns:
            NewTabUrl, ClipboardText or ErrorResult
        """
        session = Session(target_url=url)
        payload = None
        started = time.monotonic()
        self.logger.info(f"Session {session.session_id} started for {url}")

        try:
            with TimedStep(self.logger, f"Session {session.session_id}"):
                payload = self._pipeline(session)
        except Exception as e:
            self.logger.error(f"Error: {e}")
            payload = ErrorResult.from_exception(e)
        finally:
            self.teardown.run(session)
            self._audit(session, payload, time.monotonic() - started)

        return payload

    def _pipeline(self, session: Session):
        handle = self.launcher.launch(session)

        request_filter = RequestFilter(handle.page, self.config.blocked_resource_types)
        request_filter.install()
        session.add_observer(request_filter)

        self.navigator.navigate(handle.page, session.target_url, session)

        engine = self.engine_factory(handle, self.config)
        outcome = engine.run(self.plan, session)

        payload = self.resolver.resolve(outcome, handle.page, session)
        if payload is None:
            raise StrategyError(f"No new tab opened after {len(outcome.attempts)} attempts")
        return payload

    def _audit(self, session: Session, payload, duration: float):
        if self.audit_log is None or payload is None:
            return

        record = SessionRecord(
            session_id=session.session_id,
            target_url=session.target_url,
            started_at=session.started_at,
            ended_at=datetime.now(timezone.utc).isoformat(),
            runner=self.runner_name,
            outcome=payload.variant,
            attempts=[attempt.model_dump(mode="json") for attempt in session.attempts],
            blocked_requests=session.blocked_requests,
            duration_ms=int(duration * 1000),
        )
        if isinstance(payload, NewTabUrl):
            record.new_tab_url = payload.url
        elif isinstance(payload, ClipboardText):
            record.clipboard_read_failed = payload.read_failed
        elif isinstance(payload, ErrorResult):
            record.error_kind = payload.kind
            record.error = payload.message

        self.audit_log.record_session(record)


InProcessRunner = SessionController
