"""Isolated runner - one session per spawned worker process.

The caller hands the worker a base64-encoded JSON payload as a process
argument (``--input-data=...``). The worker runs a single plain attempt,
sends back ``{"newTabUrl": ...}`` or ``{"error": ..., "kind": ...}`` over a
pipe and exits with 0 or 1. A crash in the browser stack only takes the
worker down with it.
"""
import base64
import binascii
import json
import multiprocessing
import sys
from typing import Any, Callable, Dict, List, Optional

from tabprobe.executor.result_resolver import ResultResolver
from tabprobe.executor.session_controller import SessionController
from tabprobe.executor.teardown import kill_process_tree
from tabprobe.models.result_payload import ErrorResult, NewTabUrl
from tabprobe.models.strategy import StrategyPlan
from tabprobe.utils.config import config as default_config, Config
from tabprobe.utils.errors import TeardownError, ValidationError, WorkerError
from tabprobe.utils.logger import setup_logger, set_log_level, TimedStep


INPUT_FLAG = "--input-data="


def encode_input(url: str) -> str:
    return base64.b64encode(json.dumps({"url": url}).encode("utf-8")).decode("ascii")


def decode_input(argv: List[str]) -> Dict[str, Any]:
    """
    Extract the ``--input-data`` payload from process arguments.

    Raises:
        ValidationError: If the flag is missing, undecodable or has no URL
    """
    raw = next((arg[len(INPUT_FLAG):] for arg in argv if arg.startswith(INPUT_FLAG)), None)
    if raw is None:
        raise ValidationError("Missing --input-data argument")
    try:
        data = json.loads(base64.b64decode(raw, validate=True).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationError(f"Invalid --input-data payload: {e}") from e
    if not isinstance(data, dict) or not data.get("url"):
        raise ValidationError("URL is required")
    return data


def build_worker_controller(config: Config) -> SessionController:
    """Controller with the reduced worker behaviour: one plain attempt, no clipboard."""
    controller = SessionController(
        config,
        resolver=ResultResolver(config, clipboard_fallback=False),
        plan=StrategyPlan.single_plain(),
    )
    controller.runner_name = "isolated"
    return controller


def worker_main(
    argv: List[str],
    send: Callable[[Dict[str, Any]], None],
    config: Optional[Config] = None,
    controller_factory: Callable[[Config], SessionController] = build_worker_controller,
) -> int:
    """
    Worker body: decode input, run the session, send one message.

    Returns:
        Process exit code (0 on success, 1 on failure)
    """
    config = config or default_config
    logger = setup_logger("Worker")

    try:
        data = decode_input(argv)
        payload = controller_factory(config).run(data["url"])
    except Exception as e:
        logger.error(f"Worker failed: {e}")
        payload = ErrorResult.from_exception(e)

    if isinstance(payload, NewTabUrl):
        send({"newTabUrl": payload.url})
        return 0

    if not isinstance(payload, ErrorResult):
        payload = ErrorResult(kind=WorkerError.kind, message="No new tab opened")
    send({"error": payload.message, "kind": payload.kind})
    return 1


def _worker_process(argv: List[str], conn, config: Config):
    """multiprocessing target: pipe the message back and exit with the worker's code."""
    try:
        set_log_level(config.log_level)
        code = worker_main(argv, conn.send, config)
    finally:
        conn.close()
    sys.exit(code)


class IsolatedRunner:
    """
    Runs each session in its own spawned process.

    Exposes the same ``run(url)`` as ``SessionController``. The parent
    waits at most ``worker_timeout`` seconds for the worker's message; a
    worker that overruns is killed together with its browser.
    """

    runner_name = "isolated"

    def __init__(self, config: Optional[Config] = None, timeout: Optional[float] = None):
        self.config = config or default_config
        self.timeout = timeout if timeout is not None else self.config.worker_timeout
        self.context = multiprocessing.get_context("spawn")
        self.logger = setup_logger("IsolatedRunner")

    def run(self, url: str):
        """
        Run a session for ``url`` in a worker process.

        Returns:
            NewTabUrl or ErrorResult
        """
        parent_conn, child_conn = self.context.Pipe(duplex=False)
        argv = [f"{INPUT_FLAG}{encode_input(url)}"]
        process = self.context.Process(
            target=_worker_process,
            args=(argv, child_conn, self.config),
            name="tabprobe-worker",
        )

        message = None
        timed_out = False
        with TimedStep(self.logger, f"Isolated session for {url}"):
            process.start()
            child_conn.close()
            try:
                if parent_conn.poll(self.timeout):
                    message = parent_conn.recv()
                else:
                    timed_out = True
            except EOFError:
                message = None
            finally:
                parent_conn.close()

            if timed_out:
                self.logger.error(f"Worker {process.pid} timed out after {self.timeout:.0f}s, killing it")
                self._kill(process.pid)

            process.join(timeout=10)
            if process.is_alive():
                self.logger.warning(f"Worker {process.pid} still alive after message, killing it")
                self._kill(process.pid)
                process.join(timeout=5)

        if timed_out:
            return ErrorResult.from_exception(
                WorkerError(f"Worker timed out after {self.timeout:.0f}s")
            )
        return self.map_message(message, process.exitcode)

    def _kill(self, pid: int):
        try:
            kill_process_tree(pid)
        except TeardownError as e:
            self.logger.error(str(e))

    def map_message(self, message: Optional[Dict[str, Any]], exitcode: Optional[int]):
        """Translate a worker message and exit code into a payload."""
        if isinstance(message, dict):
            if message.get("newTabUrl"):
                return NewTabUrl(url=message["newTabUrl"])
            if "error" in message:
                return ErrorResult(
                    kind=message.get("kind") or WorkerError.kind,
                    message=str(message["error"]),
                )

        if exitcode != 0:
            return ErrorResult(kind=WorkerError.kind, message=f"Child process exited with code {exitcode}")
        return ErrorResult(kind=WorkerError.kind, message="Child process exited without a result")
