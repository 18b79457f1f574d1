"""Request-layer entry point.

``handle_event`` takes an event shaped like ``{"body": "<json>"}`` and
returns ``{"statusCode": int, "body": "<json>"}``:

    400  {"error": "URL is required"}
    200  {"newTabUrl": "..."}
    200  {"clipboardText": "..."}
    500  {"error": "An error occurred: ..."}
"""
import json
from typing import Any, Dict, Optional

from tabprobe.executor.isolated_runner import IsolatedRunner
from tabprobe.executor.session_controller import SessionController, SessionRunner
from tabprobe.models.result_payload import ErrorResult, to_response
from tabprobe.utils.config import config as default_config, Config
from tabprobe.utils.errors import ValidationError
from tabprobe.utils.logger import setup_logger, TimedStep


logger = setup_logger("Handler")


def build_runner(config: Optional[Config] = None) -> SessionRunner:
    """Pick the in-process or isolated runner from configuration."""
    config = config or default_config
    if config.isolated:
        return IsolatedRunner(config)
    return SessionController(config)


def extract_url(event: Optional[Dict[str, Any]]) -> str:
    """
    Pull ``url`` out of the event body.

    Raises:
        ValidationError: If the body is missing, not a JSON object, or has no url
    """
    body = (event or {}).get("body")
    if isinstance(body, (str, bytes)):
        try:
            body = json.loads(body)
        except json.JSONDecodeError:
            body = None

    url = body.get("url") if isinstance(body, dict) else None
    if not url or not isinstance(url, str):
        raise ValidationError("URL is required")
    return url


def handle_event(
    event: Optional[Dict[str, Any]],
    runner: Optional[SessionRunner] = None,
    config: Optional[Config] = None,
) -> Dict[str, Any]:
    """
    Handle one request.

    Args:
        event: Request event with a JSON ``body``
        runner: Session runner (built from config when omitted)
        config: Settings used to build the runner

    Returns:
        Response dict with ``statusCode`` and JSON ``body``
    """
    with TimedStep(logger, "Total time"):
        try:
            url = extract_url(event)
        except ValidationError as e:
            logger.error(e.message)
            return to_response(ErrorResult.from_exception(e))

        runner = runner or build_runner(config)
        try:
            payload = runner.run(url)
        except Exception as e:
            logger.error(f"Runner failed: {e}")
            payload = ErrorResult.from_exception(e)

    return to_response(payload)


def handler(event, context=None):
    """AWS Lambda entry point."""
    return handle_event(event)
