"""ResultPayload - the single outcome of a session.

Exactly one variant is produced per session and each variant knows the
response it maps to.
"""
import json
from pydantic import BaseModel, Field, TypeAdapter
from typing import Annotated, Any, ClassVar, Dict, Literal, Union

from tabprobe.utils.errors import TabProbeError


class NewTabUrl(BaseModel):
    """The shortcut opened a new tab at this URL."""
    variant: Literal["new_tab_url"] = "new_tab_url"
    url: str

    status_code: ClassVar[int] = 200

    def to_body(self) -> Dict[str, Any]:
        return {"newTabUrl": self.url}


class ClipboardText(BaseModel):
    """
    No tab appeared; text read back from the clipboard instead.

    ``read_failed`` marks the sentinel case where the read itself raised.
    It is kept out of the response body so the wire format stays
    ``{"clipboardText": ...}`` either way.
    """
    variant: Literal["clipboard_text"] = "clipboard_text"
    text: str
    read_failed: bool = False

    status_code: ClassVar[int] = 200

    def to_body(self) -> Dict[str, Any]:
        return {"clipboardText": self.text}


class ErrorResult(BaseModel):
    """A structured failure: error kind plus message."""
    variant: Literal["error"] = "error"
    kind: str
    message: str

    @property
    def status_code(self) -> int:
        return 400 if self.kind == "ValidationError" else 500

    def to_body(self) -> Dict[str, Any]:
        if self.kind == "ValidationError":
            return {"error": self.message}
        return {"error": f"An error occurred: {self.message}"}

    @classmethod
    def from_exception(cls, error: BaseException) -> "ErrorResult":
        """Map any exception onto an error result, keeping tabprobe kinds."""
        if isinstance(error, TabProbeError):
            return cls(kind=error.kind, message=error.message)
        return cls(kind="UnexpectedError", message=str(error) or type(error).__name__)


ResultPayload = Annotated[
    Union[NewTabUrl, ClipboardText, ErrorResult],
    Field(discriminator="variant"),
]

_payload_adapter = TypeAdapter(ResultPayload)


def parse_payload(data: Dict[str, Any]):
    """Rebuild a payload from its ``model_dump()`` form."""
    return _payload_adapter.validate_python(data)


def to_response(payload) -> Dict[str, Any]:
    """
    Frame a payload the way the request layer returns it.

    Returns:
        ``{"statusCode": int, "body": "<json>"}``
    """
    return {
        "statusCode": payload.status_code,
        "body": json.dumps(payload.to_body()),
    }
