"""Data contracts for the email relay endpoint."""

import json
import re
from typing import Any, List, Optional

from pydantic import BaseModel, field_validator, model_validator
from pydantic_core import PydanticCustomError

LINE_BREAK_RE = re.compile(r"[\r\n]")


def parse_recipients(raw: Any) -> List[str]:
    """Accept a list, a JSON-encoded list, or a single address; drop blanks."""
    if raw is None:
        return []
    if isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except ValueError:
            decoded = raw
        raw = decoded
    if not isinstance(raw, (list, tuple)):
        raw = [raw]
    return [str(item).strip() for item in raw if item is not None and str(item).strip()]


class EmailRequest(BaseModel):
    """Fields posted by the contact and admin mail forms."""

    recipients: List[str] = []
    subject: Optional[str] = None
    message: Optional[str] = None
    html: Optional[str] = None
    fromEmail: Optional[str] = None
    fromName: Optional[str] = None

    @field_validator("recipients", mode="before")
    @classmethod
    def _split_recipients(cls, value: Any) -> List[str]:
        return parse_recipients(value)

    @field_validator("recipients", "subject", "fromEmail", "fromName")
    @classmethod
    def _single_line(cls, value: Any) -> Any:
        # these end up in message headers
        values = value if isinstance(value, list) else [value]
        if any(item and LINE_BREAK_RE.search(item) for item in values):
            raise PydanticCustomError("header", "Subject, sender and recipients must be a single line")
        return value

    @model_validator(mode="after")
    def ensure_sendable(self) -> "EmailRequest":
        if not self.recipients:
            raise PydanticCustomError("recipients", "At least one recipient email is required")
        if not self.subject or not (self.message or self.html):
            raise PydanticCustomError("content", "Subject and message (or html) are required")
        return self


class EmailResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    messageId: Optional[str] = None
    error: Optional[str] = None
