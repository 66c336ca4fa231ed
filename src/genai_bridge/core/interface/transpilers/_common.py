"""Helpers shared by the standard and Interactions transpilers."""

import base64
import binascii
import json
import logging
import mimetypes
import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

from genai_bridge.core.interface.errors import MalformedContentError, UnsupportedMessageTypeError
from genai_bridge.core.interface.models import CanonicalMessage, ConversationHistory

logger = logging.getLogger(__name__)

_DATA_URL_RE = re.compile(r"^data:(.+);base64,(.+)$", re.DOTALL)

# Used when neither an explicit MIME type nor the URL extension names an image type.
FALLBACK_IMAGE_MIME = "image/jpeg"

_GENERIC_ROLES: dict[str, str] = {
    "user": "user",
    "human": "user",
    "model": "model",
    "ai": "model",
    "assistant": "model",
}


@dataclass(frozen=True)
class DataUrl:
    """A parsed ``data:<mime>;base64,<payload>`` URL."""

    mime_type: str
    data: str

    @property
    def raw(self) -> bytes:
        """The decoded payload bytes."""
        return base64.b64decode(self.data)


def parse_data_url(url: str) -> DataUrl:
    """Split a base64 data URL into MIME type and payload.

    Raises ``MalformedContentError`` when the URL lacks the ``;base64,``
    marker or the payload is not valid base64.
    """
    match = _DATA_URL_RE.match(url)
    if not match:
        raise MalformedContentError(f"not a base64 data URL: {url[:40]!r}")
    mime_type, data = match.group(1), match.group(2)
    try:
        base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedContentError(f"invalid base64 payload for {mime_type}") from exc
    return DataUrl(mime_type=mime_type, data=data)


def infer_image_mime(url: str, explicit: str | None = None) -> str:
    """Resolve the MIME type of a remote image reference.

    Order: explicit value, then the URL path extension. Falls back to
    ``image/jpeg``, which may be wrong; the fallback is logged.
    """
    if explicit:
        return explicit
    guessed, _ = mimetypes.guess_type(urlparse(url).path)
    if guessed and guessed.startswith("image/"):
        return guessed
    logger.warning("No MIME type for image %s; assuming %s", url, FALLBACK_IMAGE_MIME)
    return FALLBACK_IMAGE_MIME


def wire_role(message: CanonicalMessage) -> str:
    """Map a non-system canonical role onto the protocols' ``user``/``model`` roles."""
    if message.role == "ai":
        return "model"
    if message.role in ("human", "tool"):
        return "user"
    if message.role == "generic":
        mapped = _GENERIC_ROLES.get((message.generic_role or "").lower())
        if mapped is not None:
            return mapped
        raise UnsupportedMessageTypeError(message.generic_role or "generic")
    raise UnsupportedMessageTypeError(message.role)


def system_instruction_text(history: ConversationHistory) -> str | None:
    """Join the text of every system message into one instruction."""
    texts = [msg.text for msg in history.system_messages if msg.text]
    return "\n".join(texts) if texts else None


def merge_consecutive_roles(
    entries: list[dict[str, Any]], content_key: str
) -> list[dict[str, Any]]:
    """Merge adjacent entries sharing a role by concatenating their content lists.

    Returns new entries; the input dicts and lists are left untouched.
    """
    merged: list[dict[str, Any]] = []
    for entry in entries:
        if merged and merged[-1]["role"] == entry["role"]:
            prev = merged[-1]
            merged[-1] = {**prev, content_key: [*prev[content_key], *entry[content_key]]}
        else:
            merged.append({**entry, content_key: list(entry[content_key])})
    return merged


def tool_result_value(text: str) -> Any:
    """Tool results travel as objects when the text is JSON, else as the raw string."""
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return text
