"""Transpiler protocol — converts between CMS and a wire protocol.

Each protocol (standard ``generateContent`` and stateful Interactions) has a
concrete transpiler that implements bidirectional conversion: CMS history ->
request payload, complete response -> CanonicalMessage, and stream delta ->
MessageChunk.
"""

from typing import Any, Literal, Protocol

from genai_bridge.core.interface.models import CanonicalMessage, ConversationHistory
from genai_bridge.core.interface.streaming import MessageChunk
from genai_bridge.core.interface.transpilers.gemini import GeminiTranspiler
from genai_bridge.core.interface.transpilers.interactions import InteractionsTranspiler

WireProtocol = Literal["standard", "interactions"]


class Transpiler(Protocol):
    """Protocol for wire-format transpilers."""

    protocol: str

    def to_provider(self, history: ConversationHistory) -> dict[str, Any]:
        """Convert a CMS conversation history to the protocol's turns/contents.

        Returns the message-bearing slice of a request (contents or input plus
        the system instruction); the request builders add everything else.
        """
        ...

    def from_provider(self, response: dict[str, Any]) -> CanonicalMessage:
        """Convert a complete, non-streamed response into a CanonicalMessage."""
        ...

    def chunk_from_provider(self, event: dict[str, Any]) -> MessageChunk | None:
        """Convert one stream delta into a MessageChunk, or ``None`` to skip it."""
        ...


def get_transpiler(protocol: str) -> Transpiler:
    """Return the transpiler for *protocol* (``standard`` or ``interactions``)."""
    mapping: dict[str, Transpiler] = {
        "standard": GeminiTranspiler(),
        "gemini": GeminiTranspiler(),
        "interactions": InteractionsTranspiler(),
    }
    try:
        return mapping[protocol]
    except KeyError:
        raise ValueError(f"Unknown protocol: {protocol!r}") from None
