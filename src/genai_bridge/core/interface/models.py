"""Canonical Message Schema (CMS) — the provider-neutral message format.

Both wire protocols (standard ``generateContent`` and stateful Interactions)
are translated to and from these models. Nothing outside the transpilers
ever touches a wire-shaped dict.
"""

from typing import Annotated, Any, Literal
from uuid import uuid4

from pydantic import BaseModel, Field

SIGNATURE_KEY = "thought_signature"
LEGACY_SIGNATURE_KEY = "thoughtSignature"

# ---------------------------------------------------------------------------
# Content Blocks: the tagged union carried in a message body
# ---------------------------------------------------------------------------


class TextContent(BaseModel):
    """Plain answer text."""

    type: Literal["text"] = "text"
    text: str


class ReasoningContent(BaseModel):
    """Model deliberation, kept apart from answer text."""

    type: Literal["reasoning"] = "reasoning"
    text: str


class ImageContent(BaseModel):
    """Image reference: a URL (``https://``, ``gs://`` or ``data:``) or inline base64."""

    type: Literal["image"] = "image"
    url: str | None = None
    data: str | None = None
    mime_type: str | None = None


class FunctionCallContent(BaseModel):
    """A function invocation emitted by the model."""

    type: Literal["function_call"] = "function_call"
    id: str = Field(default_factory=lambda: uuid4().hex[:12])
    name: str
    arguments: dict[str, Any] = {}


class FunctionResultContent(BaseModel):
    """The outcome of a function invocation, sent back to the model."""

    type: Literal["function_result"] = "function_result"
    call_id: str
    name: str = ""
    result: Any = None
    is_error: bool = False


ContentBlock = Annotated[
    TextContent | ReasoningContent | ImageContent | FunctionCallContent | FunctionResultContent,
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Tool Calling and Usage
# ---------------------------------------------------------------------------


class ToolCall(BaseModel):
    """A tool invocation attached to an AI message."""

    id: str = Field(default_factory=lambda: uuid4().hex[:12])
    name: str
    arguments: dict[str, Any] = {}


class UsageMetadata(BaseModel):
    """Token accounting reported by the server."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    reasoning_tokens: int | None = None


# ---------------------------------------------------------------------------
# Canonical Message: the core message type
# ---------------------------------------------------------------------------

MessageRole = Literal["system", "human", "ai", "tool", "generic"]


class CanonicalMessage(BaseModel):
    """A single message in the canonical format.

    Roles:
    - system: instruction/context messages
    - human: end-user input
    - ai: model output (may include tool_calls and a thought signature)
    - tool: a tool result (``tool_call_id`` and ``name`` identify the call)
    - generic: any other role, named by ``generic_role``

    ``content`` is either a plain string or an ordered list of blocks, never
    both.
    """

    role: MessageRole
    content: str | list[ContentBlock] = ""
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None
    name: str | None = None
    status: Literal["success", "error"] = "success"
    generic_role: str | None = None
    metadata: dict[str, Any] = {}
    usage: UsageMetadata | None = None

    @property
    def blocks(self) -> list[ContentBlock]:
        """Return the body as a block list, wrapping plain text."""
        if isinstance(self.content, str):
            return [TextContent(text=self.content)] if self.content else []
        return list(self.content)

    @property
    def text(self) -> str:
        """Concatenated answer text (reasoning excluded)."""
        if isinstance(self.content, str):
            return self.content
        return "".join(b.text for b in self.content if isinstance(b, TextContent))

    @property
    def reasoning(self) -> list[str]:
        """Texts of all reasoning blocks, in order."""
        return [b.text for b in self.blocks if isinstance(b, ReasoningContent)]

    @property
    def thought_signature(self) -> str | None:
        """The continuation signature carried in metadata, if any."""
        value = self.metadata.get(SIGNATURE_KEY, self.metadata.get(LEGACY_SIGNATURE_KEY))
        return value if isinstance(value, str) else None

    @classmethod
    def system(cls, text: str, **metadata: Any) -> "CanonicalMessage":
        """Create a system message."""
        return cls(role="system", content=text, metadata=metadata)

    @classmethod
    def human(cls, content: str | list[ContentBlock], **metadata: Any) -> "CanonicalMessage":
        """Create a human message."""
        return cls(role="human", content=content, metadata=metadata)

    @classmethod
    def ai(
        cls,
        content: str | list[ContentBlock] = "",
        tool_calls: list[ToolCall] | None = None,
        **metadata: Any,
    ) -> "CanonicalMessage":
        """Create an AI message."""
        return cls(role="ai", content=content, tool_calls=tool_calls, metadata=metadata)

    @classmethod
    def tool(
        cls,
        tool_call_id: str,
        content: str | list[ContentBlock],
        name: str | None = None,
        is_error: bool = False,
    ) -> "CanonicalMessage":
        """Create a tool-result message."""
        return cls(
            role="tool",
            content=content,
            tool_call_id=tool_call_id,
            name=name,
            status="error" if is_error else "success",
        )

    @classmethod
    def generic(cls, role: str, content: str | list[ContentBlock]) -> "CanonicalMessage":
        """Create a message with a free-form role."""
        return cls(role="generic", generic_role=role, content=content)


# ---------------------------------------------------------------------------
# Conversation History: ordered container of messages
# ---------------------------------------------------------------------------


class ConversationHistory(BaseModel):
    """An ordered sequence of canonical messages forming a conversation."""

    messages: list[CanonicalMessage] = []

    def append(self, message: CanonicalMessage) -> None:
        """Append a message to the history."""
        self.messages.append(message)

    @property
    def system_messages(self) -> list[CanonicalMessage]:
        """Return all system messages."""
        return [m for m in self.messages if m.role == "system"]

    @property
    def non_system_messages(self) -> list[CanonicalMessage]:
        """Return all non-system messages (both protocols carry system text separately)."""
        return [m for m in self.messages if m.role != "system"]

    def __len__(self) -> int:
        return len(self.messages)

    def __iter__(self):  # type: ignore[override]
        return iter(self.messages)
