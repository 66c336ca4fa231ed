"""Stream Accumulator — folds streamed deltas into one canonical message.

Each wire delta is first converted to a :class:`MessageChunk` by the
protocol's transpiler. Chunks combine with ``+``, an associative,
type-aware concatenation:

* adjacent text blocks merge, adjacent reasoning blocks merge, and a kind
  switch opens a new block;
* tool-call fragments sharing an ``index`` concatenate their argument
  text; fragments without an index are complete calls and are appended;
* metadata merges with later keys winning (a signature-only delta only
  touches metadata);
* usage keeps the latest report, since the terminal event carries totals.

The response decoders reuse the same fold, so a streamed response and its
non-streamed equivalent decode to the same message.
"""

import json
from collections.abc import AsyncIterable, AsyncIterator, Callable, Iterable, Iterator
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict

from genai_bridge.core.interface.models import (
    CanonicalMessage,
    ContentBlock,
    ReasoningContent,
    TextContent,
    ToolCall,
    UsageMetadata,
)

E = TypeVar("E")


class ToolCallChunk(BaseModel):
    """A (possibly partial) tool call; ``args`` is a JSON text fragment."""

    model_config = ConfigDict(frozen=True)

    index: int | None = None
    id: str | None = None
    name: str | None = None
    args: str = ""


class MessageChunk(BaseModel):
    """A partial AI message produced from one or more stream deltas."""

    model_config = ConfigDict(frozen=True)

    content: list[ContentBlock] = []
    tool_call_chunks: list[ToolCallChunk] = []
    metadata: dict[str, Any] = {}
    usage: UsageMetadata | None = None

    def __add__(self, other: "MessageChunk") -> "MessageChunk":
        return MessageChunk(
            content=_merge_blocks(self.content, other.content),
            tool_call_chunks=_merge_tool_call_chunks(self.tool_call_chunks, other.tool_call_chunks),
            metadata={**self.metadata, **other.metadata},
            usage=other.usage if other.usage is not None else self.usage,
        )

    @property
    def text(self) -> str:
        """Answer text accumulated so far (reasoning excluded)."""
        return "".join(b.text for b in self.content if isinstance(b, TextContent))

    def to_message(self) -> CanonicalMessage:
        """Finalize into a canonical AI message.

        Content collapses to a plain string when every block is text.
        Reasoning texts are also listed under ``metadata["thoughts"]``.
        """
        content: str | list[ContentBlock]
        if all(isinstance(b, TextContent) for b in self.content):
            content = self.text
        else:
            content = list(self.content)

        metadata = dict(self.metadata)
        thoughts = [b.text for b in self.content if isinstance(b, ReasoningContent)]
        if thoughts:
            metadata["thoughts"] = thoughts

        tool_calls = [_finish_tool_call(c) for c in self.tool_call_chunks]
        return CanonicalMessage(
            role="ai",
            content=content,
            tool_calls=tool_calls or None,
            metadata=metadata,
            usage=self.usage,
        )


def _same_kind(left: ContentBlock, right: ContentBlock) -> bool:
    return type(left) is type(right) and isinstance(left, (TextContent, ReasoningContent))


def _merge_blocks(left: list[ContentBlock], right: list[ContentBlock]) -> list[ContentBlock]:
    if left and right and _same_kind(left[-1], right[0]):
        tail, head = left[-1], right[0]
        joined = tail.model_copy(update={"text": tail.text + head.text})  # type: ignore[union-attr]
        return [*left[:-1], joined, *right[1:]]
    return [*left, *right]


def _merge_tool_call_chunks(
    left: list[ToolCallChunk], right: list[ToolCallChunk]
) -> list[ToolCallChunk]:
    result = list(left)
    for chunk in right:
        if chunk.index is not None:
            pos = next((i for i, c in enumerate(result) if c.index == chunk.index), None)
            if pos is not None:
                prev = result[pos]
                result[pos] = ToolCallChunk(
                    index=prev.index,
                    id=prev.id or chunk.id,
                    name=prev.name or chunk.name,
                    args=prev.args + chunk.args,
                )
                continue
        result.append(chunk)
    return result


def _finish_tool_call(chunk: ToolCallChunk) -> ToolCall:
    if chunk.id:
        return ToolCall(id=chunk.id, name=chunk.name or "", arguments=parse_arguments(chunk.args))
    return ToolCall(name=chunk.name or "", arguments=parse_arguments(chunk.args))


def parse_arguments(raw: str) -> dict[str, Any]:
    """Parse JSON text assembled from tool-call fragments."""
    if not raw:
        return {}
    try:
        result = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return {"raw": raw}
    return result if isinstance(result, dict) else {"value": result}


def serialize_arguments(args: Any) -> str:
    """Serialize tool-call arguments to a JSON fragment."""
    if args is None:
        return ""
    if isinstance(args, str):
        return args
    return json.dumps(args)


class StreamAccumulator:
    """Running fold over the deltas of one streamed call.

    One accumulator per call; it is never shared. Deltas must arrive in
    order; the fold does not tolerate reordering or duplicates.

    Usage::

        acc = StreamAccumulator()
        for snapshot in acc.consume(events, convert=transpiler.chunk_from_provider):
            render(snapshot.text)
        final = acc.message()
    """

    def __init__(self) -> None:
        self._current = MessageChunk()
        self._count = 0

    @property
    def current(self) -> MessageChunk:
        return self._current

    @property
    def count(self) -> int:
        """Number of chunks folded in so far."""
        return self._count

    def add(self, chunk: MessageChunk) -> MessageChunk:
        """Fold *chunk* in and return the updated snapshot."""
        self._current = self._current + chunk
        self._count += 1
        return self._current

    def consume(
        self,
        events: Iterable[E],
        convert: Callable[[E], MessageChunk | None] | None = None,
    ) -> Iterator[MessageChunk]:
        """Fold *events* in order, yielding the running snapshot after each delta.

        *convert* turns a raw wire event into a chunk; events it maps to
        ``None`` are skipped. Without *convert* the events must already be
        chunks.
        """
        for event in events:
            chunk = convert(event) if convert is not None else event
            if chunk is None:
                continue
            yield self.add(chunk)  # type: ignore[arg-type]

    async def aconsume(
        self,
        events: AsyncIterable[E],
        convert: Callable[[E], MessageChunk | None] | None = None,
    ) -> AsyncIterator[MessageChunk]:
        """Async variant of :meth:`consume`; pacing is left to the caller."""
        async for event in events:
            chunk = convert(event) if convert is not None else event
            if chunk is None:
                continue
            yield self.add(chunk)  # type: ignore[arg-type]

    def message(self) -> CanonicalMessage:
        """The final merged message."""
        return self._current.to_message()
