"""Interactions-protocol transpiler (stateful ``interactions.create``).

Key differences from the standard protocol:
- Turns are ``{"role", "content": [item, ...]}`` with snake_case items
  tagged by ``type``.
- Reasoning is a ``thought`` item; its text lives in ``summary`` and the
  continuation signature in ``signature``.
- Tool results are ``function_result`` items in a "user" turn.
- The system instruction is a plain string.
- Streaming delivers ``content.delta`` events keyed by output ``index`` and
  ends with ``interaction.complete``.
"""

import logging
from typing import Any

from genai_bridge.core.interface.errors import (
    EmptyResponseError,
    MalformedContentError,
    UnsupportedBlockError,
)
from genai_bridge.core.interface.models import (
    SIGNATURE_KEY,
    CanonicalMessage,
    ContentBlock,
    ConversationHistory,
    FunctionCallContent,
    FunctionResultContent,
    ImageContent,
    ReasoningContent,
    TextContent,
    UsageMetadata,
)
from genai_bridge.core.interface.signatures import attach_interaction_signature, read_signature
from genai_bridge.core.interface.streaming import MessageChunk, ToolCallChunk, serialize_arguments
from genai_bridge.core.interface.transpilers._common import (
    merge_consecutive_roles,
    parse_data_url,
    system_instruction_text,
    tool_result_value,
    wire_role,
)

logger = logging.getLogger(__name__)

# Interaction statuses that legitimately carry no outputs yet.
_PENDING_STATUSES = frozenset({"in_progress"})


class InteractionsTranspiler:
    """Converts between CMS and the Interactions API format."""

    protocol = "interactions"

    def to_provider(self, history: ConversationHistory) -> dict[str, Any]:
        """Convert CMS history to ``{"input": [turn, ...], "system_instruction"?: str}``."""
        result: dict[str, Any] = {}

        system_text = system_instruction_text(history)
        if system_text:
            result["system_instruction"] = system_text

        turns = [
            {"role": wire_role(msg), "content": self._message_items(msg)}
            for msg in history.non_system_messages
        ]
        result["input"] = merge_consecutive_roles(turns, "content")

        logger.debug("Encoded %d message(s) into %d turn(s)", len(turns), len(result["input"]))
        return result

    def from_provider(self, response: dict[str, Any]) -> CanonicalMessage:
        """Convert a complete Interaction object to a CanonicalMessage."""
        outputs = response.get("outputs") or []
        status = response.get("status")
        if not outputs and status not in _PENDING_STATUSES:
            raise EmptyResponseError(f"interaction {response.get('id')!r} has no outputs")

        chunk = MessageChunk()
        for output in outputs:
            chunk = chunk + self._output_chunk(output)
        message = chunk.to_message()

        metadata: dict[str, Any] = {
            "interaction_id": response.get("id"),
            "finish_reason": status,
        }
        if response.get("model"):
            metadata["model"] = response["model"]
        metadata.update(message.metadata)

        return message.model_copy(
            update={"metadata": metadata, "usage": _usage(response.get("usage"))}
        )

    def chunk_from_provider(self, event: dict[str, Any]) -> MessageChunk | None:
        """Convert one Interactions SSE event to a MessageChunk (``None`` if irrelevant)."""
        event_type = event.get("event_type")

        if event_type == "content.delta":
            delta = event.get("delta") or {}
            return self._delta_chunk(delta, event.get("index", 0))

        if event_type == "interaction.start":
            interaction = event.get("interaction") or {}
            if interaction.get("id"):
                return MessageChunk(metadata={"interaction_id": interaction["id"]})
            return None

        if event_type == "interaction.complete":
            interaction = event.get("interaction") or {}
            metadata: dict[str, Any] = {}
            if interaction.get("id"):
                metadata["interaction_id"] = interaction["id"]
            if interaction.get("status"):
                metadata["finish_reason"] = interaction["status"]
            usage = _usage(interaction.get("usage"))
            if not metadata and usage is None:
                return None
            return MessageChunk(metadata=metadata, usage=usage)

        return None

    # -- content codec ------------------------------------------------------

    def encode_block(self, block: ContentBlock) -> dict[str, Any]:
        """Convert a content block to an Interactions content item."""
        if isinstance(block, TextContent):
            return {"type": "text", "text": block.text}
        if isinstance(block, ReasoningContent):
            return {"type": "thought", "summary": [{"type": "text", "text": block.text}]}
        if isinstance(block, ImageContent):
            return self._image_to_item(block)
        if isinstance(block, FunctionCallContent):
            return {
                "type": "function_call",
                "id": block.id,
                "name": block.name,
                "arguments": block.arguments,
            }
        if isinstance(block, FunctionResultContent):
            return {
                "type": "function_result",
                "call_id": block.call_id,
                "name": block.name,
                "result": block.result,
                "is_error": block.is_error,
            }
        raise UnsupportedBlockError(getattr(block, "type", type(block).__name__))

    def decode_item(self, item: dict[str, Any]) -> ContentBlock | None:
        """Convert an Interactions output item to a content block.

        A ``thought`` item without summary text (signature only) returns ``None``.
        """
        item_type = item.get("type")
        if item_type == "text":
            text = item.get("text") or ""
            return TextContent(text=text) if text else None
        if item_type == "thought":
            # Concatenated like streamed thought_summary deltas.
            texts = [s.get("text") or "" for s in item.get("summary") or [] if s.get("type") == "text"]
            summary = "".join(texts)
            return ReasoningContent(text=summary) if summary else None
        if item_type == "image":
            if item.get("data"):
                return ImageContent(data=item["data"], mime_type=item.get("mime_type"))
            return ImageContent(url=item.get("uri"), mime_type=item.get("mime_type"))
        if item_type == "function_call":
            call: dict[str, Any] = {
                "name": item.get("name", ""),
                "arguments": item.get("arguments") or {},
            }
            if item.get("id"):
                call["id"] = item["id"]
            return FunctionCallContent(**call)
        if item_type == "function_result":
            return FunctionResultContent(
                call_id=item.get("call_id", ""),
                name=item.get("name") or "",
                result=item.get("result"),
                is_error=bool(item.get("is_error")),
            )
        return None

    # -- internals ----------------------------------------------------------

    def _message_items(self, msg: CanonicalMessage) -> list[dict[str, Any]]:
        """Convert a single CMS message to its list of content items."""
        if msg.role == "tool":
            return self._tool_result_items(msg)

        items = [self.encode_block(block) for block in msg.blocks]

        if msg.tool_calls:
            for tc in msg.tool_calls:
                items.append(
                    {"type": "function_call", "id": tc.id, "name": tc.name, "arguments": tc.arguments}
                )

        if msg.role == "ai":
            items = attach_interaction_signature(items, read_signature(msg.metadata))
        return items

    def _tool_result_items(self, msg: CanonicalMessage) -> list[dict[str, Any]]:
        blocks = msg.blocks
        if any(isinstance(b, FunctionResultContent) for b in blocks):
            return [self.encode_block(b) for b in blocks]
        item: dict[str, Any] = {
            "type": "function_result",
            "call_id": msg.tool_call_id or "",
            "result": tool_result_value(msg.text),
            "is_error": msg.status == "error",
        }
        if msg.name:
            item["name"] = msg.name
        return [item]

    def _image_to_item(self, block: ImageContent) -> dict[str, Any]:
        if block.data:
            if not block.mime_type:
                raise MalformedContentError("inline image data requires a mime_type")
            return {"type": "image", "data": block.data, "mime_type": block.mime_type}

        url = block.url or ""
        if not url:
            raise UnsupportedBlockError("image", "no url or data")
        if url.startswith("data:"):
            parsed = parse_data_url(url)
            return {"type": "image", "data": parsed.data, "mime_type": parsed.mime_type}

        item: dict[str, Any] = {"type": "image", "uri": url}
        if block.mime_type:
            item["mime_type"] = block.mime_type
        return item

    def _output_chunk(self, output: dict[str, Any]) -> MessageChunk:
        output_type = output.get("type")
        metadata: dict[str, Any] = {}
        if output_type == "thought" and output.get("signature"):
            metadata[SIGNATURE_KEY] = output["signature"]
        elif output_type == "code_execution_result":
            metadata["code_execution_result"] = output

        block = self.decode_item(output)
        if isinstance(block, FunctionCallContent):
            call = ToolCallChunk(id=block.id, name=block.name, args=serialize_arguments(block.arguments))
            return MessageChunk(tool_call_chunks=[call], metadata=metadata)
        return MessageChunk(content=[block] if block is not None else [], metadata=metadata)

    def _delta_chunk(self, delta: dict[str, Any], index: int) -> MessageChunk | None:
        delta_type = delta.get("type")

        if delta_type == "text":
            text = delta.get("text") or ""
            return MessageChunk(content=[TextContent(text=text)]) if text else None

        if delta_type == "thought_summary":
            content = delta.get("content") or {}
            text = (content.get("text") or "") if content.get("type") == "text" else ""
            return MessageChunk(content=[ReasoningContent(text=text)]) if text else None

        if delta_type == "thought_signature":
            signature = delta.get("signature")
            return MessageChunk(metadata={SIGNATURE_KEY: signature}) if signature else None

        if delta_type == "function_call":
            call = ToolCallChunk(
                index=index,
                id=delta.get("id"),
                name=delta.get("name"),
                args=serialize_arguments(delta.get("arguments")),
            )
            return MessageChunk(tool_call_chunks=[call])

        if delta_type == "image":
            block = self.decode_item(delta)
            return MessageChunk(content=[block]) if block is not None else None

        return None


def _usage(raw: dict[str, Any] | None) -> UsageMetadata | None:
    if not raw:
        return None
    return UsageMetadata(
        input_tokens=raw.get("total_input_tokens") or 0,
        output_tokens=raw.get("total_output_tokens") or 0,
        total_tokens=raw.get("total_tokens") or 0,
        reasoning_tokens=raw.get("total_thought_tokens"),
    )
