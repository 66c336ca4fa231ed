"""Gemini standard-protocol transpiler (``generateContent`` / ``generateContentStream``).

Key differences from CMS:
- Role "ai" becomes "model"; tool results travel as "user" turns.
- Reasoning is a text part flagged ``thought: true``.
- Tool calls use FunctionCall/FunctionResponse parts.
- System text is sent once, in a separate ``systemInstruction``.
- The continuation signature rides on the last part of a model turn.
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
from genai_bridge.core.interface.signatures import attach_signature, read_signature
from genai_bridge.core.interface.streaming import MessageChunk, ToolCallChunk, serialize_arguments
from genai_bridge.core.interface.transpilers._common import (
    infer_image_mime,
    merge_consecutive_roles,
    parse_data_url,
    system_instruction_text,
    wire_role,
)

logger = logging.getLogger(__name__)


class GeminiTranspiler:
    """Converts between CMS and the standard ``generateContent`` format."""

    protocol = "standard"

    def to_provider(self, history: ConversationHistory) -> dict[str, Any]:
        """Convert CMS history to ``{"contents": [...], "systemInstruction"?: {...}}``.

        Adjacent turns with the same wire role are merged into one.
        """
        result: dict[str, Any] = {}

        system_text = system_instruction_text(history)
        if system_text:
            result["systemInstruction"] = {"parts": [{"text": system_text}]}

        entries = [
            {"role": wire_role(msg), "parts": self._message_parts(msg)}
            for msg in history.non_system_messages
        ]
        result["contents"] = merge_consecutive_roles(entries, "parts")

        logger.debug(
            "Encoded %d message(s) into %d content(s)", len(entries), len(result["contents"])
        )
        return result

    def from_provider(self, response: dict[str, Any]) -> CanonicalMessage:
        """Convert a complete ``generateContent`` response to a CanonicalMessage."""
        candidates = response.get("candidates") or []
        if not candidates:
            raise EmptyResponseError("no candidates returned")
        candidate = candidates[0]

        message = self._candidate_chunk(candidate).to_message()

        metadata = dict(message.metadata)
        metadata.setdefault("finish_reason", candidate.get("finishReason"))
        if "index" in candidate:
            metadata["index"] = candidate["index"]
        if response.get("promptFeedback"):
            metadata["prompt_feedback"] = response["promptFeedback"]
        if response.get("modelVersion"):
            metadata["model"] = response["modelVersion"]

        return message.model_copy(
            update={"metadata": metadata, "usage": _usage(response.get("usageMetadata"))}
        )

    def chunk_from_provider(self, response: dict[str, Any]) -> MessageChunk | None:
        """Convert one ``generateContentStream`` response chunk to a MessageChunk.

        A trailing chunk with only usage yields a usage-only MessageChunk;
        a chunk with nothing usable yields ``None``.
        """
        usage = _usage(response.get("usageMetadata"))
        candidates = response.get("candidates") or []
        if not candidates:
            return MessageChunk(usage=usage) if usage else None

        chunk = self._candidate_chunk(candidates[0])
        if usage is not None:
            chunk = chunk.model_copy(update={"usage": usage})
        if chunk == MessageChunk():
            return None
        return chunk

    # -- content codec ------------------------------------------------------

    def encode_block(self, block: ContentBlock) -> dict[str, Any]:
        """Convert a content block to a standard-protocol part."""
        if isinstance(block, TextContent):
            return {"text": block.text}
        if isinstance(block, ReasoningContent):
            return {"text": block.text, "thought": True}
        if isinstance(block, ImageContent):
            return self._image_to_part(block)
        if isinstance(block, FunctionCallContent):
            return {"functionCall": {"name": block.name, "args": block.arguments, "id": block.id}}
        if isinstance(block, FunctionResultContent):
            return {
                "functionResponse": {
                    "name": block.name,
                    "response": _response_payload(block.name, block.result, block.is_error),
                }
            }
        raise UnsupportedBlockError(getattr(block, "type", type(block).__name__))

    def decode_part(self, part: dict[str, Any]) -> ContentBlock | None:
        """Convert a standard-protocol part to a content block.

        Parts that carry no content (e.g. a bare signature) return ``None``.
        """
        text = part.get("text")
        if text:
            return ReasoningContent(text=text) if part.get("thought") else TextContent(text=text)
        if "functionCall" in part:
            fc = part["functionCall"]
            call: dict[str, Any] = {"name": fc.get("name", ""), "arguments": fc.get("args") or {}}
            if fc.get("id"):
                call["id"] = fc["id"]
            return FunctionCallContent(**call)
        if "inlineData" in part:
            inline = part["inlineData"]
            return ImageContent(data=inline.get("data"), mime_type=inline.get("mimeType"))
        if "fileData" in part:
            file_data = part["fileData"]
            return ImageContent(url=file_data.get("fileUri"), mime_type=file_data.get("mimeType"))
        if "functionResponse" in part:
            fr = part["functionResponse"]
            return FunctionResultContent(
                call_id=fr.get("id") or fr.get("name", ""),
                name=fr.get("name", ""),
                result=fr.get("response"),
            )
        return None

    # -- internals ----------------------------------------------------------

    def _message_parts(self, msg: CanonicalMessage) -> list[dict[str, Any]]:
        """Convert a single CMS message to its list of parts."""
        if msg.role == "tool":
            return self._tool_result_parts(msg)

        parts = [self.encode_block(block) for block in msg.blocks]

        if msg.tool_calls:
            for tc in msg.tool_calls:
                parts.append({"functionCall": {"name": tc.name, "args": tc.arguments, "id": tc.id}})

        if msg.role == "ai":
            parts = attach_signature(parts, read_signature(msg.metadata))
        return parts

    def _tool_result_parts(self, msg: CanonicalMessage) -> list[dict[str, Any]]:
        blocks = msg.blocks
        if any(isinstance(b, FunctionResultContent) for b in blocks):
            return [self.encode_block(b) for b in blocks]
        name = msg.name or ""
        return [
            {
                "functionResponse": {
                    "name": name,
                    "response": _response_payload(name, msg.text, msg.status == "error"),
                }
            }
        ]

    def _image_to_part(self, block: ImageContent) -> dict[str, Any]:
        if block.data:
            if not block.mime_type:
                raise MalformedContentError("inline image data requires a mime_type")
            return {"inlineData": {"mimeType": block.mime_type, "data": block.data}}

        url = block.url or ""
        if url.startswith("data:"):
            parsed = parse_data_url(url)
            return {"inlineData": {"mimeType": parsed.mime_type, "data": parsed.data}}
        if url.startswith(("gs://", "https://")):
            return {"fileData": {"mimeType": infer_image_mime(url, block.mime_type), "fileUri": url}}
        raise UnsupportedBlockError("image", f"unsupported URL {url[:40]!r}")

    def _candidate_chunk(self, candidate: dict[str, Any]) -> MessageChunk:
        chunk = MessageChunk()
        for part in (candidate.get("content") or {}).get("parts") or []:
            chunk = chunk + self._part_chunk(part)
        if candidate.get("finishReason"):
            chunk = chunk + MessageChunk(metadata={"finish_reason": candidate["finishReason"]})
        return chunk

    def _part_chunk(self, part: dict[str, Any]) -> MessageChunk:
        metadata: dict[str, Any] = {}
        if part.get("thoughtSignature"):
            metadata[SIGNATURE_KEY] = part["thoughtSignature"]
        if "executableCode" in part:
            metadata["executable_code"] = part["executableCode"]
        if "codeExecutionResult" in part:
            metadata["code_execution_result"] = part["codeExecutionResult"]

        block = self.decode_part(part)
        if isinstance(block, FunctionCallContent):
            call = ToolCallChunk(id=block.id, name=block.name, args=serialize_arguments(block.arguments))
            return MessageChunk(tool_call_chunks=[call], metadata=metadata)
        return MessageChunk(content=[block] if block is not None else [], metadata=metadata)


def _response_payload(name: str, value: Any, is_error: bool) -> dict[str, Any]:
    return {"name": name, "error" if is_error else "content": value}


def _usage(raw: dict[str, Any] | None) -> UsageMetadata | None:
    if not raw:
        return None
    return UsageMetadata(
        input_tokens=raw.get("promptTokenCount", 0),
        output_tokens=raw.get("candidatesTokenCount", raw.get("responseTokenCount", 0)),
        total_tokens=raw.get("totalTokenCount", 0),
        reasoning_tokens=raw.get("thoughtsTokenCount"),
    )
