"""Canonical Message Schema (CMS) & wire-protocol transpilation."""

from genai_bridge.core.interface.client import GenAIChatClient, Transport
from genai_bridge.core.interface.config import CallOptions, GenerationSettings, ThinkingConfig
from genai_bridge.core.interface.errors import (
    EmptyResponseError,
    MalformedContentError,
    TranslationError,
    UnsupportedBlockError,
    UnsupportedMessageTypeError,
)
from genai_bridge.core.interface.models import (
    CanonicalMessage,
    ContentBlock,
    ConversationHistory,
    FunctionCallContent,
    FunctionResultContent,
    ImageContent,
    ReasoningContent,
    TextContent,
    ToolCall,
    UsageMetadata,
)
from genai_bridge.core.interface.streaming import MessageChunk, StreamAccumulator, ToolCallChunk
from genai_bridge.core.interface.tools import FunctionTool, InteractionsTool, StandardTool
from genai_bridge.core.interface.transpiler import Transpiler, WireProtocol, get_transpiler
from genai_bridge.core.interface.transpilers import GeminiTranspiler, InteractionsTranspiler

__all__ = [
    "CallOptions",
    "CanonicalMessage",
    "ContentBlock",
    "ConversationHistory",
    "EmptyResponseError",
    "FunctionCallContent",
    "FunctionResultContent",
    "FunctionTool",
    "GeminiTranspiler",
    "GenAIChatClient",
    "GenerationSettings",
    "ImageContent",
    "InteractionsTool",
    "InteractionsTranspiler",
    "MalformedContentError",
    "MessageChunk",
    "ReasoningContent",
    "StandardTool",
    "StreamAccumulator",
    "TextContent",
    "ThinkingConfig",
    "ToolCall",
    "ToolCallChunk",
    "Transpiler",
    "Transport",
    "TranslationError",
    "UnsupportedBlockError",
    "UnsupportedMessageTypeError",
    "UsageMetadata",
    "WireProtocol",
    "get_transpiler",
]
