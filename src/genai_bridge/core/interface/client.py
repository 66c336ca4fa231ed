"""GenAIChatClient — unified async interface over both wire protocols.

The network transport is injected; this client only builds requests,
hands them over and translates whatever comes back, so callers work with
CanonicalMessage and ConversationHistory alone.
"""

import logging
from collections.abc import AsyncIterator
from typing import Any, Protocol

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode

from genai_bridge.core.interface.config import CallOptions, GenerationSettings
from genai_bridge.core.interface.errors import EmptyResponseError
from genai_bridge.core.interface.models import CanonicalMessage, ConversationHistory
from genai_bridge.core.interface.requests import (
    build_generate_content_request,
    build_interactions_request,
    should_use_interactions,
)
from genai_bridge.core.interface.streaming import MessageChunk, StreamAccumulator
from genai_bridge.core.interface.transpiler import WireProtocol, get_transpiler
from genai_bridge.utils.telemetry import (
    ATTR_AGENT,
    ATTR_FINISH_REASON,
    ATTR_INTERACTION_ID,
    ATTR_MESSAGE_COUNT,
    ATTR_MODEL,
    ATTR_PROTOCOL,
    ATTR_STREAM_DELTAS,
    ATTR_TOKENS_INPUT,
    ATTR_TOKENS_OUTPUT,
    ATTR_TOKENS_TOTAL,
    ATTR_TOOL_COUNT,
    get_tracer,
)

logger = logging.getLogger(__name__)

_tracer = get_tracer(__name__)


class Transport(Protocol):
    """The network boundary. Retries and timeouts belong here, not in the client."""

    async def generate_content(self, request: dict[str, Any]) -> dict[str, Any]:
        """Send a standard request and return the complete response."""
        ...

    def generate_content_stream(self, request: dict[str, Any]) -> AsyncIterator[dict[str, Any]]:
        """Send a standard request and yield response chunks in arrival order."""
        ...

    async def create_interaction(self, request: dict[str, Any]) -> dict[str, Any]:
        """Create an interaction and return the complete Interaction object."""
        ...

    def stream_interaction(self, request: dict[str, Any]) -> AsyncIterator[dict[str, Any]]:
        """Create an interaction and yield its SSE events in arrival order."""
        ...

    async def get_interaction(self, interaction_id: str) -> dict[str, Any]:
        """Fetch a stored interaction by id."""
        ...


class GenAIChatClient:
    """Async chat client for the standard and Interactions protocols.

    Usage::

        settings = GenerationSettings(model="gemini-2.5-flash")
        client = GenAIChatClient(settings, transport)
        reply = await client.generate(history)
    """

    def __init__(self, settings: GenerationSettings, transport: Transport) -> None:
        self.settings = settings
        self.transport = transport

    def protocol_for(self, options: CallOptions | None = None) -> WireProtocol:
        """Pick the wire protocol for a call."""
        return "interactions" if should_use_interactions(self.settings, options) else "standard"

    async def generate(
        self,
        history: ConversationHistory,
        options: CallOptions | None = None,
    ) -> CanonicalMessage:
        """Generate a complete response.

        With ``settings.streaming`` the stream is drained and its accumulated
        message returned.
        """
        options = options or CallOptions()
        if self.settings.streaming:
            return await self._drain(history, options)

        protocol = self.protocol_for(options)
        with _tracer.start_as_current_span("genai.generate") as span:
            self._annotate_request(span, protocol, history, options)

            if protocol == "interactions":
                request = build_interactions_request(self.settings, history, options, stream=False)
                response = await self.transport.create_interaction(request)
            else:
                request = build_generate_content_request(self.settings, history, options)
                response = await self.transport.generate_content(request)

            message = get_transpiler(protocol).from_provider(response)
            _annotate_response(span, message)
            logger.debug(
                "%s response decoded: %d tool call(s), finish_reason=%s",
                protocol,
                len(message.tool_calls or []),
                message.metadata.get("finish_reason"),
            )
            return message

    async def stream(
        self,
        history: ConversationHistory,
        options: CallOptions | None = None,
    ) -> AsyncIterator[MessageChunk]:
        """Stream a response, yielding the running accumulation after every delta.

        Stop iterating (or ``aclose()`` the generator) to cancel; the
        transport iterator is closed and the partial state dropped.

        The span is only made current around the non-yielding parts, so the
        caller's context between snapshots is never the stream's span.
        """
        options = options or CallOptions()
        protocol = self.protocol_for(options)
        transpiler = get_transpiler(protocol)
        accumulator = StreamAccumulator()

        span = _tracer.start_span("genai.stream")
        events: AsyncIterator[dict[str, Any]] | None = None
        snapshots: AsyncIterator[MessageChunk] | None = None
        try:
            with trace.use_span(span, end_on_exit=False, record_exception=False, set_status_on_exception=False):
                self._annotate_request(span, protocol, history, options)
                if protocol == "interactions":
                    request = build_interactions_request(self.settings, history, options, stream=True)
                    events = self.transport.stream_interaction(request)
                else:
                    request = build_generate_content_request(self.settings, history, options)
                    events = self.transport.generate_content_stream(request)

            snapshots = accumulator.aconsume(events, convert=transpiler.chunk_from_provider)
            async for snapshot in snapshots:
                yield snapshot

            with trace.use_span(span, end_on_exit=False, record_exception=False, set_status_on_exception=False):
                span.set_attribute(ATTR_STREAM_DELTAS, accumulator.count)
                if accumulator.count:
                    _annotate_response(span, accumulator.message())
                logger.debug("%s stream finished after %d delta(s)", protocol, accumulator.count)
        except Exception as exc:
            span.record_exception(exc)
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            raise
        finally:
            await _aclose(snapshots)
            await _aclose(events)
            span.end()

    async def get_interaction(self, interaction_id: str) -> CanonicalMessage:
        """Retrieve a stored interaction (e.g. a finished background run)."""
        with _tracer.start_as_current_span("genai.get_interaction") as span:
            span.set_attribute(ATTR_PROTOCOL, "interactions")
            span.set_attribute(ATTR_INTERACTION_ID, interaction_id)
            response = await self.transport.get_interaction(interaction_id)
            message = get_transpiler("interactions").from_provider(response)
            _annotate_response(span, message)
            return message

    async def _drain(self, history: ConversationHistory, options: CallOptions) -> CanonicalMessage:
        last: MessageChunk | None = None
        async for snapshot in self.stream(history, options):
            last = snapshot
        if last is None:
            raise EmptyResponseError("stream ended without any chunks")
        return last.to_message()

    def _annotate_request(
        self,
        span: Span,
        protocol: str,
        history: ConversationHistory,
        options: CallOptions,
    ) -> None:
        span.set_attribute(ATTR_PROTOCOL, protocol)
        if self.settings.model:
            span.set_attribute(ATTR_MODEL, self.settings.model)
        if self.settings.agent:
            span.set_attribute(ATTR_AGENT, self.settings.agent)
        span.set_attribute(ATTR_MESSAGE_COUNT, len(history))
        span.set_attribute(ATTR_TOOL_COUNT, len(options.tools))


async def _aclose(iterator: Any) -> None:
    aclose = getattr(iterator, "aclose", None)
    if aclose is not None:
        await aclose()


def _annotate_response(span: Span, message: CanonicalMessage) -> None:
    """Record token usage, finish reason and interaction id on *span*."""
    if message.usage is not None:
        span.set_attribute(ATTR_TOKENS_INPUT, message.usage.input_tokens)
        span.set_attribute(ATTR_TOKENS_OUTPUT, message.usage.output_tokens)
        span.set_attribute(ATTR_TOKENS_TOTAL, message.usage.total_tokens)
    finish_reason = message.metadata.get("finish_reason")
    if finish_reason is not None:
        span.set_attribute(ATTR_FINISH_REASON, str(finish_reason))
    interaction_id = message.metadata.get("interaction_id")
    if interaction_id:
        span.set_attribute(ATTR_INTERACTION_ID, str(interaction_id))
