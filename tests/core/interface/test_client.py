"""Tests for GenAIChatClient — unit tests with a mocked transport."""

from collections.abc import AsyncIterator
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from opentelemetry import trace

from genai_bridge.core.interface.client import GenAIChatClient
from genai_bridge.core.interface.config import CallOptions, GenerationSettings
from genai_bridge.core.interface.errors import EmptyResponseError
from genai_bridge.core.interface.models import CanonicalMessage, ConversationHistory


async def _aiter(items: list[dict[str, Any]]) -> AsyncIterator[dict[str, Any]]:
    for item in items:
        yield item


def _make_transport(
    response: dict[str, Any] | None = None,
    stream: list[dict[str, Any]] | None = None,
) -> MagicMock:
    transport = MagicMock()
    transport.generate_content = AsyncMock(return_value=response)
    transport.create_interaction = AsyncMock(return_value=response)
    transport.get_interaction = AsyncMock(return_value=response)
    transport.generate_content_stream = MagicMock(return_value=_aiter(stream or []))
    transport.stream_interaction = MagicMock(return_value=_aiter(stream or []))
    return transport


def _history() -> ConversationHistory:
    return ConversationHistory(messages=[CanonicalMessage.system("Be brief."), CanonicalMessage.human("Hello")])


_STANDARD_RESPONSE = {
    "candidates": [{"content": {"role": "model", "parts": [{"text": "Hi!"}]}, "finishReason": "STOP"}],
    "usageMetadata": {"promptTokenCount": 3, "candidatesTokenCount": 2, "totalTokenCount": 5},
}

_INTERACTION = {
    "id": "int-9",
    "status": "completed",
    "outputs": [{"type": "text", "text": "Hi!"}],
}


class TestGenerate:
    async def test_standard_protocol(self) -> None:
        transport = _make_transport(response=_STANDARD_RESPONSE)
        client = GenAIChatClient(GenerationSettings(model="gemini-2.5-flash"), transport)

        result = await client.generate(_history())

        assert result.role == "ai"
        assert result.content == "Hi!"
        assert result.usage is not None
        assert result.usage.total_tokens == 5
        request = transport.generate_content.call_args[0][0]
        assert request["model"] == "gemini-2.5-flash"
        assert request["systemInstruction"] == {"parts": [{"text": "Be brief."}]}
        transport.create_interaction.assert_not_called()

    async def test_interactions_protocol(self) -> None:
        transport = _make_transport(response=_INTERACTION)
        client = GenAIChatClient(GenerationSettings(model="m", use_interactions=True), transport)

        result = await client.generate(_history())

        assert result.text == "Hi!"
        assert result.metadata["interaction_id"] == "int-9"
        request = transport.create_interaction.call_args[0][0]
        assert request["system_instruction"] == "Be brief."
        assert request["stream"] is False

    async def test_previous_interaction_routes_to_interactions(self) -> None:
        transport = _make_transport(response=_INTERACTION)
        client = GenAIChatClient(GenerationSettings(model="m"), transport)

        await client.generate(_history(), CallOptions(previous_interaction_id="int-8"))

        request = transport.create_interaction.call_args[0][0]
        assert request["previous_interaction_id"] == "int-8"
        transport.generate_content.assert_not_called()

    async def test_tools_forwarded(self) -> None:
        transport = _make_transport(response=_STANDARD_RESPONSE)
        client = GenAIChatClient(GenerationSettings(model="m"), transport)

        await client.generate(_history(), CallOptions(tools=[{"name": "lookup"}]))

        request = transport.generate_content.call_args[0][0]
        assert request["config"]["tools"] == [{"functionDeclarations": [{"name": "lookup"}]}]

    async def test_empty_response(self) -> None:
        transport = _make_transport(response={"candidates": []})
        client = GenAIChatClient(GenerationSettings(model="m"), transport)

        with pytest.raises(EmptyResponseError):
            await client.generate(_history())

    async def test_transport_errors_propagate(self) -> None:
        transport = _make_transport()
        transport.generate_content.side_effect = ConnectionError("down")
        client = GenAIChatClient(GenerationSettings(model="m"), transport)

        with pytest.raises(ConnectionError, match="down"):
            await client.generate(_history())
        assert transport.generate_content.await_count == 1

    async def test_streaming_setting_drains_stream(self) -> None:
        stream = [
            {"candidates": [{"content": {"role": "model", "parts": [{"text": "Hi"}]}}]},
            {"candidates": [{"content": {"role": "model", "parts": [{"text": "!"}]}, "finishReason": "STOP"}]},
        ]
        transport = _make_transport(stream=stream)
        client = GenAIChatClient(GenerationSettings(model="m", streaming=True), transport)

        result = await client.generate(_history())

        assert result.content == "Hi!"
        assert result.metadata["finish_reason"] == "STOP"
        transport.generate_content.assert_not_called()

    async def test_streaming_setting_empty_stream(self) -> None:
        transport = _make_transport(stream=[])
        client = GenAIChatClient(GenerationSettings(model="m", streaming=True), transport)

        with pytest.raises(EmptyResponseError):
            await client.generate(_history())


class TestStream:
    async def test_standard_snapshots(self) -> None:
        stream = [
            {"candidates": [{"content": {"role": "model", "parts": [{"text": "He"}]}}]},
            {"candidates": [{"content": {"role": "model", "parts": [{"text": "llo"}]}}]},
            {"usageMetadata": {"totalTokenCount": 7}},
        ]
        transport = _make_transport(stream=stream)
        client = GenAIChatClient(GenerationSettings(model="m"), transport)

        snapshots = [snap async for snap in client.stream(_history())]

        assert [s.text for s in snapshots] == ["He", "Hello", "Hello"]
        assert snapshots[-1].usage is not None
        assert snapshots[-1].usage.total_tokens == 7

    async def test_interactions_events(self) -> None:
        events = [
            {"event_type": "interaction.start", "interaction": {"id": "int-3"}},
            {"event_type": "content.delta", "index": 0, "delta": {"type": "text", "text": "Yo"}},
            {"event_type": "interaction.complete", "interaction": {"id": "int-3", "status": "completed"}},
        ]
        transport = _make_transport(stream=events)
        client = GenAIChatClient(GenerationSettings(agent="deep-research"), transport)

        snapshots = [snap async for snap in client.stream(_history())]

        final = snapshots[-1].to_message()
        assert final.text == "Yo"
        assert final.metadata["interaction_id"] == "int-3"
        assert final.metadata["finish_reason"] == "completed"
        request = transport.stream_interaction.call_args[0][0]
        assert request["agent"] == "deep-research"
        assert request["stream"] is True

    async def test_early_close_closes_transport_stream(self) -> None:
        closed: list[str] = []

        async def events() -> AsyncIterator[dict[str, Any]]:
            try:
                yield {"candidates": [{"content": {"role": "model", "parts": [{"text": "He"}]}}]}
                yield {"candidates": [{"content": {"role": "model", "parts": [{"text": "llo"}]}}]}
            finally:
                closed.append("closed")

        transport = _make_transport()
        transport.generate_content_stream = MagicMock(return_value=events())
        client = GenAIChatClient(GenerationSettings(model="m"), transport)

        snapshots = client.stream(_history())
        first = await snapshots.__anext__()
        await snapshots.aclose()

        assert first.text == "He"
        assert closed == ["closed"]

    async def test_span_not_current_between_snapshots(self) -> None:
        span = MagicMock()
        tracer = MagicMock()
        tracer.start_span.return_value = span
        transport = _make_transport(stream=[{"candidates": [{"content": {"role": "model", "parts": [{"text": "Hi"}]}}]}])
        client = GenAIChatClient(GenerationSettings(model="m"), transport)

        with patch("genai_bridge.core.interface.client._tracer", tracer):
            snapshots = client.stream(_history())
            await snapshots.__anext__()
            assert trace.get_current_span() is not span
            await snapshots.aclose()

        tracer.start_span.assert_called_once_with("genai.stream")
        span.end.assert_called_once()

    async def test_stream_error_recorded_on_span(self) -> None:
        async def events() -> AsyncIterator[dict[str, Any]]:
            raise ConnectionError("reset")
            yield {}

        span = MagicMock()
        tracer = MagicMock()
        tracer.start_span.return_value = span
        transport = _make_transport()
        transport.generate_content_stream = MagicMock(return_value=events())
        client = GenAIChatClient(GenerationSettings(model="m"), transport)

        with patch("genai_bridge.core.interface.client._tracer", tracer):
            with pytest.raises(ConnectionError, match="reset"):
                [snap async for snap in client.stream(_history())]

        span.record_exception.assert_called_once()
        span.end.assert_called_once()


class TestGetInteraction:
    async def test_fetch_and_decode(self) -> None:
        transport = _make_transport(response=_INTERACTION)
        client = GenAIChatClient(GenerationSettings(model="m"), transport)

        result = await client.get_interaction("int-9")

        transport.get_interaction.assert_awaited_once_with("int-9")
        assert result.text == "Hi!"

    async def test_pending_background_run(self) -> None:
        transport = _make_transport(response={"id": "int-9", "status": "in_progress"})
        client = GenAIChatClient(GenerationSettings(agent="deep-research"), transport)

        result = await client.get_interaction("int-9")

        assert result.metadata["finish_reason"] == "in_progress"
        assert result.content == ""
