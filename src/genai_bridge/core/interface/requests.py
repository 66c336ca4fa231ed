"""Request builders — assemble complete wire requests for both protocols.

The transpilers produce the message-bearing part of a request; these
builders add generation parameters, tools and tool choice, and drop every
unset field so the server applies its own defaults.
"""

from typing import Any

from genai_bridge.core.interface.config import CallOptions, GenerationSettings, ThinkingConfig
from genai_bridge.core.interface.models import ConversationHistory
from genai_bridge.core.interface.tools import (
    format_interactions_tool_choice,
    format_interactions_tools,
    format_standard_tool_config,
    format_standard_tools,
)
from genai_bridge.core.interface.transpilers.gemini import GeminiTranspiler
from genai_bridge.core.interface.transpilers.interactions import InteractionsTranspiler

_standard = GeminiTranspiler()
_interactions = InteractionsTranspiler()

_UNSPECIFIED_LEVEL = "THINKING_LEVEL_UNSPECIFIED"


def _drop_none(values: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


def should_use_interactions(settings: GenerationSettings, options: CallOptions | None = None) -> bool:
    """Route to the Interactions protocol when enabled, for agents, or to continue an interaction."""
    return settings.interactions_enabled or bool(options and options.previous_interaction_id)


def _standard_thinking_config(config: ThinkingConfig | None) -> dict[str, Any] | None:
    if config is None:
        return None
    values = _drop_none(
        {
            "thinkingLevel": config.thinking_level,
            "includeThoughts": config.include_thoughts or None,
            "thinkingBudget": config.thinking_budget,
        }
    )
    return values or None


def build_generate_content_request(
    settings: GenerationSettings,
    history: ConversationHistory,
    options: CallOptions | None = None,
) -> dict[str, Any]:
    """Build a ``generateContent`` request: ``{model, contents, config, systemInstruction?}``."""
    options = options or CallOptions()
    if not settings.model:
        raise ValueError("The standard protocol requires a model; agents need the Interactions protocol.")

    payload = _standard.to_provider(history)
    config = _drop_none(
        {
            "candidateCount": 1,
            "temperature": settings.temperature,
            "topP": settings.top_p,
            "topK": settings.top_k,
            "maxOutputTokens": settings.max_output_tokens,
            "stopSequences": options.stop or settings.stop_sequences,
            "safetySettings": settings.safety_settings,
            "thinkingConfig": _standard_thinking_config(settings.thinking_config),
            "responseMimeType": options.response_mime_type,
            "responseSchema": options.response_schema,
            "tools": format_standard_tools(options.tools),
            "toolConfig": format_standard_tool_config(options.tool_choice, options.tool_config),
        }
    )

    request: dict[str, Any] = {"model": settings.model, "contents": payload["contents"], "config": config}
    if "systemInstruction" in payload:
        request["systemInstruction"] = payload["systemInstruction"]
    return request


def interactions_generation_config(
    settings: GenerationSettings, options: CallOptions | None = None
) -> dict[str, Any]:
    """Translate settings into an Interactions ``generation_config``.

    ``top_k`` has no Interactions counterpart and is not sent.
    """
    options = options or CallOptions()
    thinking = settings.thinking_config

    level: str | None = None
    if thinking and thinking.thinking_level and thinking.thinking_level != _UNSPECIFIED_LEVEL:
        level = thinking.thinking_level.lower()

    return _drop_none(
        {
            "temperature": settings.temperature,
            "top_p": settings.top_p,
            "max_output_tokens": settings.max_output_tokens,
            "stop_sequences": options.stop or settings.stop_sequences,
            "thinking_level": level,
            "thinking_summaries": "auto" if thinking and thinking.include_thoughts else None,
            "tool_choice": format_interactions_tool_choice(options.tool_choice, options.tool_config),
        }
    )


def build_interactions_request(
    settings: GenerationSettings,
    history: ConversationHistory,
    options: CallOptions | None = None,
    stream: bool = False,
) -> dict[str, Any]:
    """Build an ``interactions.create`` request for a model or an agent."""
    options = options or CallOptions()
    payload = _interactions.to_provider(history)
    background = options.background if options.background is not None else settings.background

    if settings.agent:
        return _drop_none(
            {
                "agent": settings.agent,
                "input": payload["input"],
                "previous_interaction_id": options.previous_interaction_id,
                "background": background,
                "store": settings.store,
                "stream": stream,
            }
        )

    return _drop_none(
        {
            "model": settings.model,
            "input": payload["input"],
            "system_instruction": payload.get("system_instruction"),
            "previous_interaction_id": options.previous_interaction_id,
            "tools": format_interactions_tools(options.tools),
            "generation_config": interactions_generation_config(settings, options) or None,
            "response_mime_type": options.response_mime_type,
            "response_format": options.response_schema,
            "background": background,
            "store": settings.store,
            "stream": stream,
        }
    )
