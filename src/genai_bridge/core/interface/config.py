"""Generation settings and per-call options for both protocols."""

from typing import Any

from pydantic import BaseModel, Field, model_validator


class ThinkingConfig(BaseModel):
    """Reasoning controls.

    ``thinking_level`` uses the standard-protocol spelling (e.g. ``HIGH``);
    the Interactions request lower-cases it.
    """

    thinking_level: str | None = None
    include_thoughts: bool = False
    thinking_budget: int | None = None


class GenerationSettings(BaseModel):
    """Configuration for a model (or agent) invocation.

    Exactly one of ``model`` or ``agent`` is set. Agents are only reachable
    through the Interactions protocol.
    """

    model: str | None = None
    agent: str | None = None
    temperature: float | None = None
    top_p: float | None = None
    top_k: int | None = None
    max_output_tokens: int | None = None
    stop_sequences: list[str] | None = None
    safety_settings: list[dict[str, Any]] | None = None
    thinking_config: ThinkingConfig | None = None
    use_interactions: bool | None = None
    streaming: bool = False
    background: bool | None = None
    store: bool | None = None

    @model_validator(mode="after")
    def _validate_target(self) -> "GenerationSettings":
        if self.model and self.agent:
            raise ValueError('Both "model" and "agent" cannot be specified. Please provide only one.')
        if not self.model and not self.agent:
            raise ValueError('Either "model" or "agent" must be specified.')
        if self.store is False and self.background is True:
            raise ValueError('"store" cannot be false when "background" is true.')
        if self.agent and self.use_interactions is False:
            raise ValueError('When "agent" is specified, "use_interactions" must be true.')
        return self

    @property
    def interactions_enabled(self) -> bool:
        """Whether calls default to the Interactions protocol."""
        return bool(self.use_interactions or self.agent)


class CallOptions(BaseModel):
    """Per-call options layered over :class:`GenerationSettings`."""

    tools: list[Any] = Field(default_factory=lambda: list[Any]())
    tool_choice: str | dict[str, Any] | None = None
    tool_config: dict[str, Any] | None = None
    previous_interaction_id: str | None = None
    background: bool | None = None
    response_mime_type: str | None = None
    response_schema: dict[str, Any] | None = None
    stop: list[str] | None = None
