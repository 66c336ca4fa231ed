"""genai-bridge — translate canonical chat messages to and from Gemini wire protocols."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from genai_bridge.core.interface.client import GenAIChatClient as GenAIChatClient
    from genai_bridge.core.interface.config import GenerationSettings as GenerationSettings
    from genai_bridge.core.interface.models import CanonicalMessage as CanonicalMessage
    from genai_bridge.core.interface.models import ConversationHistory as ConversationHistory

_LAZY_EXPORTS = {
    "GenAIChatClient": "genai_bridge.core.interface.client",
    "GenerationSettings": "genai_bridge.core.interface.config",
    "CanonicalMessage": "genai_bridge.core.interface.models",
    "ConversationHistory": "genai_bridge.core.interface.models",
}


def __getattr__(name: str) -> object:
    module_path = _LAZY_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'genai_bridge' has no attribute {name!r}")
