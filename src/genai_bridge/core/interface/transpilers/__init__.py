"""Protocol-specific transpiler implementations."""

from genai_bridge.core.interface.transpilers.gemini import GeminiTranspiler
from genai_bridge.core.interface.transpilers.interactions import InteractionsTranspiler

__all__ = ["GeminiTranspiler", "InteractionsTranspiler"]
