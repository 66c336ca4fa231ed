"""Smoke test to verify the project scaffolding works."""

from __future__ import annotations


def test_import() -> None:
    import genai_bridge

    assert genai_bridge.__version__ == "0.1.0"


def test_cli_entrypoint() -> None:
    from genai_bridge.cli import main

    assert callable(main)


def test_interface_imports() -> None:
    from genai_bridge.core.interface import (
        CanonicalMessage,
        GeminiTranspiler,
        GenAIChatClient,
        InteractionsTranspiler,
        StreamAccumulator,
        get_transpiler,
    )

    assert isinstance(get_transpiler("standard"), GeminiTranspiler)
    assert isinstance(get_transpiler("interactions"), InteractionsTranspiler)
    assert CanonicalMessage is not None
    assert GenAIChatClient is not None
    assert StreamAccumulator is not None


def test_lazy_import_from_package() -> None:
    import genai_bridge

    assert genai_bridge.GenAIChatClient is not None
    assert genai_bridge.ConversationHistory is not None
