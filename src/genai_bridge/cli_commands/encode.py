"""``genai-bridge encode`` — encode a conversation file to a wire payload."""

from __future__ import annotations

import sys
from pathlib import Path

import click
import yaml
from pydantic import ValidationError
from rich.markup import escape

from genai_bridge.cli_commands._output import (
    console,
    json_option,
    load_document,
    print_payload,
    protocol_option,
)
from genai_bridge.core.interface.config import GenerationSettings
from genai_bridge.core.interface.errors import TranslationError
from genai_bridge.core.interface.models import ConversationHistory
from genai_bridge.core.interface.requests import build_generate_content_request, build_interactions_request
from genai_bridge.core.interface.transpiler import get_transpiler


@click.command()
@click.argument("conversation", type=click.Path(exists=True))
@protocol_option
@click.option("--model", "-m", default=None, help="Build a complete request for this model.")
@json_option
def encode(conversation: str, protocol: str, model: str | None, as_json: bool) -> None:
    """Encode the messages in CONVERSATION (JSON or YAML) for a wire protocol.

    The file holds a list of messages or a mapping with a ``messages`` key.
    """
    try:
        data = load_document(Path(conversation))
        if isinstance(data, list):
            data = {"messages": data}
        history = ConversationHistory.model_validate(data)

        if model is None:
            payload = get_transpiler(protocol).to_provider(history)
        elif protocol == "interactions":
            payload = build_interactions_request(GenerationSettings(model=model), history)
        else:
            payload = build_generate_content_request(GenerationSettings(model=model), history)
    except (OSError, yaml.YAMLError, ValidationError, TranslationError, ValueError) as exc:
        console.print(f"[red]Encode error:[/red] {escape(str(exc))}")
        sys.exit(1)

    if not as_json:
        console.print(f"[green]Encoded {len(history)} message(s) for the {protocol} protocol.[/green]")
    print_payload(payload)
