"""``genai-bridge decode`` — decode a saved response into a canonical message."""

from __future__ import annotations

import sys
from pathlib import Path

import click
import yaml
from rich.markup import escape

from genai_bridge.cli_commands._output import (
    console,
    json_option,
    load_document,
    print_message,
    protocol_option,
)
from genai_bridge.core.interface.errors import TranslationError
from genai_bridge.core.interface.transpiler import get_transpiler


@click.command()
@click.argument("response_file", type=click.Path(exists=True))
@protocol_option
@json_option
def decode(response_file: str, protocol: str, as_json: bool) -> None:
    """Decode RESPONSE_FILE, a complete (non-streamed) response."""
    try:
        response = load_document(Path(response_file))
        if not isinstance(response, dict):
            raise ValueError("a response must be a mapping")
        message = get_transpiler(protocol).from_provider(response)
    except (OSError, yaml.YAMLError, TranslationError, ValueError) as exc:
        console.print(f"[red]Decode error:[/red] {escape(str(exc))}")
        sys.exit(1)

    print_message(message, as_json=as_json)
