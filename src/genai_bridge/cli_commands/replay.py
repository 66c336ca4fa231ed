"""``genai-bridge replay`` — fold a recorded stream into its final message."""

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
from genai_bridge.core.interface.errors import EmptyResponseError, TranslationError
from genai_bridge.core.interface.streaming import StreamAccumulator
from genai_bridge.core.interface.transpiler import get_transpiler


@click.command()
@click.argument("events_file", type=click.Path(exists=True))
@protocol_option
@click.option("--verbose", "-v", is_flag=True, help="Show the running text after every delta.")
@json_option
def replay(events_file: str, protocol: str, verbose: bool, as_json: bool) -> None:
    """Replay EVENTS_FILE, a recorded list of stream chunks or SSE events."""
    transpiler = get_transpiler(protocol)
    accumulator = StreamAccumulator()
    try:
        events = load_document(Path(events_file))
        if isinstance(events, dict):
            events = events.get("events")
        if not isinstance(events, list):
            raise ValueError("expected a list of events")

        for snapshot in accumulator.consume(events, convert=transpiler.chunk_from_provider):
            if verbose and not as_json:
                console.print(f"  [dim]#{accumulator.count}[/dim] {escape(snapshot.text)}")

        if accumulator.count == 0:
            raise EmptyResponseError("stream ended without any chunks")
    except (OSError, yaml.YAMLError, TranslationError, ValueError) as exc:
        console.print(f"[red]Replay error:[/red] {escape(str(exc))}")
        sys.exit(1)

    if not as_json:
        console.print(f"[green]Folded {accumulator.count} delta(s).[/green]")
    print_message(accumulator.message(), as_json=as_json)
