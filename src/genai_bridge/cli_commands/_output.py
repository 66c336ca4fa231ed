"""Shared CLI input loading and output formatters."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from genai_bridge.core.interface.models import CanonicalMessage, ContentBlock  # noqa: TC001

console = Console()

protocol_option = click.option(
    "--protocol",
    "-p",
    type=click.Choice(["standard", "interactions"]),
    default="standard",
    show_default=True,
    help="Wire protocol of the file.",
)
json_option = click.option("--json", "as_json", is_flag=True, help="Output as JSON.")


def load_document(path: Path) -> Any:
    """Read a JSON or YAML document (chosen by file suffix)."""
    raw = path.read_text(encoding="utf-8")
    if path.suffix == ".json":
        return json.loads(raw)
    return yaml.safe_load(raw)


def print_payload(payload: Any) -> None:
    """Pretty-print a wire payload as JSON."""
    console.print_json(json.dumps(payload, default=str))


def print_message(message: CanonicalMessage, *, as_json: bool = False) -> None:
    """Pretty-print a decoded canonical message."""
    if as_json:
        console.print_json(message.model_dump_json(exclude_none=True))
        return

    console.print(f"\n[bold]{message.role.upper()} message[/bold]")
    if message.text:
        console.print(f"  Text: {escape(_truncate(message.text))}")
    for thought in message.reasoning:
        console.print(f"  Reasoning: {escape(_truncate(thought))}")

    blocks = [b for b in message.blocks if b.type not in ("text", "reasoning")]
    if blocks:
        print_blocks_table(blocks)

    if message.tool_calls:
        table = Table(title="Tool Calls")
        table.add_column("ID", style="cyan")
        table.add_column("Name")
        table.add_column("Arguments")
        for call in message.tool_calls:
            table.add_row(call.id, call.name, _truncate(json.dumps(call.arguments)))
        console.print(table)

    _print_metadata(message)


def print_blocks_table(blocks: list[ContentBlock]) -> None:
    """Pretty-print non-text content blocks as a table."""
    table = Table(title="Content Blocks")
    table.add_column("Type", style="cyan")
    table.add_column("Detail")

    for block in blocks:
        if block.type == "image":
            detail = block.url or f"<inline {block.mime_type}>"
        elif block.type == "function_call":
            detail = block.name
        elif block.type == "function_result":
            detail = f"{block.name or block.call_id}{' (error)' if block.is_error else ''}"
        else:
            detail = ""
        table.add_row(block.type, _truncate(detail))

    console.print(table)


def _print_metadata(message: CanonicalMessage) -> None:
    shown = {k: v for k, v in message.metadata.items() if k != "thoughts" and v is not None}
    if shown:
        console.print("\n[bold]Metadata:[/bold]")
        for key, val in shown.items():
            console.print(f"  {key}: {escape(_truncate(str(val)))}")
    if message.usage is not None:
        usage = message.usage
        console.print(
            f"  Tokens: {usage.input_tokens} in / {usage.output_tokens} out / {usage.total_tokens} total"
        )


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
