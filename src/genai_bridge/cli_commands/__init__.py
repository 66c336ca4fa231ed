"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from genai_bridge.cli_commands.decode import decode
    from genai_bridge.cli_commands.encode import encode
    from genai_bridge.cli_commands.replay import replay

    cli.add_command(encode)
    cli.add_command(decode)
    cli.add_command(replay)
