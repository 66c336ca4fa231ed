"""genai-bridge CLI entrypoint."""

from __future__ import annotations

import click

from genai_bridge import __version__


@click.group()
@click.version_option(version=__version__, prog_name="genai-bridge")
def main() -> None:
    """genai-bridge — inspect CMS <-> Gemini wire translations."""


# Register subcommands
from genai_bridge.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
