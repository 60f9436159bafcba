"""Corebase CLI entry point."""

import click


@click.group()
def cli():
    """Corebase: runtime-defined content types CLI."""
    pass


# Register subcommand groups
from corebase.cli.schema_cmd import schema  # noqa: E402
from corebase.cli.serve_cmd import serve  # noqa: E402

cli.add_command(schema)
cli.add_command(serve)
