# codesync/cli/cli.py
"""
Main codesync CLI.

Commands:
- sync: bring a codebase's index up to date
- status: show the last or active run
- clear: drop a codebase's collection and snapshot
- search: query a synced codebase
- config show: display the resolved configuration
"""

from __future__ import annotations

import typer

from codesync import __version__
from codesync.cli.commands import clear, config, search, status, sync

app = typer.Typer(
    help="codesync - incremental code indexing into a vector store",
    no_args_is_help=True,
)

config_app = typer.Typer(help="Configuration commands", no_args_is_help=True)
app.add_typer(config_app, name="config")

app.command("sync")(sync.command)
app.command("status")(status.command)
app.command("clear")(clear.command)
app.command("search")(search.command)
config_app.command("show")(config.show)


@app.command("version")
def version() -> None:
    """Print the codesync version."""
    typer.echo(f"codesync {__version__}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
