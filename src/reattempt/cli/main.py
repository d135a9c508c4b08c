"""
Main CLI entry point.
"""

import typer

from reattempt import __version__
from reattempt.cli import policies


def version_callback(value: bool):
    """Callback to display version and exit."""
    if value:
        typer.echo(f"reattempt version {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="reattempt",
    help="Reattempt - inspect and preview retry policy files",
    add_completion=False,
)

app.command(name="info")(policies.info)
app.command(name="schedule")(policies.schedule)


@app.callback(invoke_without_command=True)
def entrypoint(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    """
    Reattempt - inspect and preview retry policy files.

    Run 'reattempt <command> --help' for help on a specific command.
    """
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def main():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
