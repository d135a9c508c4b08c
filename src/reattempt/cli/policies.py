"""
reattempt info / reattempt schedule - inspect the policies of a policy file.
"""

import itertools
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from reattempt.config.loader import load_config
from reattempt.config.policies import build_policy
from reattempt.core.policy import CountingPolicy, Policy
from reattempt.exceptions import ConfigurationError
from reattempt.utils.logging import get_logger, setup_logging_from_config

logger = get_logger("reattempt.cli")

console = Console()

PREVIEW = 5


def _retries(policy: Policy) -> str:
    if not isinstance(policy, CountingPolicy):
        return "-"
    return "forever" if policy.max_retries is None else str(policy.max_retries)


def _format_delays(delays: list[float], more: bool) -> str:
    text = ", ".join(f"{d:.3f}s" for d in delays)
    return f"{text}, ..." if more else text


def _load(config_path: Path, env: str | None):
    try:
        config = load_config(config_path, env=env)
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None

    if "logging" in config:
        setup_logging_from_config(config, base_dir=config_path.parent)
    logger.debug(f"Loaded {len(config.policies)} policies from {config_path}")
    return config


def info(
    config_path: Path = typer.Argument(..., help="Policy file (YAML)"),
    env: str | None = typer.Option(None, "--env", "-e", help="Environment overlay"),
) -> None:
    """
    List the policies defined in a policy file.
    """
    config = _load(config_path, env)

    if not config.policies:
        console.print(f"[yellow]No policies defined in {config_path}[/yellow]")
        return

    table = Table(title=f"Policies ({len(config.policies)})", show_header=True)
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Retries", style="yellow")
    table.add_column("Delays", style="dim")

    failed = False
    for name, definition in config.policies.items():
        try:
            policy = build_policy(definition, name=name)
        except ConfigurationError as e:
            failed = True
            table.add_row(name, "[red]invalid[/red]", "", f"[red]{escape(str(e))}[/red]")
            continue
        preview = list(itertools.islice(policy.delays(), PREVIEW + 1))
        table.add_row(
            name,
            type(policy).__name__,
            _retries(policy),
            _format_delays(preview[:PREVIEW], len(preview) > PREVIEW),
        )

    console.print(table)
    if failed:
        raise typer.Exit(1)


def schedule(
    config_path: Path = typer.Argument(..., help="Policy file (YAML)"),
    name: str = typer.Argument(..., help="Policy name"),
    limit: int = typer.Option(10, "--limit", "-n", min=1, help="Maximum number of retries to show"),
    env: str | None = typer.Option(None, "--env", "-e", help="Environment overlay"),
) -> None:
    """
    Preview the delays a policy waits between attempts.
    """
    config = _load(config_path, env)

    if name not in config.policies:
        available = ", ".join(config.policies) or "none"
        console.print(f"[red]Error:[/red] Policy '{name}' not found. Available: {available}")
        raise typer.Exit(1)

    try:
        policy = build_policy(config.policies[name], name=name)
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None

    delays = list(itertools.islice(policy.delays(), limit))
    if not delays:
        console.print(f"[yellow]Policy '{name}' ({type(policy).__name__}) has no fixed delay schedule[/yellow]")
        return

    table = Table(title=f"{name} ({type(policy).__name__})", show_header=True)
    table.add_column("Retry", style="cyan", justify="right")
    table.add_column("Delay", style="green", justify="right")
    table.add_column("Elapsed", style="dim", justify="right")

    for index, (delay, elapsed) in enumerate(zip(delays, itertools.accumulate(delays)), start=1):
        table.add_row(str(index), f"{delay:.3f}s", f"{elapsed:.3f}s")

    console.print(table)
