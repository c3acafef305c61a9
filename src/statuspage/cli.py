"""Status page CLI entry point."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import replace
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from statuspage.config.models import StatusPageConfig
    from statuspage.monitor.snapshot import SweepSnapshot

app = typer.Typer(
    name="statuspage",
    help="Statuspage - probe services and report whether they are up, slow or down",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

STATE_STYLES = {"up": "green", "slow": "yellow", "down": "red", "unknown": "dim"}


class Mode(str, Enum):
    concurrent = "concurrent"
    serialized = "serialized"


@app.callback()
def main_options(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every probe attempt"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load_or_exit(path: Optional[Path]) -> StatusPageConfig:
    from statuspage.config.loader import load_config

    try:
        return load_config(path=path)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1)


def _render_table(snapshot: SweepSnapshot) -> Table:
    table = Table(title=snapshot.title or "Service Status")
    table.add_column("Service", style="bold")
    table.add_column("Address")
    table.add_column("Status")
    table.add_column("Latency")
    table.add_column("Path")

    for view in snapshot.services:
        record = view.record
        state = record.state.value
        style = STATE_STYLES.get(state, "red")
        address = record.resolved_address or view.definition.url
        if len(view.definition.urls) > 1:
            address += f" ({len(view.definition.urls)} endpoints)"
        latency = f"{record.response_time_ms}ms" if record.response_time_ms is not None else "—"
        if record.resolved_address is None:
            path = escape(record.error) if record.error else "—"
        else:
            path = "proxy" if record.via_fallback else "direct"
        table.add_row(view.definition.name, address, f"[{style}]{state}[/{style}]", latency, path)
    return table


def _print_snapshot(snapshot: SweepSnapshot) -> None:
    counts = snapshot.counts
    console.print(_render_table(snapshot))
    console.print(
        f"[green]{counts['up']} up[/green]  "
        f"[yellow]{counts['slow']} slow[/yellow]  "
        f"[red]{counts['down']} down[/red]"
    )


@app.command()
def status(
    path: Optional[Path] = typer.Option(None, "--path", "-p", help="Path to the configuration file"),
    mode: Optional[Mode] = typer.Option(None, help="Override the configured sweep mode"),
) -> None:
    """Probe every service once and print the result."""
    from statuspage.monitor.monitor import StatusMonitor

    config = _load_or_exit(path)
    monitor = StatusMonitor(config, mode=mode.value if mode else None)
    monitor.sweep_sync()
    snapshot = monitor.snapshot()
    _print_snapshot(snapshot)
    if snapshot.counts["down"]:
        raise typer.Exit(1)


@app.command()
def watch(
    path: Optional[Path] = typer.Option(None, "--path", "-p", help="Path to the configuration file"),
    count: Optional[int] = typer.Option(None, "--count", "-n", min=1, help="Stop after this many sweeps"),
    mode: Mode = typer.Option(Mode.serialized, help="Sweep mode"),
) -> None:
    """Keep probing at the configured interval, printing a table after each sweep."""
    from statuspage.monitor.monitor import StatusMonitor

    config = _load_or_exit(path)
    monitor = StatusMonitor(config, mode=mode.value)
    interval_s = config.settings.check_interval_ms / 1000
    console.print(f"Checking {len(config.services)} services every {interval_s:g}s ({mode.value})")

    async def _run() -> None:
        async with monitor:
            await monitor.scheduler.run_forever(
                max_sweeps=count,
                on_sweep=lambda _report: _print_snapshot(monitor.snapshot()),
            )

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped.[/dim]")


@app.command()
def check(
    names: Optional[list[str]] = typer.Argument(None, help="Services to check (default: all)"),
    path: Optional[Path] = typer.Option(None, "--path", "-p", help="Path to the configuration file"),
    delay: float = typer.Option(1.0, "--delay", min=0, help="Seconds to wait between services"),
) -> None:
    """Probe services one at a time and print each result."""
    from statuspage.monitor.monitor import StatusMonitor

    config = _load_or_exit(path)
    unknown = [name for name in names or [] if config.get_service(name) is None]
    if unknown:
        console.print(f"[red]Unknown service(s): {escape(', '.join(unknown))}[/red]")
        raise typer.Exit(1)
    selected = [config.get_service(name) for name in names] if names else list(config.services)

    monitor = StatusMonitor(config, mode="serialized")

    async def _run() -> None:
        async with monitor:
            for index, service in enumerate(selected):
                if index and delay:
                    await asyncio.sleep(delay)
                console.print(f"[dim]Checking {service.name} ({service.url}, {service.check_method})[/dim]")
                await monitor.executor.probe(service)

    asyncio.run(_run())
    checked = {service.name for service in selected}
    snapshot = monitor.snapshot()
    snapshot = replace(snapshot, services=[v for v in snapshot.services if v.definition.name in checked])
    _print_snapshot(snapshot)
    if snapshot.counts["down"]:
        raise typer.Exit(1)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(3000, help="Bind port"),
    path: Optional[Path] = typer.Option(None, "--path", "-p", help="Path to the configuration file"),
) -> None:
    """Start the status API, probing in the background."""
    import uvicorn

    from statuspage.config.loader import CONFIG_ENV_VAR

    config = _load_or_exit(path)
    if path is not None:
        os.environ[CONFIG_ENV_VAR] = str(path.resolve())
    console.print(f"[bold]{config.title}[/bold] starting on http://{host}:{port}")
    uvicorn.run("statuspage.api.app:create_app", factory=True, host=host, port=port, reload=False)


config_app = typer.Typer(name="config", help="Configuration commands")
app.add_typer(config_app)


@config_app.command("validate")
def config_validate(
    path: Optional[Path] = typer.Option(None, "--path", "-p", help="Path to the configuration file"),
) -> None:
    """Validate configuration file."""
    from urllib.parse import urlparse

    config = _load_or_exit(path)
    console.print("[green]✓[/green] Configuration parses and validates")

    errors: list[str] = []
    warnings: list[str] = []
    for service in config.services:
        for url in service.urls:
            parsed = urlparse(url)
            if not parsed.scheme or not parsed.netloc:
                errors.append(f"Service '{service.name}': invalid URL '{url}'")

    for proxy in config.settings.proxies:
        parsed = urlparse(proxy.url)
        if not parsed.scheme or not parsed.netloc:
            errors.append(f"Proxy '{proxy.url}': invalid URL")

    settings = config.settings
    paths_per_url = {"direct": 1, "intermediated": len(settings.proxies), "mixed": 1 + len(settings.proxies)}
    worst_case_ms = settings.timeout_ms * max(len(s.urls) * paths_per_url[s.check_method] for s in config.services)
    if worst_case_ms >= settings.check_interval_ms:
        warnings.append(
            f"A single probe may take up to {worst_case_ms}ms, longer than the "
            f"{settings.check_interval_ms}ms check interval; late sweeps will skip ticks"
        )

    if errors:
        for err in errors:
            console.print(f"[red]✗ {err}[/red]")
        console.print(f"\n[red bold]{len(errors)} validation error(s) found.[/red bold]")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] {len(config.services)} service(s), all URLs valid")
    for w in warnings:
        console.print(f"[yellow]! {w}[/yellow]")
    console.print("\n[green bold]Configuration is valid.[/green bold]")


@config_app.command("show")
def config_show(
    path: Optional[Path] = typer.Option(None, "--path", "-p", help="Path to the configuration file"),
) -> None:
    """Print resolved configuration."""
    config = _load_or_exit(path)
    settings = config.settings

    console.print(f"[bold]{config.title}[/bold]\n")
    console.print("[bold]Settings:[/bold]")
    console.print(f"  Check interval: {settings.check_interval_ms}ms")
    console.print(f"  Timeout: {settings.timeout_ms}ms")
    console.print(f"  Slow threshold: {settings.slow_threshold_ms}ms")
    console.print(f"  Probe delay: {settings.probe_delay_ms}ms")
    console.print(f"  Mode: {settings.mode}\n")

    console.print("[bold]Proxies:[/bold]")
    for proxy in settings.proxies:
        console.print(f"  {proxy.url} ({proxy.style}{', encoded' if proxy.encode else ''})")

    console.print("\n[bold]Services:[/bold]")
    for service in config.services:
        console.print(f"  {service.name} {escape(f'[{service.check_method}]')}")
        for url in service.urls:
            console.print(f"    {url}")


def main() -> None:
    app()
