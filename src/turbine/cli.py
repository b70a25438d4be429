"""Command-line interface for turbine reliability analysis."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .analysis import faults, summary
from .collectors.csv_export import CsvImportError, load_files
from .config import ConfigError, load_settings
from .reports.weekly_kpi import generate_weekly_kpi_report
from .session import DashboardState

console = Console()


def parse_cli_datetime(value: str | None) -> datetime | None:
    """Parse an ISO date/datetime option. Naive values are taken as UTC."""
    if not value:
        return None
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def load_state(ctx, files, urls, start, end) -> DashboardState | None:
    """Load exports into a fresh session and apply the requested window."""
    state = DashboardState(settings=ctx.obj["settings"])
    try:
        state.load(load_files([Path(f) for f in files], list(urls)))
    except CsvImportError as e:
        console.print(f"[red]Error: {e}[/red]")
        return None

    try:
        range_start = parse_cli_datetime(start) or state.date_range.start
        range_end = parse_cli_datetime(end) or state.date_range.end
        if range_start and range_end:
            state.set_date_range(range_start, range_end)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        return None

    return state


def data_options(func):
    """Options shared by every command that reads exports."""
    func = click.argument("files", nargs=-1, type=click.Path(exists=True, dir_okay=False))(func)
    func = click.option("--url", "urls", multiple=True, help="Download an export from this URL")(func)
    func = click.option("--start", help="Window start (ISO date/time, UTC)")(func)
    func = click.option("--end", help="Window end (ISO date/time, UTC)")(func)
    return func


@click.group()
@click.option("--config", "config_path", type=click.Path(exists=True), help="Path to turbine.yaml")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, config_path, verbose):
    """Wind turbine availability and reliability analysis."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )

    ctx.ensure_object(dict)
    try:
        ctx.obj["settings"] = load_settings(Path(config_path) if config_path else None)
    except ConfigError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        ctx.exit(1)


@cli.command()
@data_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def metrics(ctx, files, urls, start, end, as_json):
    """Calculate availability and reliability KPIs."""
    state = load_state(ctx, files, urls, start, end)
    if state is None:
        return

    data = summary.get_metrics_summary(state)

    if as_json:
        click.echo(json.dumps(data, indent=2))
        return

    table = Table(title=f"Turbine KPIs ({data['period']['duration']})")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    values = data["metrics"]
    table.add_row("Operational Availability (Ao)", f"{values['operational_availability']:.2f}%")
    table.add_row("Technical Availability (At)", f"{values['technical_availability']:.2f}%")
    table.add_row("MTBF", f"{values['mtbf']:.2f} h")
    table.add_row("MTTR", f"{values['mttr']:.2f} h")
    table.add_row("Reliability (R)", f"{values['reliability_r']:.2f}%")

    console.print(table)
    console.print(
        f"[dim]{data['data']['power_samples_in_range']} power samples, "
        f"{data['data']['events_in_range']} log entries in range[/dim]"
    )


@cli.command()
@data_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def weekly(ctx, files, urls, start, end, as_json):
    """Show Ao, At and R for each calendar week."""
    state = load_state(ctx, files, urls, start, end)
    if state is None:
        return

    result = state.weekly_metrics()

    if as_json:
        click.echo(json.dumps(result.as_dict(), indent=2))
        return

    if not result.labels:
        console.print("[yellow]No weeks with log data in range[/yellow]")
        return

    table = Table(title="Weekly KPIs")
    table.add_column("Week", style="cyan")
    table.add_column("Ao", justify="right")
    table.add_column("At", justify="right")
    table.add_column("R", justify="right")

    for label, ao, at, r in zip(result.labels, result.ao_data, result.at_data, result.reliability_data):
        table.add_row(label, f"{ao:.2f}%", f"{at:.2f}%", f"{r:.2f}%")

    console.print(table)


@cli.command("faults")
@data_options
@click.option(
    "--mode",
    type=click.Choice(["count", "downtime"]),
    default="count",
    help="Count fault events or sum their downtime hours",
)
@click.pass_context
def faults_cmd(ctx, files, urls, start, end, mode):
    """Show the fault distribution by category."""
    state = load_state(ctx, files, urls, start, end)
    if state is None:
        return

    if mode == "count":
        distribution = faults.fault_category_counts(state.events, state.date_range)
        unit = "Events"
    else:
        distribution = faults.fault_category_downtimes(state.events, state.date_range)
        unit = "Hours"

    if not distribution:
        console.print("[yellow]No faults in range[/yellow]")
        return

    total = sum(distribution.values())
    table = Table(title=f"Fault Distribution ({mode})")
    table.add_column("Category", style="cyan")
    table.add_column(unit, justify="right")
    table.add_column("Share", justify="right")

    for category, value in distribution.items():
        table.add_row(category, str(value), f"{value / total * 100:.1f}%")

    console.print(table)


@cli.command()
@data_options
@click.option("--filter", "filters", multiple=True, help="Field filter as key=value (repeatable)")
@click.option("--limit", default=50, help="Maximum rows to show (default: 50)")
@click.pass_context
def logs(ctx, files, urls, start, end, filters, limit):
    """List log entries in range that match the filters."""
    state = load_state(ctx, files, urls, start, end)
    if state is None:
        return

    selected: dict[str, list[str]] = {}
    for item in filters:
        key, sep, value = item.partition("=")
        if not sep:
            console.print(f"[red]Invalid filter '{item}', expected key=value[/red]")
            return
        selected.setdefault(key.strip(), []).append(value.strip())

    state.set_temp_log_filters(selected)
    state.apply_log_filters()
    try:
        entries = state.filtered_events()
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        return

    if not entries:
        console.print("[yellow]No logs to display for the selected date range and filters[/yellow]")
        return

    table = Table(title=f"Critical Logs ({len(entries)})")
    table.add_column("Timestamp", style="cyan")
    table.add_column("Status")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Event Type", style="dim")

    for event in entries[:limit]:
        status = "[red]ON[/red]" if event.status == "ON" else event.status
        table.add_row(
            event.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            status,
            event.name,
            event.category,
            event.event_type,
        )

    console.print(table)
    if len(entries) > limit:
        console.print(f"[dim]Showing {limit} of {len(entries)} entries[/dim]")


@cli.command()
@data_options
@click.option("--output", "-o", type=click.Path(), default="weekly_kpi.html", help="Output HTML file")
@click.pass_context
def report(ctx, files, urls, start, end, output):
    """Generate an HTML weekly KPI trend report."""
    state = load_state(ctx, files, urls, start, end)
    if state is None:
        return

    period = ""
    if state.date_range.is_complete:
        period = (
            f"{state.date_range.start:%Y-%m-%d} - {state.date_range.end:%Y-%m-%d} "
            f"({summary.format_duration(state.date_range.start, state.date_range.end)})"
        )

    html = generate_weekly_kpi_report(state.weekly_metrics(), state.metrics(), period=period)
    Path(output).write_text(html)
    console.print(f"[green]Report written to {output}[/green]")


@cli.command("config")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def config_cmd(ctx, as_json):
    """Show the metric thresholds in effect."""
    settings = ctx.obj["settings"].as_dict()

    if as_json:
        click.echo(json.dumps(settings, indent=2))
        return

    table = Table(title="Metric Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", justify="right")
    for key, value in settings.items():
        table.add_row(key, ", ".join(value) if isinstance(value, list) else str(value))
    console.print(table)


if __name__ == "__main__":
    cli()
