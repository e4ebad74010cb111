"""LandCalc CLI.

Commands:
- init: Initialize database schema
- seed: Load default assemblies and baseline material prices
- create-project: Register a project
- estimate: Price an assembly for a project and store the estimate
- finalize: Finalize an estimate and capture its budget baseline
- price: Resolve a material's unit price
- tax: Compute sales tax for a subtotal
- delivery: Quote a delivery between two coordinates
- budget-report: Budget vs. actual per category
- export: Write the budget variance or expense ledger as CSV
- web serve: Run the HTTP API
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from uuid import UUID

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy import select

from landcalc.budget.expenses import ExpenseLedger
from landcalc.budget.report import BudgetReportAggregator
from landcalc.budget.snapshot import BudgetSnapshotBuilder
from landcalc.catalog.seed import seed_catalog
from landcalc.config import get_config
from landcalc.core.logging import configure_logging
from landcalc.db.connection import close_db, get_session, init_db
from landcalc.db.models import AssemblyModel, ProjectModel
from landcalc.db.price_queries import PriceRepository
from landcalc.estimating.builder import EstimateBuilder
from landcalc.exceptions import LandCalcError
from landcalc.logistics.delivery import DeliveryEstimator
from landcalc.logistics.geocode import Geocoder
from landcalc.models import Coordinates, EstimateRequest, Location
from landcalc.pricing.resolver import PriceResolver
from landcalc.pricing.tax import TaxResolver
from landcalc.reporting.csv_export import budget_csv, expenses_csv

app = typer.Typer(
    name="landcalc",
    help="LandCalc - estimating and pricing for landscaping contractors",
    no_args_is_help=True,
)
web_cli = typer.Typer(help="HTTP API")
app.add_typer(web_cli, name="web")

console = Console()


@app.callback()
def _setup(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    configure_logging("DEBUG" if verbose else None)


def _run(coro):
    """Run a coroutine, report LandCalc errors, always dispose the engine."""

    async def _wrapped():
        try:
            return await coro
        finally:
            await close_db()

    try:
        return asyncio.run(_wrapped())
    except LandCalcError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1) from e


def _parse_inputs(pairs: list[str]) -> dict[str, float]:
    inputs: dict[str, float] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected key=value, got {pair!r}")
        try:
            inputs[key.strip()] = float(value)
        except ValueError as e:
            raise typer.BadParameter(f"Input {key!r} must be a number") from e
    return inputs


@app.command()
def init(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize database schema."""
    config = get_config()
    console.print(f"[bold]Initializing database:[/bold] {config.db.url}")
    if drop:
        console.print("[yellow]Dropping existing tables...[/yellow]")

    _run(init_db(drop=drop))
    console.print("[bold green]✓[/bold green] Database initialized")


@app.command()
def seed():
    """Load default assemblies and baseline material prices."""

    async def _seed():
        async with get_session() as session:
            return await seed_catalog(session)

    created = _run(_seed())
    console.print(
        f"[bold green]✓[/bold green] {created['assemblies']} assemblies, "
        f"{created['materials']} materials added"
    )


@app.command(name="create-project")
def create_project(
    name: str = typer.Argument(..., help="Project name"),
    slug: str | None = typer.Option(None, "--slug"),
    city: str | None = typer.Option(None, "--city"),
    state: str | None = typer.Option(None, "--state"),
    zip: str | None = typer.Option(None, "--zip"),
):
    """Register a project."""

    async def _create():
        async with get_session() as session:
            project = ProjectModel(name=name, slug=slug, city=city, state=state, zip=zip)
            session.add(project)
            await session.flush()
            return project.id

    project_id = _run(_create())
    console.print(f"[bold green]✓[/bold green] Project {project_id}")


@app.command()
def estimate(
    project_id: UUID = typer.Argument(..., help="Project ID"),
    assembly: str = typer.Option(..., "--assembly", "-a", help="Assembly slug"),
    inputs: list[str] = typer.Option([], "--input", "-i", help="Input as key=value (repeatable)"),
    zip: str | None = typer.Option(None, "--zip"),
    state: str | None = typer.Option(None, "--state"),
    city: str | None = typer.Option(None, "--city"),
    address: str | None = typer.Option(None, "--address", help="Free-text address to geocode"),
):
    """Price an assembly for a project and store the estimate."""
    values = _parse_inputs(inputs)

    async def _estimate():
        async with get_session() as session:
            result = await session.execute(select(AssemblyModel.id).where(AssemblyModel.slug == assembly))
            assembly_id = result.scalar_one_or_none()
            if assembly_id is None:
                raise typer.BadParameter(f"Unknown assembly: {assembly}")

            location = None
            if any((zip, state, city, address)):
                location = Location(zip=zip, state=state, city=city, address=address)

            config = get_config()
            builder = EstimateBuilder(
                session,
                price_resolver=PriceResolver(PriceRepository(session), config=config.pricing),
                tax=TaxResolver(config.tax),
                geocoder=Geocoder(config.geocoder) if config.geocoder.enabled else None,
            )
            return await builder.build(
                EstimateRequest(
                    project_id=project_id,
                    location=location,
                    lines=[{"assembly_id": assembly_id, "inputs": values}],
                )
            )

    result = _run(_estimate())

    for line in result.lines:
        table = Table(title=line.assembly_name)
        table.add_column("Item")
        table.add_column("Qty", justify="right")
        table.add_column("Unit")
        table.add_column("Unit cost", justify="right")
        table.add_column("Extended", justify="right")
        table.add_column("Source", style="dim")
        for item in line.items:
            table.add_row(
                item.name,
                f"{item.qty:,.2f}",
                item.unit,
                f"${item.unit_cost:,.2f}",
                f"${item.extended:,.2f}",
                item.source,
            )
        console.print(table)

    console.print(f"  Subtotal: ${result.subtotal:,.2f}")
    console.print(f"  Tax ({result.tax_rate:.4%}): ${result.tax:,.2f}")
    console.print(f"  [bold]Total: ${result.total:,.2f}[/bold]")
    console.print(f"\n[green]✓[/green] Estimate {result.id}")


@app.command()
def finalize(estimate_id: UUID = typer.Argument(..., help="Estimate ID")):
    """Finalize an estimate and capture its budget baseline."""

    async def _finalize():
        async with get_session() as session:
            return await BudgetSnapshotBuilder(session).finalize_estimate(estimate_id)

    snapshot = _run(_finalize())
    console.print(f"[bold green]✓[/bold green] Baseline {snapshot.id}: ${snapshot.total:,.2f}")


@app.command()
def price(
    material: str = typer.Argument(..., help="Material slug"),
    zip: str | None = typer.Option(None, "--zip"),
    uom: str | None = typer.Option(None, "--uom"),
    qty: float | None = typer.Option(None, "--qty"),
):
    """Resolve a material's unit price."""

    async def _price():
        async with get_session() as session:
            resolver = PriceResolver(PriceRepository(session), config=get_config().pricing)
            return await resolver.require_price(material, uom=uom, qty=qty, zip=zip)

    result = _run(_price())
    console.print(
        f"[bold]{material}[/bold]: ${result.unit_cost:,.4f} {result.currency} "
        f"({result.source} / {result.provider}, fetched {result.fetched_at:%Y-%m-%d %H:%M})"
    )


@app.command()
def tax(
    subtotal: float = typer.Argument(..., help="Pre-tax subtotal"),
    zip: str | None = typer.Option(None, "--zip"),
    state: str | None = typer.Option(None, "--state"),
):
    """Compute sales tax for a subtotal."""
    result = _run(TaxResolver(get_config().tax).compute_tax(subtotal, zip=zip, state=state))
    console.print(f"Rate {result.rate:.4%}  Tax ${result.tax:,.2f}")


@app.command()
def delivery(
    origin_lat: float = typer.Argument(...),
    origin_lng: float = typer.Argument(...),
    dest_lat: float = typer.Argument(...),
    dest_lng: float = typer.Argument(...),
    speed: float | None = typer.Option(None, "--speed", help="Average speed (mph)"),
):
    """Quote a delivery between two coordinates."""
    quote = DeliveryEstimator(get_config().delivery).estimate(
        Coordinates(lat=origin_lat, lng=origin_lng),
        Coordinates(lat=dest_lat, lng=dest_lng),
        avg_speed_mph=speed,
    )

    table = Table(title="Delivery quote")
    table.add_column("Field")
    table.add_column("Value", justify="right")
    for field_name, value in quote.model_dump().items():
        table.add_row(field_name, f"{value:,.2f}")
    console.print(table)


@app.command(name="budget-report")
def budget_report(project_id: UUID = typer.Argument(..., help="Project ID")):
    """Budget vs. actual per category."""

    async def _report():
        async with get_session() as session:
            return await BudgetReportAggregator(session).get_report(project_id)

    report = _run(_report())
    if not report.has_baseline:
        console.print("[yellow]No budget baseline for this project yet[/yellow]")
        return

    table = Table(title=f"Budget report {project_id}")
    table.add_column("Category")
    table.add_column("Budget", justify="right")
    table.add_column("Actual", justify="right")
    table.add_column("Remaining", justify="right")
    for category, budget in report.by_category.items():
        remaining = report.remaining_by_category[category]
        style = "red" if remaining < 0 else ""
        table.add_row(
            category,
            f"${budget:,.2f}",
            f"${report.actual_by_category[category]:,.2f}",
            f"[{style}]${remaining:,.2f}[/{style}]" if style else f"${remaining:,.2f}",
        )
    console.print(table)
    if report.change_order_total:
        console.print(f"  Approved change orders: ${report.change_order_total:,.2f}")
    console.print(
        f"  Baseline ${report.baseline_total:,.2f}  Actual ${report.total_actual:,.2f}  "
        f"Remaining ${report.total_remaining:,.2f}"
    )


@app.command()
def export(
    kind: str = typer.Argument(..., help="budget or expenses"),
    project_id: UUID = typer.Argument(..., help="Project ID"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write to file instead of stdout"),
):
    """Export the budget variance or expense ledger as CSV."""
    if kind not in ("budget", "expenses"):
        raise typer.BadParameter("kind must be 'budget' or 'expenses'")

    async def _export() -> str:
        async with get_session() as session:
            if kind == "budget":
                return budget_csv(await BudgetReportAggregator(session).get_report(project_id))
            return expenses_csv(await ExpenseLedger(session).list_expenses(project_id))

    content = _run(_export())
    if output is None:
        typer.echo(content, nl=False)
        return
    output.write_text(content)
    console.print(f"[green]✓[/green] Wrote {kind} CSV to {output}")


@web_cli.command("serve")
def web_serve(
    host: str = typer.Option("0.0.0.0", help="Host to bind"),
    port: int = typer.Option(8001, help="Port to bind"),
    reload: bool = typer.Option(False, help="Enable autoreload (dev only)"),
):
    """Run the HTTP API."""
    import uvicorn

    typer.echo(f"Starting LandCalc API on http://{host}:{port}")
    uvicorn.run("landcalc.web.app:app", host=host, port=port, reload=reload, workers=1)


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
