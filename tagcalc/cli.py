"""TagCalc CLI.

Commands:
- serve: Run the variant API with uvicorn
- quote: Price a configuration and show the breakdown
- variants: List a product's variants, oldest first
- prune: Evict oldest variants until the product is below the limit
"""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from tagcalc.canonical.variant_key import variant_title
from tagcalc.config import get_config
from tagcalc.core.logging import configure_logging
from tagcalc.integration.variant_repository import by_age
from tagcalc.models import Configuration
from tagcalc.pricing.engine import calculate_breakdown
from tagcalc.web.dependencies import build_repository

app = typer.Typer(
    name="tagcalc",
    help="TagCalc - Custom tag pricing and Shopify variant housekeeping",
    no_args_is_help=True,
)

console = Console()


@app.command()
def serve(
    host: str | None = typer.Option(None, help="Host to bind (default: HOST or 0.0.0.0)"),
    port: int | None = typer.Option(None, help="Port to bind (default: PORT or 3000)"),
    reload: bool = typer.Option(False, help="Enable autoreload (dev only)"),
):
    """Run the FastAPI variant service."""
    import uvicorn

    config = get_config()
    host = host or config.web.host
    port = port or config.web.port

    typer.echo(f"Starting TagCalc on http://{host}:{port}")
    uvicorn.run(
        "tagcalc.web.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=1,
    )


@app.command()
def quote(
    width: float = typer.Option(..., "--width", "-w", help="Width in mm"),
    height: float = typer.Option(..., "--height", "-h", help="Height in mm"),
    qty: int = typer.Option(1, "--qty", "-q", help="Number of tags"),
    sides: str = typer.Option("single", help="single or double"),
    hole: float = typer.Option(5, "--hole", help="Hole diameter in mm"),
    corner: str = typer.Option("rounded", help="rounded, square or luggage"),
    corner_radius: float = typer.Option(2, "--corner-radius", help="Corner radius in mm"),
    cord: str = typer.Option("none", help="Cord type, or none"),
    supply: str = typer.Option("loose", help="loose or attached"),
    material: str = typer.Option("standard", help="Material label (naming only)"),
):
    """Price a configuration and print every pricing step."""
    config = Configuration(
        width_mm=width,
        height_mm=height,
        quantity=qty,
        sides=sides,
        hole_diameter_mm=hole,
        corner_style=corner,
        corner_radius_mm=corner_radius,
        cord_type=cord,
        cord_supply=supply,
        material=material,
    )
    breakdown = calculate_breakdown(config)

    table = Table(title=variant_title(config))
    table.add_column("Step", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Area (cm²)", f"{breakdown.area_cm2:.2f}")
    table.add_row("Base unit", f"{breakdown.base_unit:.4f}")
    table.add_row("Sides multiplier", f"{breakdown.sides_multiplier:g}")
    table.add_row("Hole add", f"{breakdown.hole_add:g}")
    table.add_row("Rounded add", f"{breakdown.rounded_add:.4f}")
    table.add_row("Luggage add", f"{breakdown.luggage_add:g}")
    table.add_row("Cord add", f"{breakdown.cord_add:g}")
    table.add_row("Attached add", f"{breakdown.attached_add:g}")
    table.add_row("Unit price", f"{breakdown.unit:.4f}")
    table.add_row("Discount factor", f"{breakdown.discount:g}")
    table.add_row("Total before floor", f"{breakdown.total_before_floor:.2f}")
    table.add_row("[bold]Total[/bold]", f"[bold]{breakdown.total}[/bold]")

    console.print(table)
    if breakdown.floored:
        console.print("[yellow]Minimum order price applied[/yellow]")


@app.command()
def variants(
    product_id: str = typer.Argument(..., help="Shopify product ID"),
):
    """List a product's variants, oldest first."""
    config = get_config()
    configure_logging(level=config.log_level, json_logs=config.json_logs)

    async def _list():
        repository = build_repository(config)
        async with repository.client:
            return await repository.list_variants(product_id)

    ordered = by_age(asyncio.run(_list()))

    table = Table(title=f"Product {product_id}")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Price", justify="right")
    table.add_column("Created", style="dim")
    for record in ordered:
        table.add_row(
            str(record.id),
            record.key or "",
            str(record.price) if record.price is not None else "",
            record.created_at.isoformat() if record.created_at else "",
        )
    console.print(table)

    limit = config.variants.variant_limit
    headroom = limit - len(ordered)
    style = "green" if headroom > 0 else "red"
    console.print(f"[{style}]{len(ordered)}/{limit} variants ({headroom} until eviction)[/{style}]")


@app.command()
def prune(
    product_id: str = typer.Argument(..., help="Shopify product ID"),
):
    """Evict oldest variants until the product is below the variant limit."""
    config = get_config()
    configure_logging(level=config.log_level, json_logs=config.json_logs)

    async def _prune() -> int:
        repository = build_repository(config)
        evicted = 0
        async with repository.client:
            while await repository.enforce_limit(product_id) is not None:
                evicted += 1
        return evicted

    evicted = asyncio.run(_prune())
    console.print(f"[bold green]✓[/bold green] Evicted {evicted} variant(s)")


if __name__ == "__main__":
    app()
