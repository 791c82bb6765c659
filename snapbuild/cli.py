"""
Command-line interface for the snap-building core.

Usage:
    snapbuild catalog
    snapbuild replay examples/wall_on_foundation.json --verbose
    snapbuild replay script.json --log ./output/log.txt
"""

from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from snapbuild.config import BuildSettings
from snapbuild.models import ReplayScript
from snapbuild.session import BuildSession
from snapbuild.tools.prefab_lookup import default_catalog
from snapbuild.tools.registry import PieceRegistry
from snapbuild.tools.vector_math import Vec3
from snapbuild.tools.world import SimpleWorld


# Load environment variables from .env file (for SNAPBUILD_* settings).
load_dotenv()


console = Console()


@click.group()
def main():
    """Grid-free snap building: inspect the catalog or replay a build script."""


@main.command()
def catalog():
    """List piece types grouped by category."""
    groups = default_catalog().by_category()
    for category, entries in groups.items():
        console.print(f"[bold]{category}[/bold]")
        for entry in entries:
            console.print(f"  {entry['id']:<20} {entry['name']}")


def run_replay(script: ReplayScript, settings: BuildSettings, collision: bool, verbose: bool) -> BuildSession:
    """Drive a session through every step of `script` and return it."""
    registry = PieceRegistry()
    world = SimpleWorld(registry)
    session = BuildSession(
        registry=registry,
        world=world,
        settings=settings,
        collision=world if collision else None,
        verbose=verbose,
    )

    for step in script.steps:
        if step.select is not None:
            session.select_piece(step.select)
        if step.aim is not None:
            session.update(Vec3.of(step.aim.origin), Vec3.of(step.aim.direction))
        if step.input is not None:
            session.handle(step.input)

    return session


def _pieces_table(session: BuildSession) -> Table:
    table = Table(title="Committed pieces")
    table.add_column("#", justify="right")
    table.add_column("Piece")
    table.add_column("Category")
    table.add_column("Position")
    table.add_column("Up")
    for i, piece in enumerate(session.registry, start=1):
        origin = piece.transform.origin
        up = piece.transform.basis.up
        table.add_row(
            str(i),
            piece.type_id,
            piece.category,
            f"{origin.x:.3f}, {origin.y:.3f}, {origin.z:.3f}",
            f"{up.x:.2f}, {up.y:.2f}, {up.z:.2f}",
        )
    return table


@main.command()
@click.argument("script_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--log", "log_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the session log to this file."
)
@click.option(
    "--collision/--no-collision",
    default=True,
    help="Refuse placements that overlap committed pieces."
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Show per-frame resolution details."
)
def replay(script_path: Path, log_path: Path | None, collision: bool, verbose: bool):
    """
    Replay a JSON build script against a flat ground plane.

    SCRIPT_PATH: JSON file with a list of select / aim / input steps
    """
    try:
        script = ReplayScript.model_validate_json(script_path.read_text(encoding="utf-8"))
        settings = BuildSettings.from_env()
        session = run_replay(script, settings, collision, verbose)
    except Exception as e:
        console.print(f"[red bold]Error:[/red bold] {escape(str(e))}")
        raise click.Abort()

    console.print(_pieces_table(session))

    if log_path:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        log_path.write_text("\n".join(session.log_lines))
        console.print(f"[green]✓[/green] Saved log to {log_path}")

    console.print(Panel(
        f"[bold green]Replay complete[/bold green]\n\n"
        f"Script: {script.name}\n"
        f"Steps: {len(script.steps)}\n"
        f"Pieces: {len(session.registry)}",
        title="Complete"
    ))


if __name__ == "__main__":
    main()
