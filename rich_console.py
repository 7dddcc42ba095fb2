"""
Rich console configuration for the route overlay renderer.

Provides styled terminal output: logging handler, render progress bar,
banner, configuration and completion panels, and error messages.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.table import Table
from rich.theme import Theme

from config import RenderConfig

ROUTE_THEME = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
    "highlight": "bold magenta",
    "muted": "dim",
    "route": "bold red",
    "pace": "bold cyan",
    "gps": "green",
})

# Global console instance
console = Console(theme=ROUTE_THEME)


def setup_rich_logging(verbose: bool = False) -> None:
    """
    Route logging through a Rich handler.

    Args:
        verbose: Enable DEBUG level logging with time and source paths
    """
    level = logging.DEBUG if verbose else logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=console,
                show_time=verbose,
                show_path=verbose,
                rich_tracebacks=True,
                tracebacks_show_locals=verbose,
                markup=True,
            )
        ],
        force=True,
    )


def create_render_progress() -> Progress:
    """
    Create a progress bar for frame rendering.

    Returns:
        Configured Progress instance; tasks take a ``status`` field
    """
    return Progress(
        SpinnerColumn("dots"),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(bar_width=40, style="cyan", complete_style="green"),
        TaskProgressColumn(),
        MofNCompleteColumn(),
        TextColumn("[dim]{task.fields[status]}[/]"),
        TimeElapsedColumn(),
        TimeRemainingColumn(),
        console=console,
        transient=False,
    )


def print_banner(version: str = "1.0.0") -> None:
    """Print a styled startup banner."""
    banner = """
[bold red]╦═╗╔═╗╦ ╦╔╦╗╔═╗[/]  [bold cyan]╔═╗╦  ╦╔═╗╦═╗╦  ╔═╗╦ ╦[/]
[bold red]╠╦╝║ ║║ ║ ║ ║╣ [/]  [bold cyan]║ ║╚╗╔╝║╣ ╠╦╝║  ╠═╣╚╦╝[/]
[bold red]╩╚═╚═╝╚═╝ ╩ ╚═╝[/]  [bold cyan]╚═╝ ╚╝ ╚═╝╩╚═╩═╝╩ ╩ ╩ [/]
[dim]GPS activity route images and videos[/]
"""
    console.print(banner)
    console.print(f"[muted]Version {version}[/]\n")


def print_config_summary(
    mode: str,
    fit_file: str,
    background: str,
    output_file: str,
    config: RenderConfig,
    preset: Optional[str] = None,
) -> None:
    """
    Print a configuration summary panel.

    Args:
        mode: "image" or "video"
        fit_file: Activity file path
        background: Background image path
        output_file: Output file path
        config: Effective render configuration
        preset: Preset name the config started from, if any
    """
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="dim")
    table.add_column("Value", style="bold")

    scale = config.route_scale
    table.add_row("Mode", f"[highlight]{mode}[/]")
    table.add_row("Activity", f"[gps]{fit_file}[/]")
    table.add_row("Background", background)
    table.add_row("Output", f"[green]{output_file}[/]")
    if preset:
        table.add_row("Preset", f"[highlight]{preset}[/]")
    table.add_row("Route Scale",
                  f"{scale.scale:.2f} at ({scale.offset_x_percent:.0%}, {scale.offset_y_percent:.0%})")

    panels = []
    if config.show_route:
        panels.append("route")
    if config.show_bottom_bar and mode == "video":
        panels.append("pace/distance")
    if config.show_lap_data:
        panels.append("laps")
    table.add_row("Panels", ", ".join(panels) if panels else "[dim]none[/]")
    if mode == "video":
        table.add_row("Duration", f"{config.video_duration_s:.0f}s")

    panel = Panel(
        table,
        title="[bold]Configuration[/]",
        border_style="cyan",
        padding=(1, 2),
    )
    console.print(panel)
    console.print()


def print_completion_summary(
    output_file: str,
    point_count: int,
    frame_count: Optional[int] = None,
    lap_count: Optional[int] = None,
    elapsed_s: Optional[float] = None,
) -> None:
    """
    Print a styled completion summary.

    Args:
        output_file: Path to output file
        point_count: GPS points drawn
        frame_count: Video frames written (optional)
        lap_count: Laps in the activity (optional)
        elapsed_s: Total render time in seconds (optional)
    """
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Metric", style="dim")
    table.add_column("Value", style="bold green")

    table.add_row("GPS Points", f"{point_count:,}")
    if frame_count:
        table.add_row("Frames", f"{frame_count:,}")
    if lap_count:
        table.add_row("Laps", str(lap_count))
    if elapsed_s is not None:
        table.add_row("Elapsed", f"{elapsed_s:.2f}s")
    table.add_row("Output", output_file)

    panel = Panel(
        table,
        title="[bold green]Complete[/]",
        border_style="green",
        padding=(1, 2),
    )
    console.print()
    console.print(panel)


def print_error(message: str, hint: Optional[str] = None) -> None:
    """
    Print a styled error message.

    Args:
        message: Error message
        hint: Optional hint for resolution
    """
    console.print(f"\n[error]Error:[/] {message}")
    if hint:
        console.print(f"[muted]Hint: {hint}[/]")
