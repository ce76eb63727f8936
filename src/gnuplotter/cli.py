"""gnuplotter CLI: plot numeric tables with gnuplot from the shell."""

from __future__ import annotations

import logging
import random
import subprocess

import click
from rich.console import Console
from rich.markup import escape

from .config import GnuplotConfig, get_config, set_config
from .core.datafile import read_series
from .core.models import TerminalKind
from .core.terminals import Terminal
from .gnuplot import Gnuplot
from .styles.palettes import Style, get_palette, list_palettes

console = Console(stderr=True)

TERMINAL_MAP = {
    "svg": TerminalKind.SVG,
    "pdf": TerminalKind.PDF,
    "png": TerminalKind.PNG,
    "png-small": TerminalKind.PNG_SMALL,
    "png-large": TerminalKind.PNG_LARGE,
}

STYLE_MAP = {
    "lines": Style.lines,
    "linepoints": Style.line_points,
    "points": Style.points,
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _plot_options(func):
    """Options shared by ``render`` and ``script``."""
    options = [
        click.argument("datafile", type=click.Path(exists=True, dir_okay=False)),
        click.option("--title", default=None, help="Plot title."),
        click.option("--xlabel", default=None, help="x axis label."),
        click.option("--ylabel", default=None, help="y axis label."),
        click.option(
            "--style",
            "style_name",
            type=click.Choice(sorted(STYLE_MAP), case_sensitive=False),
            default="linepoints",
            help="Draw style (default: linepoints).",
        ),
        click.option("--smooth", is_flag=True, default=False, help="Smooth lines with cubic splines."),
        click.option(
            "--palette",
            "palette_name",
            envvar="GNUPLOT_PALETTE",
            type=click.Choice([p.name for p in list_palettes()], case_sensitive=False),
            default="matlab",
            help="Colour palette (or set GNUPLOT_PALETTE).",
        ),
        click.option("--seed", type=int, default=None, help="Seed for reproducible point markers."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_plot(
    datafile: str,
    title: str | None,
    xlabel: str | None,
    ylabel: str | None,
    style_name: str,
    smooth: bool,
    palette_name: str,
    seed: int | None,
) -> Gnuplot:
    try:
        series = read_series(datafile)
    except ValueError as exc:
        raise click.ClickException(f"{datafile}: {exc}") from exc
    if not series:
        raise click.ClickException(f"{datafile}: no numeric rows found")

    style_name = style_name.lower()
    style = Style.lines(smooth=smooth) if style_name == "lines" else STYLE_MAP[style_name]()
    rng = random.Random(seed) if seed is not None else None
    plot = Gnuplot.from_series(series, style, palette=get_palette(palette_name), rng=rng)
    if title:
        plot.set_title(title)
    if xlabel:
        plot.set_xlabel(xlabel)
    if ylabel:
        plot.set_ylabel(ylabel)
    return plot


@click.group()
@click.version_option(version="0.1.0", prog_name="gnuplotter")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
@click.option(
    "--gnuplot",
    "executable",
    envvar="GNUPLOT_EXECUTABLE",
    default=None,
    help="Path to the gnuplot executable (or set GNUPLOT_EXECUTABLE).",
)
def main(verbose: bool, executable: str | None):
    """gnuplotter: render numeric tables to SVG, PDF or PNG with gnuplot."""
    _setup_logging(verbose)
    set_config(GnuplotConfig.from_env(executable=executable) if executable else None)


@main.command()
@_plot_options
@click.option(
    "-o", "--output",
    "output",
    type=click.Path(dir_okay=False),
    required=True,
    help="Output file.",
)
@click.option(
    "-t", "--terminal",
    "terminal_name",
    type=click.Choice(sorted(TERMINAL_MAP), case_sensitive=False),
    default=None,
    help="Output format (default: inferred from the output suffix).",
)
def render(output: str, terminal_name: str | None, **plot_kwargs):
    """Render DATAFILE to an image.

    DATAFILE holds whitespace- or comma-separated columns; blank lines
    separate series and a leading ``# name`` line titles a series.
    """
    plot = _build_plot(**plot_kwargs)
    kind = TERMINAL_MAP[terminal_name.lower()] if terminal_name else None
    try:
        result = plot.save(output, kind)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    if not result.success:
        console.print(f"[red]✗[/] {escape(result.error or '')}")
        raise SystemExit(1)
    console.print(f"[green]✓[/] {result.output_path} [dim]({result.size_bytes:,} bytes)[/]")


@main.command()
@_plot_options
@click.option(
    "-t", "--terminal",
    "terminal_name",
    type=click.Choice(sorted(TERMINAL_MAP), case_sensitive=False),
    default="svg",
    help="Output format the script targets (default: svg).",
)
def script(terminal_name: str, **plot_kwargs):
    """Print the gnuplot script for DATAFILE without running gnuplot."""
    plot = _build_plot(**plot_kwargs)
    click.echo(plot.commands(Terminal(TERMINAL_MAP[terminal_name.lower()])), nl=False)


@main.command()
def palettes():
    """List available colour palettes."""
    from rich.table import Table as RichTable

    table = RichTable(title="Available Palettes", show_lines=False)
    table.add_column("Name", style="bold cyan")
    table.add_column("Display Name")
    table.add_column("Colours")
    table.add_column("Description", style="dim")

    for p in list_palettes():
        swatches = " ".join(f"[{c}]██[/]" for c in p.colors)
        table.add_row(p.name, p.display_name, swatches, p.description)

    Console().print(table)


@main.command()
@click.pass_context
def check(ctx: click.Context):
    """Report which gnuplot will be used and its version."""
    executable = get_config().resolved_executable
    console.print(f"[dim]Executable:[/] {executable}")
    try:
        result = subprocess.run(
            [executable, "--version"],
            capture_output=True,
            text=True,
            timeout=15,
        )
    except (FileNotFoundError, PermissionError, subprocess.TimeoutExpired) as exc:
        console.print(f"[bold red]❌ gnuplot unavailable:[/] {escape(str(exc))}")
        ctx.exit(1)
    version = (result.stdout or result.stderr).strip()
    if result.returncode != 0:
        console.print(f"[bold red]❌ gnuplot --version failed:[/] {escape(version)}")
        ctx.exit(1)
    console.print(f"[green]✓[/] {escape(version)}")


if __name__ == "__main__":
    main()
