"""Rich command-line interface powered by Typer."""

from __future__ import annotations

import logging
import time
from pathlib import Path

import numpy as np
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from tile_mosaic.config import MosaicConfig
from tile_mosaic.errors import MosaicError
from tile_mosaic.image_io import decode_image, make_comparison_grid, resolve_format
from tile_mosaic.service import load_index, render_mosaic
from tile_mosaic.tile_index import TileIndex

app = typer.Typer(
    name="tile-mosaic",
    help="Rebuild images out of a library of small tile images.",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=True)],
    )


def _collect_images(folder: Path, extensions: frozenset[str]) -> list[Path]:
    if not folder.exists():
        return []
    return sorted(
        f for f in folder.iterdir()
        if f.is_file() and f.suffix.lower() in extensions
    )


def _make_config(**kwargs) -> MosaicConfig:
    try:
        return MosaicConfig(**kwargs).validate()
    except ValueError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(1) from exc


def _load_index_or_exit(cfg: MosaicConfig) -> TileIndex:
    index = load_index(cfg)
    if len(index) == 0:
        console.print(f"\n[yellow]No usable tiles found in {cfg.library_dir}/[/yellow]")
        console.print("Place .png / .jpg / ... tiles there (sub-folders allowed).\n")
        raise typer.Exit(1)
    return index


# Defaults come from MosaicConfig - single source of truth
_DEFAULTS = MosaicConfig()


# -- single-image command ----------------------------------------------

@app.command()
def generate(
    source: Path = typer.Argument(
        ..., exists=True, dir_okay=False, help="Path to the source image",
    ),
    output: Path = typer.Option(Path("output/mosaic.png"), "--output", "-o"),
    library_dir: Path = typer.Option(
        _DEFAULTS.library_dir, "--library", "-l", help="Tile library folder",
    ),
    tile_size: int = typer.Option(
        _DEFAULTS.tile_size, "--tile-size", "-t", help="Cell size in source pixels",
    ),
    output_tile_size: int = typer.Option(
        _DEFAULTS.output_tile_size, "--output-tile", "-u",
        help="Tile size in the output image",
    ),
    matcher: str = typer.Option(
        _DEFAULTS.matcher, "--matcher", help="'linear' or 'kdtree'",
    ),
    transparent_cells: str = typer.Option(
        _DEFAULTS.transparent_cells, "--transparent-cells",
        help="Fully transparent source cells: 'black', 'skip' or 'error'",
    ),
    seed: int | None = typer.Option(
        _DEFAULTS.seed, "--seed", "-s", help="Seed for the random fallback",
    ),
    comparison: bool = typer.Option(
        False, "--comparison/--no-comparison", help="Also save Original | Mosaic",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Turn a single image into a mosaic."""
    _setup_logging(verbose)

    cfg = _make_config(
        tile_size=tile_size,
        output_tile_size=output_tile_size,
        matcher=matcher,
        transparent_cells=transparent_cells,
        seed=seed,
        library_dir=library_dir,
    )
    try:
        fmt = resolve_format(output.suffix or cfg.output_format)
    except ValueError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(1) from exc
    index = _load_index_or_exit(cfg)

    output.parent.mkdir(parents=True, exist_ok=True)
    source_bytes = source.read_bytes()

    try:
        data, report = render_mosaic(
            source_bytes, cfg.tile_size, cfg.output_tile_size, index,
            config=cfg, rng=np.random.default_rng(seed), fmt=fmt,
        )
    except MosaicError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(1) from exc

    output.write_bytes(data)

    if comparison:
        comp_path = output.with_name(f"{output.stem}_comparison.png")
        make_comparison_grid(decode_image(source_bytes), decode_image(data), comp_path)

    console.print(
        f"[green]✓[/green] Saved to {output}  "
        f"[dim]{report.cols}x{report.rows} cells  "
        f"tiles={report.distinct_tiles}  time={report.elapsed:.1f}s[/dim]"
    )


# -- batch command -----------------------------------------------------

@app.command()
def batch(
    input_dir: Path = typer.Option(
        _DEFAULTS.input_dir, "--input", "-i", help="Folder with source images",
    ),
    output_dir: Path = typer.Option(
        _DEFAULTS.output_dir, "--output", "-o", help="Results folder",
    ),
    library_dir: Path = typer.Option(
        _DEFAULTS.library_dir, "--library", "-l", help="Tile library folder",
    ),
    tile_size: int = typer.Option(_DEFAULTS.tile_size, "--tile-size", "-t"),
    output_tile_size: int = typer.Option(
        _DEFAULTS.output_tile_size, "--output-tile", "-u",
    ),
    matcher: str = typer.Option(_DEFAULTS.matcher, "--matcher"),
    transparent_cells: str = typer.Option(
        _DEFAULTS.transparent_cells, "--transparent-cells",
    ),
    seed: int | None = typer.Option(_DEFAULTS.seed, "--seed", "-s"),
    comparison: bool = typer.Option(True, "--comparison/--no-comparison"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Process all images in INPUT_DIR and write results to OUTPUT_DIR."""
    _setup_logging(verbose)
    logger = logging.getLogger("tile_mosaic")

    cfg = _make_config(
        tile_size=tile_size,
        output_tile_size=output_tile_size,
        matcher=matcher,
        transparent_cells=transparent_cells,
        seed=seed,
        library_dir=library_dir,
        input_dir=input_dir,
        output_dir=output_dir,
    )

    input_dir.mkdir(exist_ok=True)
    output_dir.mkdir(exist_ok=True)

    images = _collect_images(input_dir, cfg.SUPPORTED_EXTENSIONS)
    if not images:
        console.print(f"\n[yellow]No images found in {input_dir}/[/yellow]")
        console.print("Place .jpg / .png / ... files there and re-run.\n")
        raise typer.Exit(0)

    # Built once, shared by every image
    index = _load_index_or_exit(cfg)
    rng = np.random.default_rng(seed)

    console.print(Panel.fit(
        f"[bold]TILE MOSAIC GENERATOR[/bold]\n"
        f"Tile: {cfg.tile_size}px -> {cfg.output_tile_size}px  |  "
        f"Matcher: {cfg.matcher}\n"
        f"Library: {len(index)} tiles  |  Images: {len(images)}",
        border_style="cyan",
    ))

    failed = 0
    for idx, img_path in enumerate(images, 1):
        stem = img_path.stem
        console.rule(f"[bold cyan][{idx}/{len(images)}] {img_path.name}[/bold cyan]")
        t_total = time.perf_counter()

        source_bytes = img_path.read_bytes()
        try:
            data, report = render_mosaic(
                source_bytes, cfg.tile_size, cfg.output_tile_size, index,
                config=cfg, rng=rng,
            )
        except MosaicError as exc:
            logger.error("%s: %s", img_path.name, exc)
            failed += 1
            continue

        mosaic_path = output_dir / f"{stem}_mosaic.{cfg.output_format}"
        mosaic_path.write_bytes(data)

        if comparison:
            comp_path = output_dir / f"{stem}_comparison.{cfg.output_format}"
            make_comparison_grid(
                decode_image(source_bytes), decode_image(data), comp_path,
            )

        elapsed = time.perf_counter() - t_total
        console.print(
            f"  [green]✓[/green] {mosaic_path.name}  "
            f"[dim]{report.cols}x{report.rows} cells  "
            f"tiles={report.distinct_tiles}  failures={report.failures}"
            f"  time={elapsed:.1f}s[/dim]"
        )

    style = "green" if not failed else "yellow"
    console.print(Panel.fit(
        f"[bold {style}]ALL DONE[/bold {style}] - results in [bold]{output_dir}/[/bold]"
        + (f"\n{failed} image(s) failed" if failed else ""),
        border_style=style,
    ))


# -- library command ---------------------------------------------------

@app.command()
def index(
    library_dir: Path = typer.Option(
        _DEFAULTS.library_dir, "--library", "-l", help="Tile library folder",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Build the tile index and summarise it per collection."""
    _setup_logging(verbose)

    cfg = _make_config(library_dir=library_dir)
    tile_index = load_index(cfg)

    table = Table(title=f"Tile library {library_dir}")
    table.add_column("Collection")
    table.add_column("Tiles", justify="right")
    for name, count in sorted(tile_index.collections().items()):
        table.add_row(name or "(root)", str(count))
    console.print(table)

    console.print(Panel.fit(
        f"Indexed: [bold]{len(tile_index)}[/bold]  |  "
        f"Undecodable: {tile_index.n_failed}  |  "
        f"Transparent: {tile_index.n_transparent}",
        border_style="cyan",
    ))


if __name__ == "__main__":
    app()
