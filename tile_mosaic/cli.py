"""Rich command-line interface powered by Typer."""

from __future__ import annotations

import logging
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from tile_mosaic.composer import MosaicComposer, MosaicResult
from tile_mosaic.config import MosaicConfig
from tile_mosaic.errors import MosaicError
from tile_mosaic.metrics import mean_delta_e, mean_rgb_error, preview_from_grid

app = typer.Typer(
    name="tile-mosaic",
    help="Rebuild an image out of many small tile images.",
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


def _report(result: MosaicResult, elapsed: float) -> str:
    preview = preview_from_grid(result.index_map, result.tiles)
    target = result.target.array
    rows, cols = result.index_map.shape
    used = len({int(i) for i in result.index_map.ravel()})
    return (
        f"[dim]{cols}x{rows} tiles ({used}/{len(result.tiles)} distinct)  "
        f"{result.image.width}x{result.image.height} px  "
        f"error={mean_rgb_error(target, preview):.1f}  "
        f"ΔE={mean_delta_e(target, preview):.1f}  "
        f"time={elapsed:.1f}s[/dim]"
    )


# Defaults come from MosaicConfig - single source of truth
_DEFAULTS = MosaicConfig()


# -- single-image command ----------------------------------------------

@app.command()
def single(
    target: Path = typer.Argument(..., help="Path to the target image"),
    tiles_dir: Path = typer.Option(
        _DEFAULTS.tiles_dir, "--tiles", "-t", help="Folder of tile images",
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Defaults to <target>-output.png beside the target",
    ),
    scale: float = typer.Option(
        _DEFAULTS.scale, "--scale", "-s",
        help="Downscale factor; each remaining target pixel becomes one tile",
    ),
    tile_side: int = typer.Option(
        _DEFAULTS.tile_side, "--tile-side", "-n", help="Tile side length in pixels",
    ),
    cache_dir: Path = typer.Option(
        _DEFAULTS.cache_dir, "--cache-dir", help="Resized-tile cache folder",
    ),
    use_cache: bool = typer.Option(
        _DEFAULTS.use_cache, "--cache/--no-cache", help="Use the on-disk tile cache",
    ),
    matcher: str = typer.Option(
        _DEFAULTS.matcher, "--matcher", help="'brute' or 'kdtree'",
    ),
    workers: int | None = typer.Option(
        _DEFAULTS.workers, "--workers", "-w", help="Tile loading threads",
    ),
    max_tiles: int | None = typer.Option(
        _DEFAULTS.max_tiles, "--max-tiles", help="Use at most this many tiles",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Build a mosaic for a single TARGET image."""
    _setup_logging(verbose)

    cfg = MosaicConfig(
        scale=scale,
        tile_side=tile_side,
        tiles_dir=tiles_dir,
        cache_dir=cache_dir,
        use_cache=use_cache,
        matcher=matcher,
        workers=workers,
        max_tiles=max_tiles,
    )

    t0 = time.perf_counter()
    try:
        result = MosaicComposer(cfg).run(target, output)
    except (MosaicError, ValueError) as exc:
        console.print(f"[red]✗ {exc}[/red]")
        raise typer.Exit(1) from exc

    console.print(
        f"[green]✓[/green] Saved to {result.output_path}  "
        + _report(result, time.perf_counter() - t0)
    )


# -- batch command -----------------------------------------------------

@app.command()
def batch(
    input_dir: Path = typer.Option(
        _DEFAULTS.input_dir, "--input", "-i", help="Folder with target images",
    ),
    tiles_dir: Path = typer.Option(
        _DEFAULTS.tiles_dir, "--tiles", "-t", help="Folder of tile images",
    ),
    scale: float = typer.Option(_DEFAULTS.scale, "--scale", "-s"),
    tile_side: int = typer.Option(_DEFAULTS.tile_side, "--tile-side", "-n"),
    cache_dir: Path = typer.Option(_DEFAULTS.cache_dir, "--cache-dir"),
    use_cache: bool = typer.Option(_DEFAULTS.use_cache, "--cache/--no-cache"),
    matcher: str = typer.Option(_DEFAULTS.matcher, "--matcher"),
    workers: int | None = typer.Option(_DEFAULTS.workers, "--workers", "-w"),
    max_tiles: int | None = typer.Option(_DEFAULTS.max_tiles, "--max-tiles"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Build a mosaic for every image in INPUT_DIR, written beside each one."""
    _setup_logging(verbose)

    cfg = MosaicConfig(
        scale=scale,
        tile_side=tile_side,
        tiles_dir=tiles_dir,
        cache_dir=cache_dir,
        use_cache=use_cache,
        matcher=matcher,
        workers=workers,
        max_tiles=max_tiles,
        input_dir=input_dir,
    )

    # Earlier outputs live in the same folder; don't mosaic them again.
    images = [
        p for p in _collect_images(input_dir, cfg.SUPPORTED_EXTENSIONS)
        if not p.stem.endswith(cfg.output_suffix)
    ]
    if not images:
        console.print(f"\n[yellow]No images found in {input_dir}/[/yellow]")
        console.print("Place .jpg / .png / ... files there and re-run.\n")
        raise typer.Exit(0)

    try:
        composer = MosaicComposer(cfg)
    except ValueError as exc:
        console.print(f"[red]✗ {exc}[/red]")
        raise typer.Exit(1) from exc

    console.print(Panel.fit(
        f"[bold]TILE MOSAIC[/bold]\n"
        f"Scale: {cfg.scale}  |  Tile side: {cfg.tile_side}px\n"
        f"Tiles: {cfg.tiles_dir}  |  Matcher: {cfg.matcher}\n"
        f"Cache: {cfg.cache_dir if cfg.use_cache else 'off'}  |  Images: {len(images)}",
        border_style="cyan",
    ))

    failed = 0
    for idx, img_path in enumerate(images, 1):
        console.rule(f"[bold cyan][{idx}/{len(images)}] {img_path.name}[/bold cyan]")
        t0 = time.perf_counter()
        try:
            result = composer.run(img_path)
        except MosaicError as exc:
            failed += 1
            console.print(f"  [red]✗ {exc}[/red]")
            continue
        console.print(
            f"  [green]✓[/green] {result.output_path.name}  "
            + _report(result, time.perf_counter() - t0)
        )

    if failed:
        console.print(Panel.fit(
            f"[bold red]{failed} of {len(images)} FAILED[/bold red]",
            border_style="red",
        ))
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[bold green]ALL DONE[/bold green] - results beside the targets in [bold]{input_dir}/[/bold]",
        border_style="green",
    ))


if __name__ == "__main__":
    app()
