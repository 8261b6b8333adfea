"""Tankobon CLI entry point."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from tankobon.config import DEFAULT_CONFIG_PATH, TankobonConfig, load_config, write_default_config
from tankobon.covers import CoverImageSize, EncodeFormat
from tankobon.errors import FileReadError
from tankobon.formats import classify_format
from tankobon.logging_config import setup_logging
from tankobon.models import LOOSE_LEAF_VOLUME, DEFAULT_CHAPTER, LibraryType
from tankobon.reading_items import ReadingItemService
from tankobon.scanner import scan_library


__version__ = "0.1.0"

app = typer.Typer(add_completion=False, help="Tankobon reading item CLI")
console = Console()


def _ensure_config() -> TankobonConfig:
    try:
        return load_config()
    except FileNotFoundError:
        typer.echo("[ERROR] config.ini not found. Run: tankobon init --library /path/to/library")
        raise typer.Exit(code=1)


def _display(value: str, sentinel: str) -> str:
    return "-" if value == sentinel else value


@app.command()
def init(
    library: Path = typer.Option(..., "--library", help="Path to your library folder"),
    name: str = typer.Option("My Library", "--name", help="Library name"),
    library_type: LibraryType = typer.Option(LibraryType.MANGA, "--type", help="Library type"),
) -> None:
    """Initialize config.ini with default settings."""
    config_path = write_default_config(DEFAULT_CONFIG_PATH, library, name, library_type)
    typer.echo(f"[OK] Config created at {config_path}")


@app.command()
def parse(
    file: Path = typer.Argument(..., help="File to resolve"),
    root: Optional[Path] = typer.Option(None, "--root", help="Library root (defaults to config)"),
    library_type: Optional[LibraryType] = typer.Option(None, "--type", help="Library type (defaults to config)"),
) -> None:
    """Resolve a single file and print the result as JSON."""
    setup_logging("WARNING")

    if root is None or library_type is None:
        config = _ensure_config()
        root = root or config.library_path
        library_type = library_type or config.library_type
        service = ReadingItemService(config.covers_dir)
    else:
        service = ReadingItemService(Path.cwd() / "covers")

    try:
        item = service.parse_file(file.resolve(), root.resolve(), library_type)
    except FileReadError as exc:
        typer.echo(f"[ERROR] {exc}")
        raise typer.Exit(code=1)

    if item is None:
        typer.echo(f"[WARN] {file.name} is not a reading item")
        raise typer.Exit(code=1)
    typer.echo(item.model_dump_json(indent=2))


@app.command()
def scan(
    path: Optional[Path] = typer.Option(None, "--path", help="Scan a subfolder"),
    workers: Optional[int] = typer.Option(None, "--workers", min=1, help="Worker threads"),
) -> None:
    """Resolve every reading item in the library and print a summary table."""
    setup_logging()

    config = _ensure_config()
    result = scan_library(config, path=path, workers=workers)

    table = Table(title=config.library.name)
    table.add_column("File")
    table.add_column("Series")
    table.add_column("Volume", justify="right")
    table.add_column("Chapter", justify="right")
    table.add_column("Special")
    for item in result.items:
        table.add_row(
            item.filename,
            item.series,
            _display(item.volumes, LOOSE_LEAF_VOLUME),
            _display(item.chapters, DEFAULT_CHAPTER),
            "yes" if item.is_special else "",
        )
    console.print(table)

    typer.echo(
        "✓ Scan completed: "
        f"{result.parsed} parsed, "
        f"{result.skipped} skipped, "
        f"{result.failed} failed."
    )


@app.command()
def pages(file: Path = typer.Argument(..., help="Reading item")) -> None:
    """Print the page count of a file."""
    setup_logging("WARNING")
    config = _ensure_config()
    service = ReadingItemService(config.covers_dir)
    typer.echo(service.get_number_of_pages(file, classify_format(file)))


@app.command()
def cover(
    file: Path = typer.Argument(..., help="Reading item"),
    encode_format: Optional[EncodeFormat] = typer.Option(None, "--format", help="Cover encoding"),
    size: Optional[CoverImageSize] = typer.Option(None, "--size", help="Cover size"),
) -> None:
    """Write a cover image for a file into the cover directory."""
    setup_logging()
    config = _ensure_config()
    service = ReadingItemService(config.covers_dir)

    written = service.get_cover_image(
        file,
        file.stem,
        classify_format(file),
        encode_format or config.covers.format,
        size or config.covers.size,
    )
    if not written:
        typer.echo(f"[WARN] No cover written for {file.name}")
        raise typer.Exit(code=1)
    typer.echo(f"[OK] {config.covers_dir / written}")


@app.command()
def extract(
    file: Path = typer.Argument(..., help="Reading item"),
    target: Path = typer.Argument(..., help="Directory to extract into"),
    images: int = typer.Option(1, "--images", min=1, help="Images to copy for image files"),
) -> None:
    """Extract the pages of a file into a directory."""
    setup_logging()
    config = _ensure_config()
    service = ReadingItemService(config.covers_dir)

    try:
        service.extract(file, target, classify_format(file), images)
    except FileReadError as exc:
        typer.echo(f"[ERROR] {exc}")
        raise typer.Exit(code=1)
    typer.echo(f"[OK] Extracted {file.name} to {target}")


if __name__ == "__main__":
    app()
