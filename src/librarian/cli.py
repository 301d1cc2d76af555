"""Command line interface for Librarian."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

import typer
from rich.console import Console
from rich.table import Table

from librarian.cache.store import TextCache
from librarian.config import AppConfig
from librarian.index import Indexer, create_indexer
from librarian.index.sync import Synchronizer
from librarian.ingestion.extractor import ContentExtractor
from librarian.ingestion.ocr import OcrEngine
from librarian.utils.files import iter_supported_paths

console = Console()
app = typer.Typer(help="Librarian - cached text extraction and full-text search")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _build_config(
    cache: Optional[Path], index: Optional[Path], backend: str, repair: bool = True
) -> AppConfig:
    if backend not in ("memory", "fts"):
        raise typer.BadParameter(f"Unknown backend: {backend}")
    return AppConfig(
        cache_path=cache,
        index_path=index,
        index_backend=backend,  # type: ignore[arg-type]
        update_path_on_hash_match=repair,
    )


@contextmanager
def _open_session(config: AppConfig, *, dump: bool = True) -> Iterator[Tuple[TextCache, Indexer]]:
    """Open the cache and load the index; dump (unless read-only) and close on the way out."""
    cache_path = config.resolve_cache_path(Path.cwd())
    index_path = config.resolve_index_path(Path.cwd())
    _ensure_parent(cache_path)

    with OcrEngine() as ocr:
        cache = TextCache(
            cache_path,
            update_path_on_hash_match=config.update_path_on_hash_match,
            extractor=ContentExtractor(ocr),
        )
        cache.load()
        try:
            indexer = create_indexer(config.index_backend, cache, index_path)
            indexer.load()
            yield cache, indexer
            if dump:
                indexer.dump()
        finally:
            cache.unload()


CacheOption = typer.Option(None, "--cache", help="SQLite cache database path")
IndexOption = typer.Option(None, "--index", help="Index file path")
BackendOption = typer.Option("memory", "--backend", help="Index backend: memory or fts")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Verbose logging")


@app.command()
def index(
    inputs: List[Path] = typer.Argument(..., help="Files or directories to index.", resolve_path=True),
    cache: Path = CacheOption,
    index_file: Path = IndexOption,
    backend: str = BackendOption,
    repair: bool = typer.Option(True, "--repair/--no-repair", help="Follow renamed files by hash"),
    prune: bool = typer.Option(False, "--prune", help="Drop cached files missing from the inputs"),
    verbose: bool = VerboseOption,
) -> None:
    """Extract, cache and index the given files."""
    _setup_logging(verbose)
    config = _build_config(cache, index_file, backend, repair)

    paths = list(iter_supported_paths(inputs))
    if not paths:
        console.print("[yellow]No supported files found.[/yellow]")
        return

    console.print(f"Caching into [bold]{config.resolve_cache_path(Path.cwd())}[/bold]...")
    with _open_session(config) as (text_cache, indexer):
        synchronizer = Synchronizer(text_cache, indexer)
        stats = synchronizer.sync(paths)
        removed = synchronizer.prune(paths) if prune else 0

    console.print(
        f"Inserted: {stats.inserted}, updated: {stats.updated}, renamed: {stats.renamed}, "
        f"skipped: {stats.skipped}, failed: {stats.failed}"
    )
    if prune:
        console.print(f"Pruned {removed} stale entries.")


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    cache: Path = CacheOption,
    index_file: Path = IndexOption,
    backend: str = BackendOption,
    pages: bool = typer.Option(False, "--pages", help="Show page-level matches too"),
    limit: int = typer.Option(20, help="Number of results to display"),
    verbose: bool = VerboseOption,
) -> None:
    """Run a full-text query against the index."""
    _setup_logging(verbose)
    config = _build_config(cache, index_file, backend)
    if not config.resolve_cache_path(Path.cwd()).exists():
        raise typer.BadParameter(f"Cache not found: {config.resolve_cache_path(Path.cwd())}")

    with _open_session(config, dump=False) as (_, indexer):
        results = indexer.search(query)

    if not pages:
        results = [result for result in results if result.is_root]
    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Document")
    table.add_column("Type")
    table.add_column("Snippet")

    for result in results[:limit]:
        snippet = result.listable_content.replace("\n", " ")
        table.add_row(result.title, result.mime_type, snippet[:180])

    console.print(table)


@app.command()
def show(
    path: Path = typer.Argument(..., help="Cached file path", resolve_path=True),
    cache: Path = CacheOption,
) -> None:
    """Print the cached references of a file."""
    config = _build_config(cache, None, "memory")
    cache_path = config.resolve_cache_path(Path.cwd())
    if not cache_path.exists():
        raise typer.BadParameter(f"Cache not found: {cache_path}")

    with TextCache(cache_path) as text_cache:
        references = text_cache.get_by_path(str(path))

    if references is None:
        console.print(f"[yellow]{path} is not cached.[/yellow]")
        raise typer.Exit(code=1)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Id")
    table.add_column("Title")
    table.add_column("Parent")
    table.add_column("Content")
    for reference in references:
        table.add_row(
            reference.id,
            reference.title,
            reference.parent_id or "-",
            reference.content.replace("\n", " ")[:120],
        )
    console.print(table)


@app.command()
def prune(
    inputs: List[Path] = typer.Argument(..., help="Files or directories that still exist.", resolve_path=True),
    cache: Path = CacheOption,
    index_file: Path = IndexOption,
    backend: str = BackendOption,
    verbose: bool = VerboseOption,
) -> None:
    """Remove cached files that are no longer among the inputs."""
    _setup_logging(verbose)
    config = _build_config(cache, index_file, backend)
    if not config.resolve_cache_path(Path.cwd()).exists():
        console.print("[yellow]Cache not found, nothing to prune.[/yellow]")
        return

    actual_paths = list(iter_supported_paths(inputs))
    with _open_session(config) as (text_cache, indexer):
        removed = Synchronizer(text_cache, indexer).prune(actual_paths)
    console.print(f"Removed {removed} stale entries.")


if __name__ == "__main__":  # pragma: no cover
    app()
