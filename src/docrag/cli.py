"""CLI interface for docrag.

Typer-based command-line interface with Rich output formatting.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from docrag import __version__
from docrag.chunk import DocumentChunker
from docrag.config import DocragConfig
from docrag.exceptions import DocragError
from docrag.ingest import iter_documents
from docrag.manifest import load_manifest, make_entry, save_manifest
from docrag.pipeline import Pipeline
from docrag.project import Project
from docrag.registry import default_registry
from docrag.store import SQLiteVectorStore

__all__ = ["app"]

app = typer.Typer(
    name="docrag",
    help="Document chunking and exact vector search for retrieval.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()

logger = logging.getLogger(__name__)


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Document chunking and exact vector search for retrieval."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
            force=True,
        )


def _require_project() -> tuple[Project, DocragConfig]:
    """Load the enclosing project or exit with a hint."""
    project = Project.discover()
    if not project.is_initialized:
        console.print(
            "[yellow]No docrag project found.[/yellow] Run [bold]docrag init[/bold] first."
        )
        raise typer.Exit(code=1)
    try:
        config = project.load_config()
    except DocragError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(code=1) from e
    return project, config


def _open_store(project: Project, config: DocragConfig) -> SQLiteVectorStore:
    try:
        return SQLiteVectorStore(project.store_path(config), dimensions=config.embedding.dimensions)
    except DocragError as e:
        console.print(f"[red]Failed to open vector store:[/red] {e}")
        raise typer.Exit(code=1) from e


@app.command()
def version() -> None:
    """Show docrag version."""
    console.print(f"docrag {__version__}")


@app.command()
def init(
    name: Annotated[
        str,
        typer.Option("--name", "-n", help="Project name"),
    ] = "",
    dimensions: Annotated[
        int | None,
        typer.Option("--dimensions", "-d", help="Embedding vector length"),
    ] = None,
) -> None:
    """Initialize a new docrag project in the current directory."""
    try:
        data_dir = Project(Path.cwd()).init(name=name, dimensions=dimensions)
    except (DocragError, OSError) as e:
        console.print(f"[red]Failed to initialize project:[/red] {e}")
        raise typer.Exit(code=1) from e

    console.print(f"[green]Initialized docrag project[/green] at {data_dir}")
    console.print("\nNext steps:")
    console.print("  docrag build <path>     Index markdown documents")
    console.print("  docrag search <query>   Search the index")


@app.command()
def status() -> None:
    """Show project status: indexed documents and chunks."""
    try:
        st = Project.discover().status()
    except DocragError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(code=1) from e

    if st is None:
        console.print(
            "[yellow]No docrag project found.[/yellow] Run [bold]docrag init[/bold] first."
        )
        raise typer.Exit(code=1)

    console.print(f"[bold]docrag project:[/bold] {st.root.name}")

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("metric", style="dim")
    table.add_column("value", style="bold")
    table.add_row("Documents", str(st.documents))
    table.add_row("Chunks", str(st.chunks))
    table.add_row("Embedding", f"{st.config.embedding.provider}/{st.config.embedding.model}")
    console.print(table)

    if st.documents == 0:
        console.print(
            "\n[dim]No documents indexed yet. Run [bold]docrag build <path>[/bold] to start.[/dim]"
        )


@app.command()
def build(
    paths: Annotated[
        list[Path],
        typer.Argument(help="Markdown files or directories to index"),
    ],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Re-index unchanged documents"),
    ] = False,
) -> None:
    """Index documents: chunk, embed, and store."""
    project, config = _require_project()
    manifest = load_manifest(project.manifest_path)

    try:
        chunker = DocumentChunker(config.chunk)
        embedder = default_registry.create(config)
    except DocragError as e:
        console.print(f"[red]Failed to initialize pipeline:[/red] {e}")
        raise typer.Exit(code=1) from e

    indexed = 0
    skipped = 0
    failed = 0
    total_chunks = 0

    with _open_store(project, config) as store:
        pipeline = Pipeline(chunker=chunker, embedder=embedder, store=store)
        try:
            for document in iter_documents(paths):
                if not force and not manifest.is_changed(document.url, document.content_hash):
                    console.print(f"  [dim]Skipped {document.title} (unchanged)[/dim]")
                    skipped += 1
                    continue

                console.print(f"Indexing [bold]{document.title}[/bold] ...")
                try:
                    count = pipeline.index_document(document)
                except DocragError as e:
                    console.print(f"  [red]Error indexing {document.url}:[/red] {e}")
                    logger.error("Failed to index %s: %s", document.url, e)
                    failed += 1
                    continue

                manifest.add_document(make_entry(document, count))
                save_manifest(manifest, project.manifest_path)
                console.print(f"  [green]Indexed[/green] ({count} chunks)")
                indexed += 1
                total_chunks += count
        except DocragError as e:
            console.print(f"[red]Failed to load documents:[/red] {e}")
            raise typer.Exit(code=1) from e

    if indexed:
        console.print(f"\n[green]Indexed {indexed} document(s)[/green] ({total_chunks} chunks)")
    elif skipped:
        console.print("\n[dim]No changed documents to index.[/dim]")
    if failed:
        raise typer.Exit(code=1)


@app.command()
def search(
    query: Annotated[str, typer.Argument(help="Search query")],
    top_k: Annotated[
        int | None,
        typer.Option("--top-k", "-k", help="Number of results (default from config)"),
    ] = None,
) -> None:
    """Search the index for passages relevant to a query."""
    if not query.strip():
        console.print("[red]Search query is required.[/red]")
        raise typer.Exit(code=1)

    project, config = _require_project()
    k = top_k if top_k is not None else config.search.top_k

    try:
        embedder = default_registry.create(config)
    except DocragError as e:
        console.print(f"[red]Failed to initialize embedder:[/red] {e}")
        raise typer.Exit(code=1) from e

    with _open_store(project, config) as store:
        pipeline = Pipeline(chunker=DocumentChunker(config.chunk), embedder=embedder, store=store)
        try:
            results = pipeline.search(query, top_k=k)
        except DocragError as e:
            console.print(f"[red]Search failed:[/red] {e}")
            raise typer.Exit(code=1) from e

    if not results:
        console.print("No results found.")
        return

    console.print(f"Found {len(results)} results:\n")
    for rank, result in enumerate(results, start=1):
        console.print(f"{rank}. [bold]{result.title}[/bold]")
        console.print(f"   Score: {result.score:.3f}")
        console.print(f"   URL: {result.url}")
        console.print(f"   Snippet: {result.snippet}", markup=False)
        console.print()


@app.command()
def stats() -> None:
    """Show vector store statistics."""
    project, config = _require_project()
    with _open_store(project, config) as store:
        st = store.get_stats()

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("metric", style="dim")
    table.add_column("value", style="bold")
    table.add_row("Chunks", str(st.chunk_count))
    table.add_row("Dimensions", str(st.dimensions))
    console.print(table)


@app.command()
def clear(
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip the confirmation prompt"),
    ] = False,
) -> None:
    """Delete every chunk from the index."""
    project, config = _require_project()
    if not yes:
        typer.confirm("Delete all indexed chunks?", abort=True)

    with _open_store(project, config) as store:
        try:
            store.clear()
        except DocragError as e:
            console.print(f"[red]Failed to clear index:[/red] {e}")
            raise typer.Exit(code=1) from e

    manifest = load_manifest(project.manifest_path)
    manifest.clear()
    save_manifest(manifest, project.manifest_path)
    console.print("[green]Index cleared.[/green]")
