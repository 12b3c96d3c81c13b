"""Command-line interface for the skill search system.

Commands:
- search: Keyword, semantic or hybrid search
- suggest: Name completions for a prefix
- import: Load skills from a JSON file
- embed: Regenerate stale embeddings
- embed-status: Show embedding coverage
- localize: Fill missing localized names and descriptions
- info: Show system information
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from skillsearch.config.loader import get_default_config_path, load_config
from skillsearch.config.schema import AppConfig
from skillsearch.entities import SearchMode, SearchOptions, Skill
from skillsearch.observability.logging import configure_from_config, get_logger
from skillsearch.pipelines.search import SearchError
from skillsearch.providers import ProviderError
from skillsearch.storage import StorageError

app = typer.Typer(
    name="skillsearch",
    help="Hybrid keyword and semantic search over a skill catalogue",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)

_SKILL_LIST = TypeAdapter(list[Skill])


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    mode: SearchMode = typer.Option(SearchMode.HYBRID, "--mode", "-m", help="Search mode"),
    limit: int = typer.Option(12, "--limit", "-n", help="Results per page"),
    page: int = typer.Option(1, "--page", "-p", min=1, help="Page number"),
    category: Optional[str] = typer.Option(None, "--category", help="Category slug"),
    tags: Optional[list[str]] = typer.Option(None, "--tag", help="Tag slug (repeatable)"),
    min_stars: Optional[int] = typer.Option(None, "--min-stars", min=0, help="Minimum star count"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """Search skills."""
    options = SearchOptions(
        limit=limit,
        offset=(page - 1) * limit,
        category_slug=category,
        tag_slugs=tags or None,
        min_popularity=min_stars,
    )
    asyncio.run(_search_async(query, mode, options, config_file))


async def _search_async(query: str, mode: SearchMode, options: SearchOptions, config_file: Optional[Path]):
    """Async implementation of search command."""
    from skillsearch.service import initialize_search

    config = _load_config(config_file)
    pipeline = await _open(initialize_search(config))

    try:
        try:
            response = await pipeline.search(query, mode, options)
        except (SearchError, StorageError) as e:
            console.print(f"[red]Search failed: {escape(str(e))}[/red]")
            raise typer.Exit(1)

        if not response.results:
            console.print("[yellow]No results found[/yellow]")
            return

        table = Table(title=f"Results for '{query}' ({mode.value}, {response.total} total)")
        table.add_column("#", style="dim")
        table.add_column("Skill", style="cyan")
        table.add_column("Score", style="green", justify="right")
        table.add_column("Stars", justify="right")
        table.add_column("Why")

        for i, result in enumerate(response.results, options.offset + 1):
            name = result.skill.name
            if result.skill.name_localized:
                name = f"{name} ({result.skill.name_localized})"
            table.add_row(
                str(i), escape(name), f"{result.score:.1f}", str(result.skill.stars), result.match_reason
            )

        console.print(table)

    finally:
        await pipeline.embedding_provider.close()
        await pipeline.store.close()


@app.command()
def suggest(
    query: str = typer.Argument(..., help="Name prefix"),
    limit: int = typer.Option(5, "--limit", "-n", help="Maximum suggestions"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """Suggest skill names starting with a prefix."""
    asyncio.run(_suggest_async(query, limit, config_file))


async def _suggest_async(query: str, limit: int, config_file: Optional[Path]):
    from skillsearch.service import initialize_search

    config = _load_config(config_file)
    pipeline = await _open(initialize_search(config))

    try:
        suggestions = await pipeline.suggest(query, limit)
        if not suggestions:
            console.print("[yellow]No suggestions[/yellow]")
        for name in suggestions:
            console.print(name)
    finally:
        await pipeline.embedding_provider.close()
        await pipeline.store.close()


@app.command("import")
def import_skills(
    path: Path = typer.Argument(..., help="JSON file holding a list of skills"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """Import skills from a JSON file, replacing skills with the same id."""
    asyncio.run(_import_async(path, config_file))


async def _import_async(path: Path, config_file: Optional[Path]):
    """Async implementation of import command."""
    from skillsearch.service import initialize_store

    config = _load_config(config_file)

    if not path.is_file():
        console.print(f"[red]File not found: {path}[/red]")
        raise typer.Exit(1)

    try:
        skills = _SKILL_LIST.validate_json(path.read_bytes())
    except ValidationError as e:
        console.print(f"[red]Invalid skill file: {e.error_count()} error(s)[/red]")
        console.print(str(e), markup=False)
        raise typer.Exit(1)

    store = await _open(initialize_store(config))
    try:
        await store.upsert_skills(skills)
    except StorageError as e:
        console.print(f"[red]Error importing skills: {e.message}[/red]")
        raise typer.Exit(1)
    finally:
        await store.close()

    logger.info("skills_imported", count=len(skills), path=str(path))
    console.print(f"[green]✓[/green] Imported {len(skills)} skill(s)")


@app.command()
def embed(
    skill_id: Optional[str] = typer.Option(None, "--skill-id", help="Refresh a single skill"),
    force: bool = typer.Option(False, "--force", "-f", help="Regenerate fresh embeddings too"),
    limit: int = typer.Option(10, "--limit", "-n", help="Maximum skills per run"),
    delay: float = typer.Option(0.0, "--delay", help="Seconds between embedding requests"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """Regenerate stale skill embeddings."""
    asyncio.run(_embed_async(skill_id, force, limit, delay, config_file))


async def _embed_async(
    skill_id: Optional[str],
    force: bool,
    limit: int,
    delay: float,
    config_file: Optional[Path],
):
    from skillsearch.service import initialize_embedding_refresh

    config = _load_config(config_file)
    pipeline = await _open(initialize_embedding_refresh(config, request_delay=delay))

    try:
        report = await pipeline.refresh(skill_id=skill_id, force=force, limit=limit)
    except StorageError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)
    finally:
        await pipeline.embedding_provider.close()
        await pipeline.store.close()

    if report.items and all(item.skipped for item in report.items):
        console.print("[green]Embedding is up to date[/green]")
        return

    for item in report.items:
        if item.success:
            console.print(f"  [green]✓[/green] {item.skill_name}")
        else:
            console.print(f"  [red]✗[/red] {item.skill_name}: {item.error}")

    console.print(
        f"\nProcessed {report.processed}: {report.succeeded} succeeded, "
        f"{report.failed} failed, {report.remaining} remaining"
    )


@app.command("embed-status")
def embed_status(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """Show embedding coverage of active skills."""
    asyncio.run(_embed_status_async(config_file))


async def _embed_status_async(config_file: Optional[Path]):
    from skillsearch.service import initialize_embedding_refresh

    config = _load_config(config_file)
    pipeline = await _open(initialize_embedding_refresh(config))

    try:
        status = await pipeline.status()
    finally:
        await pipeline.embedding_provider.close()
        await pipeline.store.close()

    table = Table(title="Embedding Status")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")

    table.add_row("Active skills", str(status.total))
    table.add_row("With embedding", str(status.with_embedding))
    table.add_row("Without embedding", str(status.without_embedding))
    table.add_row(f"Older than {config.search.freshness_days} days", str(status.outdated))
    table.add_row("Coverage", f"{status.coverage:.1f}%")

    console.print(table)


@app.command()
def localize(
    limit: int = typer.Option(10, "--limit", "-n", help="Maximum skills per run"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """Translate missing localized names and descriptions."""
    asyncio.run(_localize_async(limit, config_file))


async def _localize_async(limit: int, config_file: Optional[Path]):
    from skillsearch.service import initialize_localization

    config = _load_config(config_file)
    pipeline = await _open(initialize_localization(config))

    try:
        report = await pipeline.localize_missing(limit=limit)
    finally:
        await pipeline.llm_provider.close()
        await pipeline.store.close()

    console.print(f"[green]✓[/green] Localized {report.updated} of {report.examined} skill(s)")


@app.command()
def info(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """Show system information and configuration."""
    config = _load_config(config_file)

    table = Table(title="Skill Search Information")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Log Level", config.logging.level.value)
    table.add_row("Embedding Provider", config.embedding.provider.value)
    table.add_row("Embedding Model", config.embedding.model_name)
    table.add_row("Embedding API Key", "set" if config.embedding.api_key else "not set (hash fallback)")
    table.add_row("LLM Provider", config.llm.provider.value)
    table.add_row("LLM Model", config.llm.model_name)
    table.add_row("Skill Store", config.store.store_type.value)
    table.add_row("Connection", config.store.connection_string)
    table.add_row(
        "Hybrid Weights",
        f"keyword {config.search.keyword_weight} / semantic {config.search.semantic_weight}",
    )
    table.add_row("Semantic Threshold", str(config.search.semantic_threshold))

    console.print(table)


async def _open(pending):
    """Await component initialization, exiting on failure."""
    try:
        return await pending
    except (StorageError, ProviderError) as e:
        console.print(f"[red]Error initializing components: {e.message}[/red]")
        raise typer.Exit(1)


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """Load configuration and setup logging."""
    if config_file is None:
        config_file = get_default_config_path()

    config = load_config(config_file)
    configure_from_config(config.logging)

    return config


if __name__ == "__main__":
    app()
