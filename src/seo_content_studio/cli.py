"""
Command-line interface for SEO Content Studio.

Provides commands for scoring a piece of content from local files and
for preparing the content database.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import StudioConfig
from .errors import KeywordLoadError, ProviderError, ProviderUnavailable, StudioError
from .keyword_loader import load_keywords
from .models import normalize_keywords
from .scoring import ScoreAggregator, create_analysis_provider
from .store import ContentStore
from .text_metrics import BasicMetrics, ChecklistItem, compute_basic_metrics, generate_checklist

console = Console()


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


@click.group()
@click.version_option(__version__, prog_name="seo-studio")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output.",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """
    SEO Content Studio - Draft, score and track content for search engines.
    """
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@main.command()
@click.option("--title", "-t", type=str, required=True, help="Content title.")
@click.option(
    "--body",
    "-b",
    "body_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Path to a plain-text file with the content body.",
)
@click.option(
    "--keyword",
    "-k",
    "keywords",
    type=str,
    multiple=True,
    help="Target keyword (repeatable).",
)
@click.option(
    "--keywords-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Keyword file (CSV or Excel) to add target keywords from.",
)
@click.option("--meta", "meta_description", type=str, default="", help="Meta description.")
@click.option(
    "--provider",
    type=click.Choice(["auto", "anthropic", "heuristic"]),
    default=None,
    help="Analysis provider. Defaults to SEO_STUDIO_AI_PROVIDER or auto.",
)
@click.option("--json", "as_json", is_flag=True, default=False, help="Print JSON instead of tables.")
@click.pass_context
def analyze(
    ctx: click.Context,
    title: str,
    body_file: Path,
    keywords: tuple[str, ...],
    keywords_file: Optional[Path],
    meta_description: str,
    provider: Optional[str],
    as_json: bool,
) -> None:
    """
    Score a piece of content without storing it.

    Examples:

        seo-studio analyze -t "SEO Tips for Beginners" -b post.txt -k "seo tips"

        seo-studio analyze -t "Coffee Brewing Guide" -b post.txt --keywords-file kw.csv --json
    """
    verbose = ctx.obj.get("verbose", False)
    try:
        body = body_file.read_text(encoding="utf-8")
        keyword_list = list(keywords)
        if keywords_file:
            keyword_list.extend(load_keywords(keywords_file))
        keyword_list = normalize_keywords(keyword_list)

        overrides = {"ai_provider": provider} if provider else {}
        config = StudioConfig.from_env(**overrides)
        aggregator = ScoreAggregator(create_analysis_provider(config))

        metrics = compute_basic_metrics(title, body, keyword_list)
        checklist = generate_checklist(title, body, meta_description, keyword_list)
        if as_json:
            result = aggregator.aggregate(title, body, keyword_list)
        else:
            with console.status("[bold green]Analyzing content..."):
                result = aggregator.aggregate(title, body, keyword_list)

    except KeywordLoadError as e:
        console.print(f"[red]Keyword loading error:[/red] {e}")
        sys.exit(1)
    except (ProviderUnavailable, ProviderError) as e:
        console.print(f"[red]Analysis provider error:[/red] {e}")
        sys.exit(1)
    except (StudioError, ValueError, OSError) as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps({
            "overall_score": result.overall_score,
            "scores": result.scores.to_dict(),
            "basic_metrics": metrics.to_dict(),
            "checklist": [item.to_dict() for item in checklist],
            "improvements": [imp.to_dict() for imp in result.improvements],
            "insights": result.insights,
        }, indent=2))
        return

    console.print(Panel.fit(
        f"[bold blue]{title}[/bold blue]\n"
        f"Overall score: [bold]{result.overall_score}[/bold]/100",
        border_style="blue",
    ))
    _display_metrics(metrics, checklist)
    _display_improvements(result.improvements)
    if verbose and result.insights:
        console.print(f"\n[dim]{result.insights}[/dim]")


@main.command("init-db")
@click.option(
    "--database-url",
    type=str,
    envvar="SEO_STUDIO_DATABASE_URL",
    default=None,
    help="SQLAlchemy database URL. Defaults to the configured database.",
)
def init_db(database_url: Optional[str]) -> None:
    """Create the content, revision and analysis tables."""
    overrides = {"database_url": database_url} if database_url else {}
    try:
        config = StudioConfig.from_env(**overrides)
        ContentStore.from_config(config).create_all()
    except Exception as e:
        console.print(f"[red]Database error:[/red] {e}")
        sys.exit(1)
    console.print(f"[bold green]Success![/bold green] Tables ready at: {config.database_url}")


def _display_metrics(metrics: BasicMetrics, checklist: list[ChecklistItem]) -> None:
    table = Table(title="Content Metrics", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Words", str(metrics.word_count))
    table.add_row("Sentences", str(metrics.sentence_count))
    table.add_row("Paragraphs", str(metrics.paragraph_count))
    table.add_row("Reading time", f"{metrics.reading_time} min")
    table.add_row("Readability", f"{metrics.readability.score} ({metrics.readability.level})")
    table.add_row("Keyword density", f"{metrics.keyword_analysis.density:.2f}%")
    table.add_row("Title score", str(metrics.title_analysis.score))
    console.print(table)

    check_table = Table(title="SEO Checklist", show_header=True)
    check_table.add_column("Check", style="cyan")
    check_table.add_column("Passed")
    check_table.add_column("Current", style="yellow")
    for item in checklist:
        passed = "[green]Yes[/green]" if item.passed else "[red]No[/red]"
        check_table.add_row(item.item, passed, item.current)
    console.print(check_table)


def _display_improvements(improvements) -> None:
    if not improvements:
        return
    table = Table(title="Suggested Improvements", show_header=True)
    table.add_column("Priority", style="magenta")
    table.add_column("Category", style="cyan")
    table.add_column("Suggestion")
    for imp in improvements:
        table.add_row(imp.priority, imp.category, imp.suggestion)
    console.print(table)


def run_cli() -> None:
    """Entry point for the CLI."""
    main(obj={})


if __name__ == "__main__":
    run_cli()
