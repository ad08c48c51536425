"""Command-line interface for Miaobi."""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from miaobi import __version__
from miaobi.config import AISettings, Provider, get_settings
from miaobi.core.exporter import WordExporter
from miaobi.core.structure import layout, render_svg, render_tree
from miaobi.formats import ExportError
from miaobi.llm.client import AnalysisClient, AnalysisError
from miaobi.llm.schema import AnalysisResult
from miaobi.settings_store import load_ai_settings, save_ai_settings

app = typer.Typer(
    name="miaobi",
    help="AI writing assistant: analyze articles and export them to Word.",
    add_completion=False,
)
settings_app = typer.Typer(help="Show or change the saved AI provider settings.")
app.add_typer(settings_app, name="settings")

console = Console()
err_console = Console(stderr=True)

VIRAL_COLORS = {"High": "green", "Medium": "yellow", "Low": "red"}


def configure_logging(verbose: bool) -> None:
    """Route log records through rich; DEBUG when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
    # LiteLLM and httpx are chatty at DEBUG
    for noisy in ("LiteLLM", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"Miaobi v{__version__}")
        raise typer.Exit()


def mask_key(api_key: str) -> str:
    """Hide all but the last four characters of an API key."""
    if not api_key:
        return "(not set)"
    if len(api_key) <= 4:
        return "*" * len(api_key)
    return "*" * (len(api_key) - 4) + api_key[-4:]


def apply_overrides(current: AISettings, **overrides) -> AISettings:
    """Return current with every non-None override applied.

    Switching provider without naming a model selects that provider's
    default model.
    """
    updates = {k: v for k, v in overrides.items() if v is not None}
    if "provider" in updates and updates["provider"] != current.provider:
        updates.setdefault("model", "")
    return AISettings.model_validate({**current.model_dump(), **updates})


def read_article(path: Path) -> str:
    """Read a UTF-8 article, exiting with an error if it cannot be read."""
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        err_console.print(f"[red]Error:[/red] {path.name} is not UTF-8 text")
        raise typer.Exit(1)
    except OSError as e:
        err_console.print(f"[red]Error:[/red] cannot read {path.name}: {e}")
        raise typer.Exit(1)


def print_analysis(result: AnalysisResult, max_depth: int) -> None:
    """Render an analysis for the terminal."""
    scores = result.scores
    table = Table(title="Scores", show_header=True)
    for column in ("Total", "Readability", "Logic", "Emotion", "Creativity"):
        table.add_column(column, justify="right")
    table.add_row(
        *(f"{value:g}" for value in (
            scores.total, scores.readability, scores.logic,
            scores.emotion, scores.creativity,
        ))
    )
    console.print(table)

    console.print(Panel(result.summary, title="Summary"))
    console.print(f"[bold]Tone:[/bold] {result.tone_analysis}")
    console.print(f"[bold]Keywords:[/bold] {', '.join(result.keywords)}")

    if result.corrections:
        corrections = Table(title=f"Corrections ({len(result.corrections)})")
        corrections.add_column("Type")
        corrections.add_column("Original")
        corrections.add_column("Suggestion")
        corrections.add_column("Reason")
        for item in result.corrections:
            corrections.add_row(item.type, item.original, item.suggestion, item.reason)
        console.print(corrections)
    else:
        console.print("[green]No corrections suggested.[/green]")

    title = result.title_analysis
    viral = VIRAL_COLORS.get(title.viral_potential, "white")
    console.print(
        f"\n[bold]Title score:[/bold] {title.score:g}  "
        f"[bold]Viral potential:[/bold] [{viral}]{title.viral_potential}[/{viral}]"
    )
    console.print(title.critique)
    for suggestion in title.suggestions:
        console.print(f"  • {suggestion}")
    if title.examples:
        console.print("[bold]Alternative titles:[/bold]")
        for example in title.examples:
            console.print(f"  - {example}")

    console.print()
    console.print(render_tree(result.structure, max_depth=max_depth))
    console.print(Panel(result.polished_content, title="Polished"))


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """
    Analyze articles with Gemini or an OpenAI-compatible model, and export
    markdown articles (with images) to Word.

    Examples:

        miaobi analyze article.md --title "My title"

        miaobi analyze article.md --provider openai --model gpt-4o-mini --json

        miaobi export article.md --output "我的文章"

        miaobi settings set --provider gemini --api-key KEY
    """
    configure_logging(verbose)


@app.command()
def analyze(
    path: Path = typer.Argument(..., help="Markdown or text file to analyze", exists=True, dir_okay=False),
    title: str = typer.Option("", "--title", "-t", help="Article title"),
    provider: Optional[Provider] = typer.Option(None, "--provider", "-p", help="AI provider"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model name"),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="API key for this run"),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Proxy / compatible endpoint"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw analysis JSON"),
    tree_svg: Optional[Path] = typer.Option(
        None, "--tree-svg", help="Also write the logic-structure tree as SVG"
    ),
) -> None:
    """Analyze an article: scores, corrections, titles, structure and rewrite."""
    settings = get_settings()
    ai = apply_overrides(
        load_ai_settings(),
        provider=provider,
        model=model,
        api_key=api_key,
        base_url=base_url,
    )
    content = read_article(path)

    try:
        with console.status(f"Analyzing with {ai.provider.value} / {ai.resolved_model}..."):
            result = AnalysisClient(ai).analyze(title, content)
    except AnalysisError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if as_json:
        console.print_json(json.dumps(result.to_dict(), ensure_ascii=False))
    else:
        console.print(f"[dim]{len(content.strip())} 字[/dim]")
        print_analysis(result, settings.structure_max_depth)

    if tree_svg:
        tree = layout(result.structure, max_depth=settings.structure_max_depth)
        tree_svg.write_text(render_svg(tree), encoding="utf-8")
        console.print(f"[green]Structure tree:[/green] {tree_svg}")


@app.command("export")
def export_command(
    path: Path = typer.Argument(..., help="Markdown file to export", exists=True, dir_okay=False),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Document name (.docx is appended if missing); defaults to the input name",
    ),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output-dir",
        "-d",
        help="Directory to write to (default: next to the input)",
    ),
    max_width: Optional[int] = typer.Option(
        None,
        "--max-width",
        min=1,
        help="Maximum image width in pixels (default: 550)",
    ),
) -> None:
    """Export a markdown article, including its images, to a Word document."""
    content = read_article(path)
    if not content.strip():
        err_console.print(f"[red]Error:[/red] {path.name} is empty")
        raise typer.Exit(1)

    exporter = WordExporter(max_image_width=max_width, base_dir=path.parent)
    try:
        with console.status("Exporting..."):
            written = exporter.export(
                content,
                output or path.stem,
                output_dir or path.parent,
            )
    except ExportError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]Success:[/green] {written}")


@settings_app.command("show")
def settings_show() -> None:
    """Show the saved provider settings."""
    ai = load_ai_settings()
    table = Table(show_header=False)
    table.add_row("Provider", ai.provider.value)
    table.add_row("Model", ai.resolved_model)
    table.add_row("API key", mask_key(ai.api_key))
    table.add_row("Base URL", ai.base_url or "(default)")
    table.add_row("File", str(get_settings().settings_path))
    console.print(table)


@settings_app.command("set")
def settings_set(
    provider: Optional[Provider] = typer.Option(None, "--provider", "-p"),
    model: Optional[str] = typer.Option(None, "--model", "-m"),
    api_key: Optional[str] = typer.Option(None, "--api-key"),
    base_url: Optional[str] = typer.Option(None, "--base-url"),
) -> None:
    """Update the saved provider settings."""
    updated = apply_overrides(
        load_ai_settings(),
        provider=provider,
        model=model,
        api_key=api_key,
        base_url=base_url,
    )
    path = save_ai_settings(updated)
    console.print(f"[green]Saved:[/green] {path}")


if __name__ == "__main__":
    app()
