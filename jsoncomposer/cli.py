"""
Command-line interface for jsoncomposer.

Discovers concept graphs from JSON samples and composes them into GEXF.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from jsoncomposer import __version__
from jsoncomposer.exe import configure_logging, execute_compose, execute_discover
from jsoncomposer.utils.constants import DEFAULT_LOG_LEVEL

app = typer.Typer(
    name="jsoncomposer",
    help="jsoncomposer: Concept graph discovery and composition for JSON-based Web APIs",
    add_completion=False,
)
console = Console()


@app.callback()
def main_callback(
    log_level: str = typer.Option(DEFAULT_LOG_LEVEL, "--log-level", "-l", help="Log level (DEBUG, INFO, WARNING, ERROR)"),
):
    """Configure logging for every command."""
    configure_logging(log_level)


@app.command()
def version():
    """Show version information."""
    console.print(f"[bold blue]jsoncomposer[/bold blue] version {__version__}")


@app.command()
def compose(
    sources: Path = typer.Argument(..., help="YAML/JSON file with the sources mapping"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Config name or .yml path (default: built-in settings)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write GEXF to this file instead of stdout"),
    threshold: Optional[float] = typer.Option(None, "--threshold", "-t", help="Override the similarity threshold"),
    parallel: bool = typer.Option(True, "--parallel/--no-parallel", help="Discover groups in parallel"),
):
    """Discover every group and compose them into one GEXF graph."""
    execute_compose(
        sources=sources,
        config=config,
        output=output,
        threshold=threshold,
        parallel=parallel,
    )


@app.command()
def discover(
    sources: Path = typer.Argument(..., help="YAML/JSON file with the sources mapping"),
    group: Optional[str] = typer.Option(None, "--group", "-g", help="Only discover this group"),
):
    """Print the concept graph discovered for each group."""
    execute_discover(sources=sources, group=group)


def main():
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
