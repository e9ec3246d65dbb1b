"""
Compose command execution - discovers and composes the groups of a sources file.
"""

import sys
from pathlib import Path
from typing import Optional

from rich.markup import escape

from jsoncomposer.discovery.exceptions import JsonComposerError
from jsoncomposer.pipeline import CompositionPipeline
from jsoncomposer.preprocessing import load_sources_file
from jsoncomposer.utils.config import load_config
from .utils import console, display_summary, write_output


def execute_compose(
    sources: Path,
    config: Optional[str] = None,
    output: Optional[Path] = None,
    threshold: Optional[float] = None,
    parallel: bool = True,
):
    """Execute discovery + composition and write the GEXF graph."""
    try:
        settings = load_config(config)
        if threshold is not None:
            settings["composition"]["similarity_threshold"] = threshold
        if not parallel:
            settings["discovery"]["enable_parallel"] = False

        groups = load_sources_file(sources)
        pipeline = CompositionPipeline(config=settings)

        with console.status("[bold green]Discovering and composing concept graphs..."):
            result = pipeline.run(groups)

        write_output(result.gexf, output)
        if output:
            display_summary(result.composed)
            console.print(
                f"\n[dim]Composed {len(result.composed.graphs)} groups in "
                f"{result.timing['total_duration_seconds']:.3f}s[/dim]"
            )

    except (JsonComposerError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        sys.exit(1)
