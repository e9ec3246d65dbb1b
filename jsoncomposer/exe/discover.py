"""
Discover command execution - prints the concept graph of each group.
"""

import sys
from pathlib import Path
from typing import Optional

from rich.markup import escape

from jsoncomposer.discovery import SchemaDiscoverer
from jsoncomposer.discovery.exceptions import JsonComposerError
from jsoncomposer.preprocessing import load_sources_file
from .utils import build_concept_tree, console


def execute_discover(sources: Path, group: Optional[str] = None):
    """Execute discovery for every group (or one named group)."""
    try:
        groups = load_sources_file(sources)
        if group is not None:
            groups = [g for g in groups if g.name == group]
            if not groups:
                console.print(f"[bold red]Error:[/bold red] no group named '{escape(group)}' in {escape(str(sources))}")
                sys.exit(1)

        discoverer = SchemaDiscoverer()
        for source_group in groups:
            graph = discoverer.discover(source_group)
            console.print(build_concept_tree(graph))

    except (JsonComposerError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        sys.exit(1)
