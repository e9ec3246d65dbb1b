"""
Shared utility functions for CLI execution commands.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from jsoncomposer.discovery.models import ComposedGraph, Concept, ConceptGraph
from jsoncomposer.utils.constants import DEFAULT_LOG_LEVEL


console = Console()


def configure_logging(level: str = DEFAULT_LOG_LEVEL):
    """Route loguru output to stderr at the given level."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def _concept_label(concept: Concept) -> str:
    return f"[bold cyan]{escape(concept.name)}[/bold cyan] [dim]({concept.observations} samples)[/dim]"


def build_concept_tree(graph: ConceptGraph) -> Tree:
    """Render a concept graph as a rich Tree (attributes, then nested concepts)."""
    tree = Tree(f"[bold blue]{escape(graph.name)}[/bold blue] [dim]{graph.n_pairs} pairs[/dim]")
    # explicit stack of (tree node, concept handle)
    stack = [(tree, 0)]
    while stack:
        parent_node, handle = stack.pop()
        concept = graph.get(handle)
        node = parent_node if handle == 0 else parent_node.add(_concept_label(concept))

        for attr in concept.attributes.values():
            flags = []
            if attr.optional:
                flags.append("optional")
            if attr.nullable:
                flags.append("nullable")
            suffix = f" [yellow]{', '.join(flags)}[/yellow]" if flags else ""
            node.add(f"{escape(attr.name)}: [green]{escape(attr.type)}[/green]{suffix}")

        for edge in reversed(list(concept.edges.values())):
            stack.append((node, edge.target))

    return tree


def display_summary(composed: ComposedGraph):
    """Print concept counts per group and the similarity edges."""
    groups = Table(title="Discovered concept graphs")
    groups.add_column("Group", style="cyan")
    groups.add_column("Pairs", justify="right")
    groups.add_column("Concepts", justify="right")
    groups.add_column("Attributes", justify="right")
    for graph in composed.graphs:
        groups.add_row(escape(graph.name), str(graph.n_pairs), str(len(graph.concepts)), str(graph.attribute_count()))
    console.print(groups)

    if not composed.similarity_edges:
        console.print("[dim]No similarity edges above threshold[/dim]")
        return

    edges = Table(title="Similarity edges")
    edges.add_column("Source")
    edges.add_column("Target")
    edges.add_column("Score", justify="right")
    edges.add_column("Basis")
    for edge in composed.similarity_edges:
        edges.add_row(
            escape(f"{edge.source.graph}:{composed.concept(edge.source).name}"),
            escape(f"{edge.target.graph}:{composed.concept(edge.target).name}"),
            f"{edge.score:.3f}",
            ", ".join(b.value for b in edge.basis),
        )
    console.print(edges)


def write_output(text: str, output: Optional[Path] = None):
    """Write text to a file, or print it when no file is given."""
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text, encoding="utf-8")
        console.print(f"[green]✓ GEXF saved to:[/green] {escape(str(output))}")
    else:
        # Plain print keeps the document free of rich markup
        print(text)
