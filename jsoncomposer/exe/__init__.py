"""
Execution module for CLI commands.

This module contains CLI executables for jsoncomposer operations:
- compose: Discover and compose all groups of a sources file into GEXF
- discover: Print the concept graph discovered for each group
"""

from .compose import execute_compose
from .discover import execute_discover
from .utils import build_concept_tree, configure_logging, display_summary, write_output


__all__ = [
    "execute_compose",
    "execute_discover",
    "build_concept_tree",
    "configure_logging",
    "display_summary",
    "write_output",
]
