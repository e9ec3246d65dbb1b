"""
jsoncomposer: Concept graph discovery and composition for JSON-based Web APIs

Infers a concept graph per API from example request/output JSON samples,
then composes the graphs of several APIs into one graph with similarity
edges between candidate matching concepts. Composed graphs are encoded as
GEXF.
"""

__version__ = "0.1.0"
__author__ = "jsoncomposer Team"
__license__ = "MIT"

from jsoncomposer.discovery import (
    ComposedGraph,
    ConceptGraph,
    SchemaDiscoverer,
    SimilarityComposer,
    SourceGroup,
)
from jsoncomposer.encoding import GexfEncoder
from jsoncomposer.pipeline import CompositionPipeline, CompositionResult
from jsoncomposer.preprocessing import digest_sources, load_sources_file

__all__ = [
    # Core API
    "SchemaDiscoverer",
    "SimilarityComposer",
    "GexfEncoder",
    # Pipeline API
    "CompositionPipeline",
    "CompositionResult",
    # Models
    "SourceGroup",
    "ConceptGraph",
    "ComposedGraph",
    # Source adapters
    "digest_sources",
    "load_sources_file",
]
