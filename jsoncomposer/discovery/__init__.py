"""
Schema Discovery Module for jsoncomposer.

This module infers concept graphs from example JSON request/output pairs and
composes the graphs of several APIs into one.

Main Components:
- SchemaDiscoverer: Infers the concept graph of one source group
- SimilarityComposer: Unions concept graphs and adds cross-API similarity edges
- Models: Sample, SamplePair, SourceGroup, Concept, ConceptGraph, ComposedGraph

Example Usage:
    from jsoncomposer.discovery import SchemaDiscoverer, SimilarityComposer, SourceGroup

    orders = SourceGroup(name='Orders')
    orders.add_pair('{}', '{"id": 1, "items": [{"sku": "A", "qty": 2}]}')

    graph = SchemaDiscoverer().discover(orders)
    composed = SimilarityComposer().compose([graph])
"""

from jsoncomposer.discovery.exceptions import (
    DuplicateGroupError,
    EmptyGroupError,
    JsonComposerError,
    MalformedSampleError,
    NoGraphsError,
    NoGroupsError,
)
from jsoncomposer.discovery.models import (
    Attribute,
    ComposedGraph,
    Concept,
    ConceptGraph,
    ConceptRef,
    ContainmentEdge,
    Sample,
    SamplePair,
    SampleRole,
    SimilarityBasis,
    SimilarityEdge,
    SourceGroup,
)
from jsoncomposer.discovery.schema_discoverer import SchemaDiscoverer
from jsoncomposer.discovery.similarity_composer import SimilarityComposer

__all__ = [
    'SchemaDiscoverer',
    'SimilarityComposer',
    'Sample',
    'SamplePair',
    'SampleRole',
    'SourceGroup',
    'Attribute',
    'ContainmentEdge',
    'Concept',
    'ConceptGraph',
    'ConceptRef',
    'SimilarityBasis',
    'SimilarityEdge',
    'ComposedGraph',
    'JsonComposerError',
    'MalformedSampleError',
    'EmptyGroupError',
    'NoGroupsError',
    'NoGraphsError',
    'DuplicateGroupError',
]
