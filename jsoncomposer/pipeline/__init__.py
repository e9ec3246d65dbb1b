"""
Pipeline module for jsoncomposer.

CompositionPipeline runs discovery for every source group, composes the
resulting concept graphs and encodes the composed graph.
"""

from jsoncomposer.pipeline.composition_pipeline import CompositionPipeline, CompositionResult

__all__ = [
    'CompositionPipeline',
    'CompositionResult',
]
