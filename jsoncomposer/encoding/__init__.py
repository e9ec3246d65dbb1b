"""Graph encoders for composed concept graphs."""

from jsoncomposer.encoding.gexf_encoder import EdgeKind, GexfEncoder, NodeKind, encode_gexf

__all__ = [
    'GexfEncoder',
    'NodeKind',
    'EdgeKind',
    'encode_gexf',
]
