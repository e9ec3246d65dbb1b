"""
GEXF encoder for composed concept graphs.

Renders a ComposedGraph as GEXF 1.2 (http://www.gexf.net/1.2draft):
- every Concept becomes a node of kind "concept"
- every primitive attribute becomes its own node of kind "attribute"
  ("unknown" when only nulls were ever seen), linked to its concept by a
  containment edge
- every containment edge and every similarity edge becomes an edge; the
  "kind" attvalue tells them apart and similarity edges carry their score

For K concepts, A attributes, C containment edges and S similarity edges the
document has K + A nodes and A + C + S edges. Labels and attvalues come from
arbitrary JSON keys, so characters XML 1.0 cannot carry are replaced by
U+FFFD before they reach the tree.
"""

from itertools import count
import re
from typing import Dict, Optional, Tuple
import xml.etree.ElementTree as ET

from loguru import logger

from jsoncomposer.discovery.models import NULL, Attribute, ComposedGraph, Concept

GEXF_NAMESPACE = "http://www.gexf.net/1.2draft"
GEXF_VERSION = "1.2"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


class NodeKind:
    """Node kinds in the encoded graph"""
    CONCEPT = "concept"
    ATTRIBUTE = "attribute"
    UNKNOWN = "unknown"


class EdgeKind:
    """Edge kinds in the encoded graph"""
    CONTAINMENT = "containment"
    SIMILARITY = "similarity"


# (id, title, type) of the declared attvalue columns
NODE_ATTRIBUTES = [
    ("0", "kind", "string"),
    ("1", "source", "string"),
    ("2", "path", "string"),
    ("3", "type", "string"),
    ("4", "optional", "boolean"),
    ("5", "nullable", "boolean"),
]

EDGE_ATTRIBUTES = [
    ("0", "kind", "string"),
    ("1", "score", "double"),
    ("2", "basis", "string"),
    ("3", "optional", "boolean"),
    ("4", "many", "boolean"),
]

_NODE_COLUMNS = {title: attr_id for attr_id, title, _ in NODE_ATTRIBUTES}
_EDGE_COLUMNS = {title: attr_id for attr_id, title, _ in EDGE_ATTRIBUTES}


# Anything outside the XML 1.0 Char production
_XML_ILLEGAL = re.compile("[^\u0009\u000a\u000d\u0020-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def xml_safe(text: str) -> str:
    """Replace characters XML 1.0 cannot carry (control chars, lone surrogates) with U+FFFD."""
    return _XML_ILLEGAL.sub("\ufffd", text)


def _bool(value: bool) -> str:
    return "true" if value else "false"


def _add_attvalues(element: ET.Element, columns: Dict[str, str], values: Dict[str, str]):
    attvalues = ET.SubElement(element, "attvalues")
    for title, value in values.items():
        ET.SubElement(attvalues, "attvalue", {"for": columns[title], "value": xml_safe(value)})


def attribute_node_kind(attribute: Attribute) -> str:
    """Attributes never observed with a non-null value have no known type."""
    return NodeKind.UNKNOWN if attribute.type == NULL else NodeKind.ATTRIBUTE


class GexfEncoder:
    """
    Encode a ComposedGraph as GEXF text.

    Node and edge ids (n0, n1, ... / e0, e1, ...) are generated per call, so
    concurrent calls on different graphs do not interfere.
    """

    def __init__(self, creator: str = "jsoncomposer", description: str = "Composed JSON concept graph"):
        self.creator = creator
        self.description = description

    def encode(self, graph: ComposedGraph) -> str:
        """
        Encode the composed graph.

        Args:
            graph: Composed graph to render

        Returns:
            GEXF document as a string (with XML declaration)
        """
        root = ET.Element("gexf", {"xmlns": GEXF_NAMESPACE, "version": GEXF_VERSION})

        meta = ET.SubElement(root, "meta")
        ET.SubElement(meta, "creator").text = xml_safe(self.creator)
        ET.SubElement(meta, "description").text = xml_safe(self.description)

        graph_el = ET.SubElement(root, "graph", {"defaultedgetype": "directed", "mode": "static"})
        self._declare_attributes(graph_el, "node", NODE_ATTRIBUTES)
        self._declare_attributes(graph_el, "edge", EDGE_ATTRIBUTES)
        nodes_el = ET.SubElement(graph_el, "nodes")
        edges_el = ET.SubElement(graph_el, "edges")

        node_ids = count()
        edge_ids = count()
        # (graph name, concept handle) -> node id
        concept_nodes: Dict[Tuple[str, int], str] = {}

        for concept_graph in graph.graphs:
            for handle, concept in enumerate(concept_graph.concepts):
                node_id = f"n{next(node_ids)}"
                concept_nodes[(concept_graph.name, handle)] = node_id
                self._add_concept_node(nodes_el, node_id, concept_graph.name, concept)

                for attribute in concept.attributes.values():
                    attr_node_id = f"n{next(node_ids)}"
                    self._add_attribute_node(nodes_el, attr_node_id, concept_graph.name, concept, attribute)
                    self._add_edge(
                        edges_el, f"e{next(edge_ids)}", node_id, attr_node_id, attribute.name,
                        {"kind": EdgeKind.CONTAINMENT, "optional": _bool(attribute.optional), "many": "false"},
                    )

        for concept_graph in graph.graphs:
            for handle, edge in concept_graph.containment_edges():
                self._add_edge(
                    edges_el,
                    f"e{next(edge_ids)}",
                    concept_nodes[(concept_graph.name, handle)],
                    concept_nodes[(concept_graph.name, edge.target)],
                    edge.name,
                    {"kind": EdgeKind.CONTAINMENT, "optional": _bool(edge.optional), "many": _bool(edge.many)},
                )

        for similarity in graph.similarity_edges:
            score = repr(float(similarity.score))
            self._add_edge(
                edges_el,
                f"e{next(edge_ids)}",
                concept_nodes[(similarity.source.graph, similarity.source.concept)],
                concept_nodes[(similarity.target.graph, similarity.target.concept)],
                "similar",
                {
                    "kind": EdgeKind.SIMILARITY,
                    "score": score,
                    "basis": ",".join(b.value for b in similarity.basis),
                },
                weight=score,
            )

        logger.debug(f"Encoded GEXF with {len(nodes_el)} nodes and {len(edges_el)} edges")
        return XML_DECLARATION + ET.tostring(root, encoding="unicode")

    def _declare_attributes(self, graph_el: ET.Element, attr_class: str, columns):
        attributes_el = ET.SubElement(graph_el, "attributes", {"class": attr_class, "mode": "static"})
        for attr_id, title, attr_type in columns:
            ET.SubElement(attributes_el, "attribute", {"id": attr_id, "title": title, "type": attr_type})

    def _add_concept_node(self, nodes_el: ET.Element, node_id: str, source: str, concept: Concept):
        node = ET.SubElement(nodes_el, "node", {"id": node_id, "label": xml_safe(concept.name)})
        _add_attvalues(node, _NODE_COLUMNS, {
            "kind": NodeKind.CONCEPT,
            "source": source,
            "path": concept.path_key,
        })

    def _add_attribute_node(self, nodes_el: ET.Element, node_id: str, source: str, concept: Concept, attribute: Attribute):
        node = ET.SubElement(nodes_el, "node", {"id": node_id, "label": xml_safe(attribute.name)})
        path = concept.path_key.rstrip("/") + "/" + attribute.name
        _add_attvalues(node, _NODE_COLUMNS, {
            "kind": attribute_node_kind(attribute),
            "source": source,
            "path": path,
            "type": attribute.type,
            "optional": _bool(attribute.optional),
            "nullable": _bool(attribute.nullable),
        })

    def _add_edge(self, edges_el: ET.Element, edge_id: str, source: str, target: str, label: str,
                  values: Dict[str, str], weight: Optional[str] = None):
        attrs = {"id": edge_id, "source": source, "target": target, "label": xml_safe(label)}
        if weight is not None:
            attrs["weight"] = weight
        edge = ET.SubElement(edges_el, "edge", attrs)
        _add_attvalues(edge, _EDGE_COLUMNS, values)


def encode_gexf(graph: ComposedGraph) -> str:
    """Shortcut for GexfEncoder().encode(graph)."""
    return GexfEncoder().encode(graph)
