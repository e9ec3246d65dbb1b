"""
Tests for the GEXF encoder.

Encoded documents are parsed back with ElementTree (and networkx) and checked for counts,
unique ids, kinds and similarity scores.
"""

import io
import xml.etree.ElementTree as ET

import networkx as nx

import pytest

from jsoncomposer.discovery.models import SourceGroup
from jsoncomposer.discovery.schema_discoverer import SchemaDiscoverer
from jsoncomposer.discovery.similarity_composer import SimilarityComposer
from jsoncomposer.encoding import EdgeKind, GexfEncoder, NodeKind, encode_gexf
from jsoncomposer.encoding.gexf_encoder import EDGE_ATTRIBUTES, NODE_ATTRIBUTES, xml_safe

NS = {"g": "http://www.gexf.net/1.2draft"}


def discover(name, *outputs):
    group = SourceGroup(name=name)
    for output in outputs:
        group.add_pair("{}", output)
    return SchemaDiscoverer().discover(group)


def attvalue(element, columns, title):
    """Value of a named attvalue on a node or edge."""
    attr_id = next(attr_id for attr_id, col_title, _ in columns if col_title == title)
    for value in element.findall("g:attvalues/g:attvalue", NS):
        if value.get("for") == attr_id:
            return value.get("value")
    return None


@pytest.fixture
def composed():
    orders = discover(
        "Orders",
        '{"id": 1, "items": [{"sku": "A", "qty": 2}], "Customer": {"name": "a", "email": "b"}}',
        '{"id": 2, "note": null, "Customer": {"name": "c", "email": "d"}}',
    )
    users = discover("Users", '{"Account": {"name": "c", "email": "d"}}')
    return SimilarityComposer().compose([orders, users])


@pytest.fixture
def document(composed):
    return ET.fromstring(GexfEncoder().encode(composed).encode("utf-8"))


class TestGexfDocument:
    """Tests for the overall document layout."""

    def test_declaration_and_root(self, composed):
        """Test the XML declaration and GEXF root element."""
        text = encode_gexf(composed)
        assert text.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        root = ET.fromstring(text.encode("utf-8"))
        assert root.tag == "{http://www.gexf.net/1.2draft}gexf"
        assert root.get("version") == "1.2"

    def test_node_and_edge_counts(self, composed, document):
        """Test K + A nodes and A + C + S edges."""
        k = composed.concept_count()
        a = composed.attribute_count()
        c = composed.containment_edge_count()
        s = len(composed.similarity_edges)

        nodes = document.findall("g:graph/g:nodes/g:node", NS)
        edges = document.findall("g:graph/g:edges/g:edge", NS)
        assert len(nodes) == k + a
        assert len(edges) == a + c + s

    def test_ids_are_unique(self, document):
        """Test node and edge ids are unique and edges point at nodes."""
        node_ids = [n.get("id") for n in document.findall("g:graph/g:nodes/g:node", NS)]
        edge_ids = [e.get("id") for e in document.findall("g:graph/g:edges/g:edge", NS)]
        assert len(set(node_ids)) == len(node_ids)
        assert len(set(edge_ids)) == len(edge_ids)
        for edge in document.findall("g:graph/g:edges/g:edge", NS):
            assert edge.get("source") in node_ids
            assert edge.get("target") in node_ids

    def test_ids_restart_per_call(self, composed):
        """Test two encodings of the same graph are identical."""
        encoder = GexfEncoder()
        assert encoder.encode(composed) == encoder.encode(composed)


class TestGexfKinds:
    """Tests for node and edge kinds."""

    def test_concept_nodes(self, composed, document):
        """Test every concept is a node with its source and path."""
        concepts = [
            n for n in document.findall("g:graph/g:nodes/g:node", NS)
            if attvalue(n, NODE_ATTRIBUTES, "kind") == NodeKind.CONCEPT
        ]
        assert len(concepts) == composed.concept_count()
        labels = {(attvalue(n, NODE_ATTRIBUTES, "source"), n.get("label")) for n in concepts}
        assert ("Orders", "Orders") in labels
        assert ("Orders", "items") in labels
        assert ("Users", "Account") in labels

    def test_attribute_nodes(self, document):
        """Test attribute nodes carry type and optionality."""
        nodes = {
            (attvalue(n, NODE_ATTRIBUTES, "source"), attvalue(n, NODE_ATTRIBUTES, "path")): n
            for n in document.findall("g:graph/g:nodes/g:node", NS)
        }
        sku = nodes[("Orders", "/items/sku")]
        assert attvalue(sku, NODE_ATTRIBUTES, "kind") == NodeKind.ATTRIBUTE
        assert attvalue(sku, NODE_ATTRIBUTES, "type") == "string"
        assert attvalue(sku, NODE_ATTRIBUTES, "optional") == "false"

        root_id = nodes[("Orders", "/id")]
        assert attvalue(root_id, NODE_ATTRIBUTES, "type") == "number"

    def test_null_only_attribute_is_unknown(self, document):
        """Test attributes only seen as null get the unknown kind."""
        note = next(
            n for n in document.findall("g:graph/g:nodes/g:node", NS)
            if n.get("label") == "note"
        )
        assert attvalue(note, NODE_ATTRIBUTES, "kind") == NodeKind.UNKNOWN
        assert attvalue(note, NODE_ATTRIBUTES, "nullable") == "true"
        assert attvalue(note, NODE_ATTRIBUTES, "optional") == "true"

    def test_containment_edges(self, composed, document):
        """Test containment edges carry many/optional flags."""
        containment = [
            e for e in document.findall("g:graph/g:edges/g:edge", NS)
            if attvalue(e, EDGE_ATTRIBUTES, "kind") == EdgeKind.CONTAINMENT
        ]
        assert len(containment) == composed.attribute_count() + composed.containment_edge_count()
        items = next(e for e in containment if e.get("label") == "items")
        assert attvalue(items, EDGE_ATTRIBUTES, "many") == "true"
        assert attvalue(items, EDGE_ATTRIBUTES, "optional") == "true"

    def test_similarity_edges(self, composed, document):
        """Test similarity edges carry score, weight and basis."""
        similarity = [
            e for e in document.findall("g:graph/g:edges/g:edge", NS)
            if attvalue(e, EDGE_ATTRIBUTES, "kind") == EdgeKind.SIMILARITY
        ]
        assert len(similarity) == len(composed.similarity_edges) == 1
        edge = similarity[0]
        expected = composed.similarity_edges[0]
        assert float(attvalue(edge, EDGE_ATTRIBUTES, "score")) == expected.score
        assert float(edge.get("weight")) == expected.score
        assert "attribute_overlap" in attvalue(edge, EDGE_ATTRIBUTES, "basis")


class TestGexfPortability:
    """Tests for documents read by other GEXF tools."""

    def test_networkx_reads_document(self, composed):
        """Test networkx's GEXF reader loads the same nodes and edges."""
        text = GexfEncoder().encode(composed)
        graph = nx.read_gexf(io.BytesIO(text.encode("utf-8")))

        a = composed.attribute_count()
        assert graph.is_directed()
        assert graph.number_of_nodes() == composed.concept_count() + a
        assert graph.number_of_edges() == (
            a + composed.containment_edge_count() + len(composed.similarity_edges)
        )

        similarity = [d for _, _, d in graph.edges(data=True) if d.get("kind") == EdgeKind.SIMILARITY]
        assert len(similarity) == 1
        assert similarity[0]["score"] == composed.similarity_edges[0].score
        kinds = {d["kind"] for _, d in graph.nodes(data=True)}
        assert kinds == {NodeKind.CONCEPT, NodeKind.ATTRIBUTE, NodeKind.UNKNOWN}

    def test_control_characters_in_keys(self):
        """Test keys with XML-illegal characters still give a parsable document."""
        graph = discover("Odd", '{"a\\u0001b": 1, "nested\\u001f": {"x\\u0000": true}}')
        text = encode_gexf(SimilarityComposer().compose([graph]))

        root = ET.fromstring(text.encode("utf-8"))
        labels = {n.get("label") for n in root.findall("g:graph/g:nodes/g:node", NS)}
        assert "a\ufffdb" in labels
        assert "nested\ufffd" in labels
        assert "x\ufffd" in labels
        paths = {attvalue(n, NODE_ATTRIBUTES, "path") for n in root.findall("g:graph/g:nodes/g:node", NS)}
        assert "/nested\ufffd/x\ufffd" in paths

        nx.read_gexf(io.BytesIO(text.encode("utf-8")))

    def test_xml_safe(self):
        """Test only characters outside XML 1.0 are replaced."""
        assert xml_safe("plain <&> text\t\n") == "plain <&> text\t\n"
        assert xml_safe("a\x01b\x7f") == "a\ufffdb\x7f"
        assert xml_safe("\ud800") == "\ufffd"
        assert xml_safe("\U0001f600") == "\U0001f600"
