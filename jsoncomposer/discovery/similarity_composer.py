"""
Similarity composer for combining concept graphs of several APIs.

Unions the concept graphs discovered per source group and adds similarity
edges between concepts of different groups. Similarity combines fuzzy name
matching with the overlap of primitive attribute names.

Edges are candidates for a human or a later step: every pair at or above the
threshold is kept, there is no best-match pruning.
"""

from collections import defaultdict
import difflib
import re
from typing import Dict, List, Sequence, Set, Tuple

from loguru import logger

from jsoncomposer.discovery.exceptions import DuplicateGroupError, NoGraphsError
from jsoncomposer.discovery.models import (
    ComposedGraph,
    Concept,
    ConceptGraph,
    ConceptRef,
    SimilarityBasis,
    SimilarityEdge,
)
from jsoncomposer.utils.constants import (
    DEFAULT_ATTRIBUTE_WEIGHT,
    DEFAULT_NAME_WEIGHT,
    DEFAULT_SIMILARITY_THRESHOLD,
    NAME_SIMILARITY_BASIS_THRESHOLD,
)

_NAME_SEPARATORS = re.compile(r"[\s_\-.]+")


def normalize_name(name: str) -> str:
    """Lowercase and drop separators ('order_items' == 'OrderItems')."""
    return _NAME_SEPARATORS.sub("", name).lower()


def name_similarity(first: str, second: str) -> float:
    """
    Character-level similarity of two concept names.

    Uses difflib.SequenceMatcher on normalized names.
    """
    a, b = normalize_name(first), normalize_name(second)
    if not a and not b:
        return 0.0
    return difflib.SequenceMatcher(None, a, b).ratio()


def attribute_overlap(first: Set[str], second: Set[str]) -> float:
    """Jaccard index of two attribute name sets (0.0 when both are empty)."""
    union = first | second
    if not union:
        return 0.0
    return len(first & second) / len(union)


class SimilarityComposer:
    """
    Compose concept graphs into one graph with similarity edges.

    Concepts from the same graph are never compared.
    """

    def __init__(
        self,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        name_weight: float = DEFAULT_NAME_WEIGHT,
        attribute_weight: float = DEFAULT_ATTRIBUTE_WEIGHT,
    ):
        """
        Initialize similarity composer.

        Args:
            similarity_threshold: Minimum combined score (0.0-1.0) for an edge
            name_weight: Weight of the name similarity signal
            attribute_weight: Weight of the attribute overlap signal
        """
        if not 0.0 <= similarity_threshold <= 1.0:
            raise ValueError(f"similarity_threshold must be within [0, 1], got {similarity_threshold}")
        if name_weight < 0 or attribute_weight < 0 or name_weight + attribute_weight <= 0:
            raise ValueError("Weights must be non-negative and not both zero")

        self.similarity_threshold = similarity_threshold
        self.name_weight = name_weight
        self.attribute_weight = attribute_weight
        logger.info(
            f"Initialized SimilarityComposer with threshold = {similarity_threshold} "
            f"(name weight {name_weight}, attribute weight {attribute_weight})"
        )

    def compose(self, graphs: Sequence[ConceptGraph]) -> ComposedGraph:
        """
        Compose concept graphs.

        Args:
            graphs: Concept graphs in composition order

        Returns:
            ComposedGraph holding the graphs unchanged plus similarity edges,
            sorted by source graph order, then concept name

        Raises:
            NoGraphsError: graphs is empty
            DuplicateGroupError: two graphs share a name
        """
        if not graphs:
            raise NoGraphsError()

        seen = set()
        for graph in graphs:
            if graph.name in seen:
                raise DuplicateGroupError(graph.name)
            seen.add(graph.name)

        logger.info(f"Composing {len(graphs)} concept graphs")

        edges = []
        for i, j in self._candidate_pairs(graphs):
            edge = self._score_pair(graphs, i, j)
            if edge is not None:
                edges.append(edge)

        order = {graph.name: i for i, graph in enumerate(graphs)}
        edges.sort(key=lambda edge: self._sort_key(graphs, order, edge))

        for edge in edges:
            source = graphs[order[edge.source.graph]].concepts[edge.source.concept]
            target = graphs[order[edge.target.graph]].concepts[edge.target.concept]
            logger.debug(
                f"  • {edge.source.graph}:{source.name} ~ {edge.target.graph}:{target.name} ({edge.score:.3f})"
            )
        logger.info(f"  ✓ Composition complete: {len(edges)} similarity edges")

        return ComposedGraph(graphs=list(graphs), similarity_edges=edges)

    def score(self, first: Concept, second: Concept) -> Tuple[float, float, float]:
        """Return (score, name similarity, attribute overlap) for two concepts."""
        names = name_similarity(first.name, second.name)
        overlap = attribute_overlap(
            {a.lower() for a in first.attributes},
            {a.lower() for a in second.attributes},
        )
        total_weight = self.name_weight + self.attribute_weight
        combined = (self.name_weight * names + self.attribute_weight * overlap) / total_weight
        return round(combined, 6), round(names, 6), round(overlap, 6)

    def _candidate_pairs(self, graphs: Sequence[ConceptGraph]) -> List[Tuple[Tuple[int, int], Tuple[int, int]]]:
        """
        Cross-graph concept pairs worth scoring, as ((graph, handle), (graph, handle)).

        A pair without shared attribute names scores at most the normalized
        name weight. When that is below the threshold only pairs sharing an
        attribute name can reach it, and those are found through an inverted
        index instead of scanning all pairs.
        """
        max_name_only = self.name_weight / (self.name_weight + self.attribute_weight)
        if max_name_only >= self.similarity_threshold:
            return [
                ((gi, ci), (gj, cj))
                for gi in range(len(graphs))
                for gj in range(gi + 1, len(graphs))
                for ci in range(len(graphs[gi].concepts))
                for cj in range(len(graphs[gj].concepts))
            ]

        # attribute name -> [(graph index, concept handle), ...]
        index: Dict[str, List[Tuple[int, int]]] = defaultdict(list)
        for gi, graph in enumerate(graphs):
            for ci, concept in enumerate(graph.concepts):
                for attr_name in {a.lower() for a in concept.attributes}:
                    index[attr_name].append((gi, ci))

        pairs = set()
        for holders in index.values():
            for a in range(len(holders)):
                for b in range(a + 1, len(holders)):
                    first, second = holders[a], holders[b]
                    if first[0] == second[0]:
                        continue
                    pairs.add((first, second) if first < second else (second, first))
        return sorted(pairs)

    def _score_pair(self, graphs: Sequence[ConceptGraph], first: Tuple[int, int], second: Tuple[int, int]):
        (gi, ci), (gj, cj) = first, second
        if gi == gj:
            return None

        concept_a = graphs[gi].concepts[ci]
        concept_b = graphs[gj].concepts[cj]
        combined, names, overlap = self.score(concept_a, concept_b)
        if combined < self.similarity_threshold:
            return None

        basis = []
        if normalize_name(concept_a.name) == normalize_name(concept_b.name):
            basis.append(SimilarityBasis.NAME_EQUALITY)
        elif names >= NAME_SIMILARITY_BASIS_THRESHOLD:
            basis.append(SimilarityBasis.NAME_SIMILARITY)
        if overlap > 0:
            basis.append(SimilarityBasis.ATTRIBUTE_OVERLAP)

        return SimilarityEdge(
            source=ConceptRef(graph=graphs[gi].name, concept=ci),
            target=ConceptRef(graph=graphs[gj].name, concept=cj),
            score=combined,
            name_similarity=names,
            attribute_overlap=overlap,
            basis=basis,
        )

    def _sort_key(self, graphs: Sequence[ConceptGraph], order: Dict[str, int], edge: SimilarityEdge):
        source = graphs[order[edge.source.graph]].concepts[edge.source.concept]
        target = graphs[order[edge.target.graph]].concepts[edge.target.concept]
        return (
            order[edge.source.graph], source.name, source.path,
            order[edge.target.graph], target.name, target.path,
        )
