"""
End-to-end composition pipeline.

Discovery runs once per source group (optionally in parallel, one task per
group); composition waits for every group's concept graph, then the composed
graph is encoded.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger
from pydantic import BaseModel, Field

from jsoncomposer.discovery.exceptions import DuplicateGroupError, NoGroupsError
from jsoncomposer.discovery.models import ComposedGraph, ConceptGraph, SourceGroup
from jsoncomposer.discovery.schema_discoverer import SchemaDiscoverer
from jsoncomposer.discovery.similarity_composer import SimilarityComposer
from jsoncomposer.encoding.gexf_encoder import GexfEncoder
from jsoncomposer.utils.constants import (
    DEFAULT_ATTRIBUTE_WEIGHT,
    DEFAULT_ENABLE_PARALLEL,
    DEFAULT_MAX_WORKERS,
    DEFAULT_NAME_WEIGHT,
    DEFAULT_SIMILARITY_THRESHOLD,
)
from jsoncomposer.utils.timing import TimingStats


class CompositionResult(BaseModel):
    """Output of one pipeline run."""
    composed: ComposedGraph
    gexf: str = Field(description="Encoded GEXF document")
    timing: Dict[str, Any] = Field(default_factory=dict, description="Stage timings and counters")


class CompositionPipeline:
    """
    Discover → compose → encode.

    Steps:
    1. Per-group schema discovery (independent, parallel if enabled)
    2. Cross-group similarity composition (waits for all groups)
    3. GEXF encoding
    """

    def __init__(
        self,
        config: Optional[Dict] = None,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        name_weight: float = DEFAULT_NAME_WEIGHT,
        attribute_weight: float = DEFAULT_ATTRIBUTE_WEIGHT,
        enable_parallel: bool = DEFAULT_ENABLE_PARALLEL,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        """
        Initialize composition pipeline.

        Args:
            config: Optional config dict (overrides other params if provided),
                laid out like cfg/compose.yml
            similarity_threshold: Minimum score for a similarity edge
            name_weight: Weight of name similarity in the score
            attribute_weight: Weight of attribute overlap in the score
            enable_parallel: Discover groups in parallel
            max_workers: Max parallel discovery workers
        """
        if config:
            composition = config.get('composition') or {}
            discovery = config.get('discovery') or {}
            similarity_threshold = composition.get('similarity_threshold', similarity_threshold)
            name_weight = composition.get('name_weight', name_weight)
            attribute_weight = composition.get('attribute_weight', attribute_weight)
            enable_parallel = discovery.get('enable_parallel', enable_parallel)
            max_workers = discovery.get('max_workers', max_workers)

        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")

        self.enable_parallel = enable_parallel
        self.max_workers = max_workers
        self.discoverer = SchemaDiscoverer()
        self.composer = SimilarityComposer(
            similarity_threshold=similarity_threshold,
            name_weight=name_weight,
            attribute_weight=attribute_weight,
        )
        self.encoder = GexfEncoder()

    def discover_all(self, groups: Sequence[SourceGroup]) -> List[ConceptGraph]:
        """
        Discover the concept graph of every group.

        Graphs come back in group order whatever order tasks finish in.
        When several groups fail, the error of the first failing group
        (in group order) is raised once all tasks are done.

        Raises:
            NoGroupsError: groups is empty
            DuplicateGroupError: two groups share a name
        """
        if not groups:
            raise NoGroupsError()

        seen = set()
        for group in groups:
            if group.name in seen:
                raise DuplicateGroupError(group.name)
            seen.add(group.name)

        if not self.enable_parallel or len(groups) == 1:
            return [self.discoverer.discover(group) for group in groups]

        logger.info(f"  Parallel discovery of {len(groups)} groups (max_workers={self.max_workers})")
        graphs: List[Optional[ConceptGraph]] = [None] * len(groups)
        errors: Dict[int, Exception] = {}

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(self.discoverer.discover, group): position
                for position, group in enumerate(groups)
            }
            for future in as_completed(futures):
                position = futures[future]
                try:
                    graphs[position] = future.result()
                except Exception as e:
                    logger.error(f"  ✗ Discovery failed for group '{groups[position].name}': {e}")
                    errors[position] = e

        if errors:
            raise errors[min(errors)]

        return graphs

    def compose(self, groups: Sequence[SourceGroup]) -> ComposedGraph:
        """Discover every group and compose the results (no encoding)."""
        return self.composer.compose(self.discover_all(groups))

    def run(self, groups: Sequence[SourceGroup]) -> CompositionResult:
        """
        Run the full pipeline.

        Args:
            groups: Source groups in composition order

        Returns:
            CompositionResult with the composed graph, GEXF text and timings
        """
        timing_stats = TimingStats(name="composition")

        logger.info("=" * 60)
        logger.info("JSON COMPOSITION PIPELINE")
        logger.info("=" * 60)

        logger.info(f"Step 1: Schema discovery ({len(groups)} groups)")
        with timing_stats.timer("discovery"):
            graphs = self.discover_all(groups)
        timing_stats.add_counter("groups", len(graphs))
        timing_stats.add_counter("concepts", sum(len(g.concepts) for g in graphs))

        logger.info("Step 2: Similarity composition")
        with timing_stats.timer("composition"):
            composed = self.composer.compose(graphs)
        timing_stats.add_counter("similarity_edges", len(composed.similarity_edges))

        logger.info("Step 3: GEXF encoding")
        with timing_stats.timer("encoding"):
            gexf = self.encoder.encode(composed)

        summary = timing_stats.get_summary()
        logger.info(f"✓ Pipeline complete in {summary['total_duration_seconds']:.3f}s")

        return CompositionResult(composed=composed, gexf=gexf, timing=summary)
