"""
Schema discoverer for JSON sample groups.

Turns the (request, output) samples captured for one API into a concept graph.
Every JSON object shape becomes a Concept keyed by its field path, with array
slots collapsed so that all elements of an array share one Concept.

Discovery works in two steps:
1. Each usable sample pair is summarized into a pair observation
   (keys, types and nested shapes per path).
2. Pair observations are folded into one accumulator. The fold only adds
   counters, unions sets and merges types, so it does not depend on sample
   order.
"""

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from functools import reduce
import json
from typing import Any, Dict, Iterator, List, Set, Tuple

from loguru import logger

from jsoncomposer.discovery.exceptions import EmptyGroupError, MalformedSampleError
from jsoncomposer.discovery.models import (
    NULL,
    Attribute,
    Concept,
    ConceptGraph,
    ContainmentEdge,
    Sample,
    SamplePair,
    SampleRole,
    SourceGroup,
    array_of,
    merge_types,
    primitive_type_of,
)

Path = Tuple[str, ...]


@dataclass
class _ShapeStats:
    """Keys, types and nested shapes seen for one path."""
    observations: int = 0
    key_counts: Counter = field(default_factory=Counter)
    types: Dict[str, str] = field(default_factory=dict)
    nullable: Set[str] = field(default_factory=set)
    edges: Set[str] = field(default_factory=set)
    many: Set[str] = field(default_factory=set)
    roles: Dict[str, Set[SampleRole]] = field(default_factory=lambda: defaultdict(set))

    def record_type(self, key: str, type_name: str):
        if key in self.types:
            self.types[key] = merge_types(self.types[key], type_name)
        else:
            self.types[key] = type_name

    def fold(self, other: '_ShapeStats'):
        """Merge another path summary into this one."""
        self.observations += other.observations
        self.key_counts.update(other.key_counts)
        for key, type_name in other.types.items():
            self.record_type(key, type_name)
        self.nullable |= other.nullable
        self.edges |= other.edges
        self.many |= other.many
        for key, roles in other.roles.items():
            self.roles[key] |= roles


def _flatten(values: List[Any]) -> Iterator[Any]:
    """Yield the leaves of nested arrays (array slots collapse)."""
    stack = [iter(values)]
    while stack:
        for value in stack[-1]:
            if isinstance(value, list):
                stack.append(iter(value))
                break
            yield value
        else:
            stack.pop()


class SchemaDiscoverer:
    """
    Discover the concept graph of a single source group.

    The discoverer holds no state between calls, so one instance can serve
    several groups, including from several threads.
    """

    def discover(self, group: SourceGroup) -> ConceptGraph:
        """
        Infer the concept graph for a group.

        Args:
            group: Source group with its sample pairs

        Returns:
            ConceptGraph rooted at a concept named after the group

        Raises:
            MalformedSampleError: A sample is not valid JSON or is a bare primitive
            EmptyGroupError: The group has no usable pair
        """
        logger.info(f"Discovering schema for group '{group.name}' ({len(group.pairs)} pairs)")

        shapes: Dict[Path, _ShapeStats] = {}
        n_pairs = 0

        for index, pair in group.usable_pairs():
            observation = self._observe_pair(group.name, index, pair)
            for path, stats in observation.items():
                shapes.setdefault(path, _ShapeStats()).fold(stats)
            n_pairs += 1
            logger.debug(f"  • pair {index}: {len(observation)} shapes")

        if n_pairs == 0:
            logger.error(f"  ✗ Group '{group.name}' has no usable sample pairs")
            raise EmptyGroupError(group.name)

        graph = self._build_graph(group.name, shapes, n_pairs)
        logger.info(
            f"  ✓ '{group.name}': {len(graph.concepts)} concepts, "
            f"{graph.attribute_count()} attributes from {n_pairs} pairs"
        )
        return graph

    def _parse(self, group_name: str, index: int, sample: Sample) -> Any:
        try:
            return json.loads(sample.text)
        except json.JSONDecodeError as e:
            logger.error(f"  ✗ Invalid JSON in {sample.role.value} of pair {index} ('{group_name}'): {e}")
            raise MalformedSampleError(group_name, index, sample.role.value, str(e)) from e

    def _observe_pair(self, group_name: str, index: int, pair: SamplePair) -> Dict[Path, _ShapeStats]:
        """
        Summarize one sample pair.

        Both sides of the pair are rooted at the root path, so the root is
        reached exactly once per pair. Counts are 0/1 per pair: a key seen
        in several array elements still counts once.
        """
        shapes: Dict[Path, _ShapeStats] = {(): _ShapeStats(observations=1)}

        for sample in pair.samples():
            document = self._parse(group_name, index, sample)
            top_level = list(_flatten(document)) if isinstance(document, list) else [document]

            stack: List[Tuple[Path, Dict[str, Any]]] = []
            for value in top_level:
                if not isinstance(value, dict):
                    raise MalformedSampleError(
                        group_name, index, sample.role.value,
                        "top-level value must be a JSON object or an array of objects"
                    )
                stack.append(((), value))

            while stack:
                path, obj = stack.pop()
                stats = shapes.setdefault(path, _ShapeStats())
                stats.observations = 1

                for key, value in obj.items():
                    stats.key_counts[key] = 1
                    stats.roles[key].add(sample.role)
                    child_path = path + (key,)

                    if isinstance(value, dict):
                        stats.edges.add(key)
                        shapes.setdefault(child_path, _ShapeStats())
                        # An empty object creates the child but is not an observation of it
                        if value:
                            stack.append((child_path, value))

                    elif isinstance(value, list):
                        elements = list(_flatten(value))
                        objects = [e for e in elements if isinstance(e, dict)]
                        primitives = [e for e in elements if not isinstance(e, dict)]

                        # An empty array still creates the child concept
                        if objects or not elements:
                            stats.edges.add(key)
                            stats.many.add(key)
                            shapes.setdefault(child_path, _ShapeStats())
                            stack.extend((child_path, element) for element in objects if element)

                        if primitives:
                            merged = reduce(merge_types, (primitive_type_of(p) for p in primitives))
                            stats.record_type(key, array_of(merged))

                    else:
                        if value is None:
                            stats.nullable.add(key)
                        stats.record_type(key, primitive_type_of(value))

        return shapes

    def _build_graph(self, name: str, shapes: Dict[Path, _ShapeStats], n_pairs: int) -> ConceptGraph:
        """Assign handles and turn accumulated counts into optionality flags."""
        self._prune_placeholders(shapes)

        # Root first (empty tuple sorts first), then by path
        paths = sorted(shapes)
        handles = {path: handle for handle, path in enumerate(paths)}

        concepts = []
        for path in paths:
            stats = shapes[path]
            concept = Concept(
                name=path[-1] if path else name,
                path=list(path),
                observations=stats.observations,
            )

            for key in sorted(stats.types):
                type_name = stats.types[key]
                # Only nulls seen for a key that is a nested object elsewhere
                if type_name == NULL and key in stats.edges:
                    continue
                concept.attributes[key] = Attribute(
                    name=key,
                    type=type_name,
                    optional=stats.key_counts[key] < stats.observations,
                    nullable=key in stats.nullable,
                    roles=set(stats.roles[key]),
                )

            for key in sorted(stats.edges):
                concept.edges[key] = ContainmentEdge(
                    name=key,
                    target=handles[path + (key,)],
                    many=key in stats.many,
                    optional=stats.key_counts[key] < stats.observations,
                )

            concepts.append(concept)

        return ConceptGraph(name=name, concepts=concepts, n_pairs=n_pairs)

    def _prune_placeholders(self, shapes: Dict[Path, _ShapeStats]):
        """
        Drop concepts created only by empty arrays or objects when the same
        field was seen elsewhere as a primitive or an array of primitives.
        """
        for path in [p for p in shapes if p]:
            stats = shapes[path]
            if stats.observations or stats.key_counts:
                continue
            parent = shapes[path[:-1]]
            key = path[-1]
            if parent.types.get(key, NULL) != NULL:
                logger.debug(f"    dropping placeholder concept {'/'.join(path)}")
                del shapes[path]
                parent.edges.discard(key)
                parent.many.discard(key)
