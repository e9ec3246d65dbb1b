"""
Pydantic models for JSON schema discovery and composition.

Provides type-safe data structures for:
- JSON samples grouped per API (Sample, SamplePair, SourceGroup)
- Discovered concept graphs (Attribute, ContainmentEdge, Concept, ConceptGraph)
- Cross-API composition results (SimilarityEdge, ComposedGraph)
"""

from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ============================================================================
# ATTRIBUTE TYPES
# ============================================================================

STRING = "string"
NUMBER = "number"
BOOLEAN = "boolean"
NULL = "null"
MIXED = "mixed"

PRIMITIVE_TYPES = (STRING, NUMBER, BOOLEAN, NULL, MIXED)

_ARRAY_PREFIX = "array<"


def array_of(element_type: str) -> str:
    """Build the type string for an array of primitives."""
    return f"{_ARRAY_PREFIX}{element_type}>"


def is_array_type(type_name: str) -> bool:
    return type_name.startswith(_ARRAY_PREFIX) and type_name.endswith(">")


def element_type(type_name: str) -> str:
    """Element type of an ``array<T>`` type string."""
    if not is_array_type(type_name):
        raise ValueError(f"Not an array type: {type_name}")
    return type_name[len(_ARRAY_PREFIX):-1]


def primitive_type_of(value: Any) -> str:
    """
    Infer the primitive type of a parsed JSON scalar.

    bool is checked before int because bool is a subclass of int.
    """
    if value is None:
        return NULL
    if isinstance(value, bool):
        return BOOLEAN
    if isinstance(value, (int, float)):
        return NUMBER
    if isinstance(value, str):
        return STRING
    raise TypeError(f"Not a JSON primitive: {type(value).__name__}")


def merge_types(first: str, second: str) -> str:
    """
    Union two attribute types.

    Rules:
    - equal types stay as they are
    - null is the identity (a null never overrides a known type)
    - mixed absorbs everything
    - array<A> + array<B> = array<A + B>
    - any other disagreement becomes mixed

    The union is commutative and associative, so samples may be folded
    in any order.
    """
    if first == second:
        return first
    if first == NULL:
        return second
    if second == NULL:
        return first
    if first == MIXED or second == MIXED:
        return MIXED
    if is_array_type(first) and is_array_type(second):
        return array_of(merge_types(element_type(first), element_type(second)))
    return MIXED


# ============================================================================
# SAMPLE MODELS
# ============================================================================

class SampleRole(str, Enum):
    """Which side of an example call a sample belongs to."""
    REQUEST = "request"
    OUTPUT = "output"


class Sample(BaseModel):
    """One unparsed JSON document of one example call."""
    model_config = ConfigDict(frozen=True)

    text: str = Field(description="Raw JSON text")
    role: SampleRole


class SamplePair(BaseModel):
    """
    A (request, output) pair captured for one example call.

    Either side may be missing when it was not observed, but a pair needs at
    least one side to be usable.
    """
    model_config = ConfigDict(frozen=True)

    request: Optional[Sample] = None
    output: Optional[Sample] = None

    @model_validator(mode='after')
    def validate_roles(self) -> 'SamplePair':
        """Each side must carry its own role."""
        if self.request is not None and self.request.role != SampleRole.REQUEST:
            raise ValueError("Request side must have role 'request'")
        if self.output is not None and self.output.role != SampleRole.OUTPUT:
            raise ValueError("Output side must have role 'output'")
        return self

    @classmethod
    def from_texts(cls, request_text: Optional[str] = None, output_text: Optional[str] = None) -> 'SamplePair':
        """Build a pair from raw texts, treating empty text as not observed."""
        request = Sample(text=request_text, role=SampleRole.REQUEST) if _observed(request_text) else None
        output = Sample(text=output_text, role=SampleRole.OUTPUT) if _observed(output_text) else None
        return cls(request=request, output=output)

    @property
    def is_usable(self) -> bool:
        return self.request is not None or self.output is not None

    def samples(self) -> List[Sample]:
        """Present samples, request first."""
        return [s for s in (self.request, self.output) if s is not None]


def _observed(text: Optional[str]) -> bool:
    return text is not None and text.strip() != ""


class SourceGroup(BaseModel):
    """All example calls captured for one named API."""
    name: str = Field(description="API name, unique within one composition run")
    pairs: List[SamplePair] = Field(default_factory=list)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate group name."""
        if not v or not v.strip():
            raise ValueError("Group name cannot be empty")
        return v.strip()

    def usable_pairs(self) -> Iterator[Tuple[int, SamplePair]]:
        """Yield (pair index, pair) for every pair with at least one side."""
        for index, pair in enumerate(self.pairs):
            if pair.is_usable:
                yield index, pair

    def add_pair(self, request_text: Optional[str] = None, output_text: Optional[str] = None) -> SamplePair:
        pair = SamplePair.from_texts(request_text, output_text)
        self.pairs.append(pair)
        return pair


# ============================================================================
# CONCEPT GRAPH MODELS
# ============================================================================

class Attribute(BaseModel):
    """Primitive attribute of a concept."""
    name: str
    type: str = Field(description="Inferred type: string, number, boolean, null, mixed or array<T>")
    optional: bool = Field(default=False, description="Not present in every sample reaching the concept")
    nullable: bool = Field(default=False, description="A null value was observed")
    roles: Set[SampleRole] = Field(default_factory=set, description="Sample sides the attribute was seen on")


class ContainmentEdge(BaseModel):
    """Ownership edge from a concept to a nested concept."""
    name: str = Field(description="Field name introducing the child concept")
    target: int = Field(ge=0, description="Handle of the child concept in the graph arena")
    many: bool = Field(default=False, description="The field was observed as an array of objects")
    optional: bool = False


class Concept(BaseModel):
    """One JSON object shape discovered during inference."""
    name: str
    path: List[str] = Field(default_factory=list, description="Field chain from the root, array slots collapsed")
    attributes: Dict[str, Attribute] = Field(default_factory=dict)
    edges: Dict[str, ContainmentEdge] = Field(default_factory=dict)
    observations: int = Field(default=0, ge=0, description="Usable sample pairs that reached this concept")

    @property
    def path_key(self) -> str:
        return "/" + "/".join(self.path)

    def attribute_names(self) -> Set[str]:
        return set(self.attributes.keys())


class ConceptGraph(BaseModel):
    """
    All concepts discovered for one source group.

    Concepts live in one arena list; index 0 is the root and edges refer to
    their targets by index (handle).
    """
    name: str = Field(description="Name of the source group")
    concepts: List[Concept] = Field(default_factory=list)
    n_pairs: int = Field(default=0, ge=0, description="Usable sample pairs folded in")

    @property
    def root(self) -> Concept:
        return self.concepts[0]

    def get(self, handle: int) -> Concept:
        return self.concepts[handle]

    def find(self, path: List[str]) -> Optional[Concept]:
        """Get concept by field path (empty path is the root)."""
        for concept in self.concepts:
            if concept.path == list(path):
                return concept
        return None

    def find_by_name(self, name: str) -> List[Concept]:
        return [c for c in self.concepts if c.name == name]

    def children(self, concept: Concept) -> List[Concept]:
        return [self.concepts[edge.target] for edge in concept.edges.values()]

    def containment_edges(self) -> Iterator[Tuple[int, ContainmentEdge]]:
        """Yield (owner handle, edge) for every containment edge."""
        for handle, concept in enumerate(self.concepts):
            for edge in concept.edges.values():
                yield handle, edge

    def attribute_count(self) -> int:
        return sum(len(c.attributes) for c in self.concepts)

    def containment_edge_count(self) -> int:
        return sum(len(c.edges) for c in self.concepts)


# ============================================================================
# COMPOSITION MODELS
# ============================================================================

class ConceptRef(BaseModel):
    """Reference to a concept of a named graph."""
    model_config = ConfigDict(frozen=True)

    graph: str
    concept: int = Field(ge=0)


class SimilarityBasis(str, Enum):
    """Signal that supported a similarity edge."""
    NAME_EQUALITY = "name_equality"
    NAME_SIMILARITY = "name_similarity"
    ATTRIBUTE_OVERLAP = "attribute_overlap"


class SimilarityEdge(BaseModel):
    """
    Scored candidate correspondence between concepts of different graphs.

    Never implies containment. The source always belongs to the graph that
    comes first in composition order.
    """
    source: ConceptRef
    target: ConceptRef
    score: float = Field(ge=0.0, le=1.0)
    name_similarity: float = Field(default=0.0, ge=0.0, le=1.0)
    attribute_overlap: float = Field(default=0.0, ge=0.0, le=1.0)
    basis: List[SimilarityBasis] = Field(default_factory=list)


class ComposedGraph(BaseModel):
    """Union of all concept graphs plus the similarity edges between them."""
    graphs: List[ConceptGraph] = Field(default_factory=list)
    similarity_edges: List[SimilarityEdge] = Field(default_factory=list)

    def graph(self, name: str) -> ConceptGraph:
        for graph in self.graphs:
            if graph.name == name:
                return graph
        raise KeyError(f"No graph named '{name}'")

    def concept(self, ref: ConceptRef) -> Concept:
        return self.graph(ref.graph).get(ref.concept)

    def concept_count(self) -> int:
        return sum(len(g.concepts) for g in self.graphs)

    def attribute_count(self) -> int:
        return sum(g.attribute_count() for g in self.graphs)

    def containment_edge_count(self) -> int:
        return sum(g.containment_edge_count() for g in self.graphs)

    def to_dict(self) -> Dict[str, Any]:
        """Summary dict for display (concept names instead of handles)."""
        return {
            'graphs': {
                graph.name: {
                    'pairs': graph.n_pairs,
                    'concepts': {
                        concept.path_key: {
                            'name': concept.name,
                            'attributes': {
                                attr.name: attr.type + ('?' if attr.optional else '')
                                for attr in concept.attributes.values()
                            },
                            'edges': {
                                edge.name: graph.get(edge.target).path_key + ('?' if edge.optional else '')
                                for edge in concept.edges.values()
                            },
                        }
                        for concept in graph.concepts
                    },
                }
                for graph in self.graphs
            },
            'similarity_edges': [
                {
                    'source': f"{edge.source.graph}:{self.concept(edge.source).name}",
                    'target': f"{edge.target.graph}:{self.concept(edge.target).name}",
                    'score': edge.score,
                    'basis': [b.value for b in edge.basis],
                }
                for edge in self.similarity_edges
            ],
        }
