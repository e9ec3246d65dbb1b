"""
Tests for the end-to-end composition pipeline.
"""

from pathlib import Path

import pytest

from jsoncomposer.discovery.exceptions import (
    DuplicateGroupError,
    EmptyGroupError,
    MalformedSampleError,
    NoGroupsError,
)
from jsoncomposer.discovery.models import SourceGroup
from jsoncomposer.pipeline import CompositionPipeline, CompositionResult
from jsoncomposer.preprocessing import load_sources_file


def make_group(name, *outputs):
    group = SourceGroup(name=name)
    for output in outputs:
        group.add_pair("{}", output)
    return group


@pytest.fixture
def groups():
    return [
        make_group("Orders", '{"id": 1, "Customer": {"name": "a", "email": "b"}}', '{"id": 2}'),
        make_group("Users", '{"Account": {"name": "c", "email": "d"}}'),
        make_group("Products", '{"sku": "A", "price": 3.5, "tags": ["x"]}'),
    ]


class TestCompositionPipeline:
    """Tests for CompositionPipeline."""

    def test_run(self, groups):
        """Test a full run returns the composed graph, GEXF and timings."""
        result = CompositionPipeline().run(groups)

        assert isinstance(result, CompositionResult)
        assert [g.name for g in result.composed.graphs] == ["Orders", "Users", "Products"]
        assert len(result.composed.similarity_edges) == 1
        assert result.gexf.startswith("<?xml")
        assert set(result.timing["timings"]) == {"discovery", "composition", "encoding"}
        assert result.timing["counters"]["groups"] == 3
        assert result.timing["counters"]["similarity_edges"] == 1

    def test_parallel_matches_sequential(self, groups):
        """Test parallel discovery gives the same result as sequential."""
        parallel = CompositionPipeline(enable_parallel=True, max_workers=3).compose(groups)
        sequential = CompositionPipeline(enable_parallel=False).compose(groups)
        assert parallel.model_dump() == sequential.model_dump()

    def test_graphs_in_group_order(self, groups):
        """Test discovered graphs follow group order."""
        graphs = CompositionPipeline(max_workers=2).discover_all(groups)
        assert [g.name for g in graphs] == ["Orders", "Users", "Products"]

    def test_config_overrides(self):
        """Test config dict values override keyword defaults."""
        pipeline = CompositionPipeline(config={
            "composition": {"similarity_threshold": 0.9},
            "discovery": {"enable_parallel": False, "max_workers": 2},
        })
        assert pipeline.composer.similarity_threshold == 0.9
        assert pipeline.composer.name_weight == 0.4
        assert not pipeline.enable_parallel
        assert pipeline.max_workers == 2

    def test_empty_config_sections(self):
        """Test sections set to None fall back to keyword defaults."""
        pipeline = CompositionPipeline(config={"composition": None, "discovery": None})
        assert pipeline.composer.similarity_threshold == 0.5
        assert pipeline.enable_parallel

    def test_invalid_workers(self):
        """Test max_workers below one is rejected."""
        with pytest.raises(ValueError):
            CompositionPipeline(max_workers=0)


class TestPipelineErrors:
    """Tests for error propagation."""

    def test_no_groups(self):
        """Test an empty run fails."""
        with pytest.raises(NoGroupsError):
            CompositionPipeline().run([])

    def test_duplicate_groups(self):
        """Test two groups with one name fail before discovery."""
        with pytest.raises(DuplicateGroupError):
            CompositionPipeline().run([make_group("A", "{}"), make_group("A", "{}")])

    @pytest.mark.parametrize("enable_parallel", [True, False])
    def test_malformed_sample_names_group(self, groups, enable_parallel):
        """Test a malformed sample fails the run with its group name."""
        groups.append(make_group("Broken", '{"id": '))
        pipeline = CompositionPipeline(enable_parallel=enable_parallel)
        with pytest.raises(MalformedSampleError) as exc_info:
            pipeline.run(groups)
        assert exc_info.value.group == "Broken"

    def test_first_failing_group_wins(self):
        """Test the error of the earliest failing group is raised."""
        groups = [
            make_group("Good", '{"id": 1}'),
            SourceGroup(name="Empty"),
            make_group("Broken", "not json"),
        ]
        with pytest.raises(EmptyGroupError) as exc_info:
            CompositionPipeline(enable_parallel=True, max_workers=3).run(groups)
        assert exc_info.value.group == "Empty"


class TestExampleSources:
    """Tests running the bundled example sources file."""

    def test_example_file(self):
        """Test the example file composes Customer and Account."""
        path = Path(__file__).resolve().parents[1] / "examples" / "orders_users.yml"
        result = CompositionPipeline().run(load_sources_file(path))

        assert [g.name for g in result.composed.graphs] == ["Orders", "Users", "Products"]
        edges = {(e["source"], e["target"]) for e in result.composed.to_dict()["similarity_edges"]}
        assert ("Orders:Customer", "Users:Account") in edges
