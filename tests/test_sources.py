"""
Tests for building source groups from transport parameters and files.
"""

import json

import pytest

from jsoncomposer.discovery.exceptions import DuplicateGroupError, NoGroupsError
from jsoncomposer.preprocessing import build_groups, digest_sources, load_sources_file


class TestDigestSources:
    """Tests for digest_sources."""

    def test_groups_and_pairs(self):
        """Test parameters are grouped per name and pair index."""
        params = {
            "sources[Orders][jsonDefs][0][input]": "{}",
            "sources[Orders][jsonDefs][0][output]": '{"id": 1}',
            "sources[Users][jsonDefs][0][output]": '{"name": "a"}',
        }
        groups = digest_sources(params)

        assert [g.name for g in groups] == ["Orders", "Users"]
        orders = groups[0]
        assert len(orders.pairs) == 1
        assert orders.pairs[0].request.text == "{}"
        assert orders.pairs[0].output.text == '{"id": 1}'
        assert groups[1].pairs[0].request is None

    def test_gaps_become_absent_pairs(self):
        """Test missing indices are materialized as unusable pairs."""
        params = {"sources[Users][jsonDefs][2][output]": '{"name": "a"}'}
        groups = digest_sources(params)

        pairs = groups[0].pairs
        assert len(pairs) == 3
        assert not pairs[0].is_usable
        assert not pairs[1].is_usable
        assert pairs[2].is_usable
        assert [i for i, _ in groups[0].usable_pairs()] == [2]

    def test_group_order_follows_first_appearance(self):
        """Test groups keep the order their names first appear in."""
        params = {
            "sources[Zeta][jsonDefs][0][output]": "{}",
            "sources[Alpha][jsonDefs][0][output]": "{}",
            "sources[Zeta][jsonDefs][1][output]": "{}",
        }
        assert [g.name for g in digest_sources(params)] == ["Zeta", "Alpha"]

    def test_unrelated_keys_are_ignored(self):
        """Test keys outside the sources pattern are skipped."""
        params = {
            "callback": "x",
            "sources[Orders][jsonDefs][0][output]": '{"id": 1}',
            "sources[Orders][other][0][output]": "{}",
        }
        groups = digest_sources(params)
        assert len(groups) == 1
        assert len(groups[0].pairs) == 1

    def test_list_values_use_first(self):
        """Test multi-valued parameters use their first value."""
        params = {"sources[Orders][jsonDefs][0][output]": ['{"id": 1}', '{"id": 2}']}
        assert digest_sources(params)[0].pairs[0].output.text == '{"id": 1}'

    def test_inline_json_values(self):
        """Test non-string values are serialized back to JSON text."""
        params = {"sources[Orders][jsonDefs][0][output]": {"id": 1}}
        assert json.loads(digest_sources(params)[0].pairs[0].output.text) == {"id": 1}

    def test_no_params(self):
        """Test an empty call fails."""
        with pytest.raises(NoGroupsError, match="No params in the call"):
            digest_sources({})

    def test_no_matching_params(self):
        """Test a call without any sources parameter fails."""
        with pytest.raises(NoGroupsError):
            digest_sources({"foo": "bar"})


class TestBuildGroups:
    """Tests for build_groups."""

    def test_build(self):
        """Test a mapping of names to input/output pairs."""
        groups = build_groups({
            "Orders": [{"input": "{}", "output": {"id": 1}}, {"output": '{"id": 2}'}],
        })
        assert len(groups[0].pairs) == 2
        assert groups[0].pairs[1].request is None

    def test_empty(self):
        """Test an empty mapping fails."""
        with pytest.raises(NoGroupsError):
            build_groups({})

    def test_duplicate_after_str(self):
        """Test names that collide as strings are rejected."""
        with pytest.raises(DuplicateGroupError):
            build_groups({1: [{"output": "{}"}], "1": [{"output": "{}"}]})

    def test_bad_layout(self):
        """Test non-list entries are rejected."""
        with pytest.raises(ValueError):
            build_groups({"Orders": {"output": "{}"}})


class TestLoadSourcesFile:
    """Tests for load_sources_file."""

    def test_yaml_file(self, tmp_path):
        """Test loading a YAML sources file."""
        path = tmp_path / "sources.yml"
        path.write_text(
            "sources:\n"
            "  Orders:\n"
            "    - input: '{}'\n"
            "      output: {\"id\": 1, \"items\": [{\"sku\": \"A\"}]}\n"
            "  Users:\n"
            "    - output: '{\"name\": \"a\"}'\n"
        )
        groups = load_sources_file(path)
        assert [g.name for g in groups] == ["Orders", "Users"]
        assert json.loads(groups[0].pairs[0].output.text) == {"id": 1, "items": [{"sku": "A"}]}

    def test_json_file_without_sources_key(self, tmp_path):
        """Test a bare JSON mapping of groups."""
        path = tmp_path / "sources.json"
        path.write_text(json.dumps({"Orders": [{"output": {"id": 1}}]}))
        groups = load_sources_file(path)
        assert groups[0].name == "Orders"

    def test_missing_file(self, tmp_path):
        """Test a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_sources_file(tmp_path / "missing.yml")

    def test_not_a_mapping(self, tmp_path):
        """Test a file holding a list is rejected."""
        path = tmp_path / "sources.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError):
            load_sources_file(path)
