"""
Builders for SourceGroup collections.

Two input shapes are supported:
- flat key/value transport parameters named
  ``sources[<name>][jsonDefs][<index>][<input|output>]`` (HTTP forms)
- YAML/JSON sources files for the command line::

      sources:
        Orders:
          - input: '{}'
            output: {"id": 1, "items": [{"sku": "A", "qty": 2}]}

Inline JSON values in sources files are serialized back to text so that
every sample goes through the same parsing path.
"""

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from loguru import logger
import yaml

from jsoncomposer.discovery.exceptions import DuplicateGroupError, NoGroupsError
from jsoncomposer.discovery.models import SourceGroup

SOURCE_PARAM_PATTERN = re.compile(
    r"^sources\[(?P<name>[\w\-]+)\]\[jsonDefs\]\[(?P<index>\d+)\]\[(?P<side>input|output)\]$"
)


def digest_sources(params: Mapping[str, Any]) -> List[SourceGroup]:
    """
    Group flat transport parameters into source groups.

    Keys not following the sources pattern are ignored. Groups keep the
    order in which their names first appear. For each group, pair indices
    0..max are materialized; an index without parameters becomes a pair
    with both sides absent.

    Args:
        params: Parameter name → value (a value may be a list of values,
            in which case the first one is used)

    Returns:
        Ordered list of SourceGroup

    Raises:
        NoGroupsError: No parameter follows the sources pattern
    """
    # name -> index -> side -> text
    detected: Dict[str, Dict[int, Dict[str, str]]] = {}

    for key, value in params.items():
        match = SOURCE_PARAM_PATTERN.match(key)
        if not match:
            continue
        if isinstance(value, (list, tuple)):
            value = value[0] if value else ""
        sides = detected.setdefault(match.group("name"), {}).setdefault(int(match.group("index")), {})
        sides[match.group("side")] = _as_text(value)

    if not detected:
        raise NoGroupsError("No params in the call")

    groups = []
    for name, pairs_by_index in detected.items():
        group = SourceGroup(name=name)
        for index in range(max(pairs_by_index) + 1):
            sides = pairs_by_index.get(index, {})
            group.add_pair(sides.get("input"), sides.get("output"))
        logger.debug(f"  • digested group '{name}' with {len(group.pairs)} pairs")
        groups.append(group)

    logger.info(f"Digested {len(groups)} source groups from {len(params)} params")
    return groups


def _as_text(value: Any) -> Optional[str]:
    """Keep strings as they are, serialize inline JSON values."""
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value)


def build_groups(sources: Mapping[str, Any]) -> List[SourceGroup]:
    """
    Build source groups from a ``{name: [{input, output}, ...]}`` mapping.

    Raises:
        NoGroupsError: sources is empty
        ValueError: an entry is not a list of input/output mappings
    """
    if not sources:
        raise NoGroupsError()

    groups = []
    seen = set()
    for name, pairs in sources.items():
        name = str(name)
        if name in seen:
            raise DuplicateGroupError(name)
        seen.add(name)

        if not isinstance(pairs, list):
            raise ValueError(f"Sources for '{name}' must be a list of input/output pairs")

        group = SourceGroup(name=name)
        for index, pair in enumerate(pairs):
            if not isinstance(pair, dict):
                raise ValueError(f"Pair {index} of '{name}' must be a mapping with input/output keys")
            group.add_pair(_as_text(pair.get("input")), _as_text(pair.get("output")))
        groups.append(group)

    return groups


def load_sources_file(path: Union[str, Path]) -> List[SourceGroup]:
    """
    Load source groups from a YAML or JSON file.

    The file holds a top-level ``sources`` mapping (a bare mapping of
    group names is accepted too).

    Raises:
        FileNotFoundError: The file does not exist
        ValueError: The file cannot be parsed or has the wrong layout
        NoGroupsError: The file defines no groups
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Sources file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            # YAML is a superset of JSON, one loader covers both
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Error parsing sources file {path}: {e}")

    if not isinstance(data, dict):
        raise ValueError(f"Sources file {path} must contain a mapping")

    sources = data.get("sources", data)
    if not isinstance(sources, dict):
        raise ValueError(f"'sources' in {path} must be a mapping of group name → pairs")

    groups = build_groups(sources)
    logger.info(f"Loaded {len(groups)} source groups from {path}")
    return groups
