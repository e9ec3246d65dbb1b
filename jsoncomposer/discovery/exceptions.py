"""
Errors raised by schema discovery and composition.

All operations are pure over their inputs, so every error here is a hard
failure: re-running with the same input fails the same way.
"""

from typing import Optional


class JsonComposerError(Exception):
    """Base class for all jsoncomposer errors."""


class MalformedSampleError(JsonComposerError):
    """A sample's text is not usable JSON."""

    def __init__(self, group: str, pair_index: int, role: str, reason: str):
        self.group = group
        self.pair_index = pair_index
        self.role = role
        self.reason = reason
        super().__init__(
            f"Malformed {role} sample at pair {pair_index} of group '{group}': {reason}"
        )


class EmptyGroupError(JsonComposerError):
    """A source group has no usable sample pairs."""

    def __init__(self, group: str):
        self.group = group
        super().__init__(f"Group '{group}' has no usable sample pairs")


class NoGroupsError(JsonComposerError):
    """The request carried no source groups at all."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "No source groups to compose")


class NoGraphsError(JsonComposerError):
    """compose() was called with an empty sequence of graphs."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "No concept graphs to compose")


class DuplicateGroupError(JsonComposerError):
    """Two graphs (or groups) in one composition run share a name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Group name '{name}' is used more than once")
