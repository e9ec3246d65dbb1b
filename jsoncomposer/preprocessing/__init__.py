"""
Adapters that turn raw inputs into SourceGroup collections.
"""

from jsoncomposer.preprocessing.sources import (
    SOURCE_PARAM_PATTERN,
    build_groups,
    digest_sources,
    load_sources_file,
)

__all__ = [
    'SOURCE_PARAM_PATTERN',
    'digest_sources',
    'build_groups',
    'load_sources_file',
]
