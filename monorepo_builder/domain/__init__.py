"""
Domain layer for monorepo-build.

Contains pure domain objects with no I/O or side effects:
- RemoteSpec: A source remote and the subdirectory it is rewritten into
- Ref: A branch or tag, identified by (kind, name)
- RevisionContribution / MergeJob / MergeResult: merge bookkeeping
"""

from .remote import RemoteSpec, parse_remote_specs
from .ref import Ref, RefKind
from .merge import (
    BuildState,
    BuildSummary,
    MergeJob,
    MergeResult,
    RevisionContribution,
)

__all__ = [
    'RemoteSpec',
    'parse_remote_specs',
    'Ref',
    'RefKind',
    'BuildState',
    'BuildSummary',
    'MergeJob',
    'MergeResult',
    'RevisionContribution',
]
