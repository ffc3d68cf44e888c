"""
Service layer for monorepo-build.

Contains the build logic that drives the git client:
- RefResolver: Branch/tag listing and commit attribution
- HistoryRewriter: Moves a remote's history into its subdirectory
- MergePlanner: Groups same-named refs into merge jobs
- TreeUnionMerger: Unifies a job's histories into one commit
- WorkspaceCleaner: Resets the checkout between phases
- MonorepoBuilder: Runs the whole pipeline

Services are the primary API for commands to use.
"""

from .ref_resolver import RefResolver
from .history_rewriter import HistoryRewriter
from .merge_planner import MergePlanner
from .tree_union_merger import TreeUnionMerger
from .workspace import WorkspaceCleaner
from .orchestrator import MonorepoBuilder

__all__ = [
    'RefResolver',
    'HistoryRewriter',
    'MergePlanner',
    'TreeUnionMerger',
    'WorkspaceCleaner',
    'MonorepoBuilder',
]
