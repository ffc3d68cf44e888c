"""
monorepo-build - Fold several git repositories into one monorepo.

Every remote's full history (all branches and tags) is rewritten into its
own subdirectory, then branches and tags with the same name are unified
into single merge commits whose tree is the union of all contributing
trees.

Quick Start:
    from monorepo_builder import MonorepoBuilder, GitClient, parse_remote_specs

    builder = MonorepoBuilder(git_client=GitClient("/path/to/monorepo"))
    for line in builder.build(parse_remote_specs(["main", "lib:packages/lib"])):
        print(line)

Command line:
    monorepo-build build main-repository package-alpha:packages/alpha
"""

__version__ = "0.3.0"

from .domain import (
    RemoteSpec,
    parse_remote_specs,
    Ref,
    RefKind,
    BuildState,
    BuildSummary,
    MergeJob,
    MergeResult,
    RevisionContribution,
)
from .infra import GitClient
from .services import (
    RefResolver,
    HistoryRewriter,
    MergePlanner,
    TreeUnionMerger,
    WorkspaceCleaner,
    MonorepoBuilder,
)
from .config import load_config

__all__ = [
    "__version__",
    "RemoteSpec",
    "parse_remote_specs",
    "Ref",
    "RefKind",
    "BuildState",
    "BuildSummary",
    "MergeJob",
    "MergeResult",
    "RevisionContribution",
    "GitClient",
    "RefResolver",
    "HistoryRewriter",
    "MergePlanner",
    "TreeUnionMerger",
    "WorkspaceCleaner",
    "MonorepoBuilder",
    "load_config",
]
