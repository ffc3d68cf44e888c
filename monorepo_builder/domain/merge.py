"""
Merge domain objects for monorepo-build.

Phase 1 records one RevisionContribution per (remote, ref). Phase 2 groups
them into MergeJobs, one per distinct ref name, and each job produces a
MergeResult. BuildSummary collects the results of a whole run.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple

from .ref import Ref


class BuildState(Enum):
    """Stages of a monorepo build, in the order they are visited."""
    INIT = "init"
    FETCH_TAGS = "fetch_tags"
    REWRITE_HISTORY = "rewrite_history"
    COLLECT_REFS = "collect_refs"
    CLEANUP = "cleanup"
    MERGE = "merge"
    MERGE_AND_TAG = "merge_and_tag"
    DONE = "done"


@dataclass(frozen=True)
class RevisionContribution:
    """
    One remote's version of a ref.

    Attributes:
        remote: Name of the contributing remote
        ref: The branch or tag
        commit: Rewritten commit id
        order: Position of the remote on the command line (0-based); decides
            merge order, the seed commit and which tree wins a path collision
    """
    remote: str
    ref: Ref
    commit: str
    order: int

    def describe(self) -> str:
        return f"{self.remote} {self.commit}"


@dataclass
class MergeJob:
    """All remotes' versions of one ref name, ordered by remote order."""
    ref: Ref
    contributions: Tuple[RevisionContribution, ...]

    def __post_init__(self):
        if not self.contributions:
            raise ValueError(f"Merge job for '{self.ref}' has no contributions")
        self.contributions = tuple(sorted(self.contributions, key=lambda c: c.order))

    @property
    def seed(self) -> RevisionContribution:
        return self.contributions[0]

    @property
    def commits(self) -> List[str]:
        """Distinct contributing commit ids, first occurrence kept."""
        seen = set()
        commits = []
        for contribution in self.contributions:
            if contribution.commit not in seen:
                seen.add(contribution.commit)
                commits.append(contribution.commit)
        return commits

    @property
    def is_trivial(self) -> bool:
        """True when there is nothing to merge."""
        return len(self.commits) == 1

    def provenance(self) -> List[str]:
        """One '<remote> <commit>' line per contribution."""
        return [c.describe() for c in self.contributions]


@dataclass
class MergeResult:
    """Final state of one ref after its merge job ran."""
    ref: Ref
    commit: str
    parents: List[str] = field(default_factory=list)
    merged: bool = False
    contributions: Tuple[RevisionContribution, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'kind': self.ref.kind.value,
            'name': self.ref.name,
            'commit': self.commit,
            'merged': self.merged,
            'parents': list(self.parents),
            'sources': [
                {'remote': c.remote, 'commit': c.commit}
                for c in self.contributions
            ],
        }


@dataclass
class BuildSummary:
    """Summary of a whole monorepo build."""
    remotes: List[str] = field(default_factory=list)
    branches: List[MergeResult] = field(default_factory=list)
    tags: List[MergeResult] = field(default_factory=list)

    @property
    def results(self) -> List[MergeResult]:
        return self.branches + self.tags

    @property
    def merge_commits(self) -> int:
        return sum(1 for r in self.results if r.merged)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': 'summary',
            'remotes': list(self.remotes),
            'branches': len(self.branches),
            'tags': len(self.tags),
            'merge_commits': self.merge_commits,
        }
