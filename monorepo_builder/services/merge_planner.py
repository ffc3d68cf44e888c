"""
Merge planning service for monorepo-build.

Groups same-named refs contributed by different remotes into merge jobs.
"""

from typing import Dict, List, Sequence

from ..domain.merge import MergeJob, RevisionContribution
from ..domain.ref import Ref, RefKind

ContributionMap = Dict[str, List[RevisionContribution]]


class MergePlanner:
    """Turns the Phase 1 contribution mappings into ordered merge jobs."""

    @staticmethod
    def collect_distinct_names(mapping: ContributionMap) -> List[str]:
        """Ref names in a reproducible (sorted) order."""
        return sorted(name for name, contributions in mapping.items() if contributions)

    def plan(self, kind: RefKind, mapping: ContributionMap) -> List[MergeJob]:
        """One job per distinct name, contributions in remote order."""
        jobs = []
        for name in self.collect_distinct_names(mapping):
            jobs.append(self.job_for(Ref(kind, name), mapping[name]))
        return jobs

    @staticmethod
    def job_for(ref: Ref, contributions: Sequence[RevisionContribution]) -> MergeJob:
        return MergeJob(ref=ref, contributions=tuple(contributions))
