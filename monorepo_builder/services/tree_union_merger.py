"""
Tree-union merge service for monorepo-build.

Unifies independent histories of one ref name into a single merge commit
whose parents are all contributing commits and whose tree is the union of
their trees. On a path present in several trees the last contribution (in
remote order) wins; there is no three-way merge.
"""

import logging

from ..domain.merge import MergeJob, MergeResult
from ..domain.ref import RefKind
from ..exit_codes import GitCommandError, MergeFailure
from ..infra.git_client import GitClient

logger = logging.getLogger(__name__)

MERGE_MESSAGE_HEADER = "Merge {ref} from all repos into monorepo. Revs:"


def merge_message(job: MergeJob) -> str:
    """Commit message listing every contributing remote and commit."""
    lines = [MERGE_MESSAGE_HEADER.format(ref=job.ref.name)]
    lines.extend(job.provenance())
    return "\n".join(lines) + "\n"


class TreeUnionMerger:
    """
    Executes merge jobs in the build repository.

    Example:
        merger = TreeUnionMerger(GitClient("."))
        result = merger.merge(job)
        print(result.commit, result.parents)
    """

    def __init__(self, git: GitClient, tag_branch_suffix: str = "_tmpBranch"):
        self.git = git
        self.tag_branch_suffix = tag_branch_suffix

    def merge(self, job: MergeJob) -> MergeResult:
        """
        Run a branch job: leave the unified commit checked out as the branch.

        Raises:
            MergeFailure: If any git step fails
        """
        if job.ref.kind != RefKind.BRANCH:
            raise ValueError(f"merge() expects a branch job, got {job.ref.kind.value}")
        try:
            return self._merge_into(job.ref.name, job)
        except GitCommandError as e:
            raise MergeFailure(job.ref.name, e.stderr or str(e)) from e

    def merge_tag(self, job: MergeJob) -> MergeResult:
        """
        Run a tag job on a temporary branch, then force the tag onto the result.

        Raises:
            MergeFailure: If any git step fails
        """
        if job.ref.kind != RefKind.TAG:
            raise ValueError(f"merge_tag() expects a tag job, got {job.ref.kind.value}")
        tmp_branch = f"{job.ref.name}{self.tag_branch_suffix}"
        try:
            result = self._merge_into(tmp_branch, job)
            self.git.tag(job.ref.name, result.commit, force=True)
            self.git.checkout(job.ref.full_name)
            self.git.delete_branch(tmp_branch)
        except GitCommandError as e:
            raise MergeFailure(job.ref.name, e.stderr or str(e)) from e
        return result

    def _merge_into(self, branch: str, job: MergeJob) -> MergeResult:
        self.git.checkout_new_branch(branch, job.seed.commit)

        if job.is_trivial:
            return MergeResult(
                ref=job.ref,
                commit=job.seed.commit,
                parents=self.git.parents(job.seed.commit),
                merged=False,
                contributions=job.contributions,
            )

        commits = job.commits
        logger.debug(f"Merging {len(commits)} commits into {branch}")
        self.git.merge_no_commit(commits[1:])

        # read-tree cannot take more than 8 trees, so stage them one by one
        for contribution in job.contributions:
            self.git.flatten_tree_into_index(contribution.commit)

        commit = self.git.commit(merge_message(job))
        self.git.reset_hard(commit)

        return MergeResult(
            ref=job.ref,
            commit=commit,
            parents=list(commits),
            merged=True,
            contributions=job.contributions,
        )
