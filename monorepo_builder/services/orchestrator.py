"""
Monorepo build orchestration for monorepo-build.

Drives the two-phase pipeline:

1. For each remote, in command-line order: fetch its tags, rewrite its
   history into its subdirectory, collect its branches and tags.
2. For each distinct branch name, then each distinct tag name: unify all
   remotes' versions into one ref.

Everything runs sequentially against a single checkout. The first failure
ends the run; a failed run must restart from an unmodified repository.
"""

import logging
import os
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional, Sequence

from ..config import load_config
from ..domain.merge import BuildState, BuildSummary, RevisionContribution
from ..domain.ref import Ref, RefKind
from ..domain.remote import RemoteSpec
from ..exit_codes import CommandError, InputError
from ..infra.git_client import GitClient
from .history_rewriter import HistoryRewriter
from .merge_planner import ContributionMap, MergePlanner
from .ref_resolver import RefResolver
from .tree_union_merger import TreeUnionMerger
from .workspace import WorkspaceCleaner

logger = logging.getLogger(__name__)

SQUELCH_ENV_VAR = "FILTER_BRANCH_SQUELCH_WARNING"


@contextmanager
def squelched_filter_branch_warning(enabled: bool = True):
    """Silence filter-branch's deprecation warning for the duration of a run."""
    if not enabled:
        yield
        return
    previous = os.environ.get(SQUELCH_ENV_VAR)
    os.environ[SQUELCH_ENV_VAR] = "1"
    try:
        yield
    finally:
        if previous is None:
            os.environ.pop(SQUELCH_ENV_VAR, None)
        else:
            os.environ[SQUELCH_ENV_VAR] = previous


class MonorepoBuilder:
    """
    Builds a monorepo from several registered remotes.

    Example:
        builder = MonorepoBuilder(git_client=GitClient("/path/to/monorepo"))
        specs = parse_remote_specs(["alpha", "beta:packages/beta"])

        for line in builder.build(specs):
            print(line)

        summary = builder.last_result
        print(f"{summary.merge_commits} merge commits created")
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        git_client: Optional[GitClient] = None
    ):
        """
        Initialize MonorepoBuilder.

        Args:
            config: Configuration dict (loads default if None)
            git_client: GitClient for the build repository (current
                directory if None)
        """
        self.config = config or load_config()
        git_config = self.config.get('git', {})
        build_config = self.config.get('build', {})

        self.git = git_client or GitClient(
            ".",
            executable=git_config.get('executable', 'git'),
            timeout=git_config.get('timeout_seconds'),
        )
        self.squelch_warning = git_config.get('squelch_filter_branch_warning', True)
        self.push_placeholder = build_config.get('push_remote_placeholder', '<monorepo_remote>')

        self.resolver = RefResolver(self.git)
        self.cleaner = WorkspaceCleaner(self.git, build_config.get('orphan_branch', 'void'))
        self.rewriter = HistoryRewriter(
            self.git,
            self.resolver,
            head_branch=build_config.get('rewrite_head_branch', 'master'),
            verify=build_config.get('verify_rewrite', True),
        )
        self.planner = MergePlanner()
        self.merger = TreeUnionMerger(self.git, build_config.get('tag_branch_suffix', '_tmpBranch'))

        self.state = BuildState.INIT
        self.merge_branches: ContributionMap = {}
        self.merge_tags: ContributionMap = {}
        self.last_result: Optional[BuildSummary] = None

    def _enter(self, state: BuildState) -> None:
        logger.debug(f"State {self.state.value} -> {state.value}")
        self.state = state

    def validate(self, remotes: Sequence[RemoteSpec]) -> None:
        """
        Check that the build can start.

        Raises:
            InputError: Too few remotes, not a repository, or unknown remotes
        """
        if len(remotes) < 2:
            raise InputError("Please provide at least 2 remotes to be merged into a new monorepo")
        if not self.git.is_git_repo():
            raise InputError(f"Not a git repository: {self.git.path}")

        registered = set(self.git.list_remotes())
        missing = [r.name for r in remotes if r.name not in registered]
        if missing:
            raise InputError(
                f"Unknown remote(s): {', '.join(missing)}. "
                "Add them first with 'git remote add <remote-name> <repository-url>'"
            )

    def build(self, remotes: Sequence[RemoteSpec]) -> Generator[str, None, BuildSummary]:
        """
        Run the whole pipeline.

        Args:
            remotes: Remotes in processing order

        Yields:
            Progress lines, indented by phase/remote/ref

        Returns:
            BuildSummary with the final ref of every branch and tag name

        Raises:
            CommandError: On the first failure, with .state set to the stage
                that failed
        """
        self.state = BuildState.INIT
        self.merge_branches = {}
        self.merge_tags = {}
        summary = BuildSummary(remotes=[r.name for r in remotes])
        self.last_result = summary

        try:
            with squelched_filter_branch_warning(self.squelch_warning):
                self.validate(remotes)
                self.cleaner.wipe_original_refs()
                self.cleaner.reset()

                yield "1. Rewrite history for all refs (branch and tags) across all remotes"
                for order, remote in enumerate(remotes):
                    yield from self._process_remote(order, remote)

                yield "2. Merge branches and tags with same names across remotes"
                yield "\tMerge Branches"
                self._enter(BuildState.MERGE)
                for job in self.planner.plan(RefKind.BRANCH, self.merge_branches):
                    yield from self._describe_job(job)
                    summary.branches.append(self.merger.merge(job))

                yield "\tMerge Tags"
                self._enter(BuildState.MERGE_AND_TAG)
                for job in self.planner.plan(RefKind.TAG, self.merge_tags):
                    yield from self._describe_job(job)
                    summary.tags.append(self.merger.merge_tag(job))
        except CommandError as e:
            if e.state is None:
                e.state = self.state.value
            raise

        self._enter(BuildState.DONE)
        yield (
            "3. Review created branches and tags. If all's well, push with "
            f"'git push --all {self.push_placeholder} && git push --tags {self.push_placeholder}'"
        )
        return summary

    def _process_remote(self, order: int, remote: RemoteSpec) -> Generator[str, None, None]:
        yield f"\tRemote '{remote.name}'"

        self._enter(BuildState.FETCH_TAGS)
        yield "\t\tFetch all tags"
        # Tags from the previous remote must not be rewritten again
        self.cleaner.delete_all_tags()
        self.git.fetch(remote.name, tags=True)

        self._enter(BuildState.REWRITE_HISTORY)
        yield f"\t\tRewrite history to move files into subdir '{remote.subdirectory}'"
        if not self.rewriter.rewrite(remote):
            yield "\t\tNothing to rewrite"

        self._enter(BuildState.CLEANUP)
        self.cleaner.reset()

        self._enter(BuildState.COLLECT_REFS)
        for branch in self.resolver.list_branches(remote.name):
            commit = self.resolver.resolve_branch(remote.name, branch)
            self._record(self.merge_branches, Ref.branch(branch), remote.name, commit, order)

        for tag in self.resolver.list_tags():
            commit = self.resolver.resolve_tag(tag)
            self._record(self.merge_tags, Ref.tag(tag), remote.name, commit, order)
            self.git.delete_tags([tag])

        # Wipe the back-up of the original history
        self.cleaner.wipe_original_refs()

    @staticmethod
    def _record(mapping: ContributionMap, ref: Ref, remote: str, commit: str, order: int) -> None:
        mapping.setdefault(ref.name, []).append(
            RevisionContribution(remote=remote, ref=ref, commit=commit, order=order)
        )

    @staticmethod
    def _describe_job(job) -> Generator[str, None, None]:
        yield f"\t\t{job.ref.name}, {len(job.contributions)} revs:"
        for line in job.provenance():
            yield f"\t\t\t{line}"

