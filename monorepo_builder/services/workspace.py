"""
Workspace cleanup service for monorepo-build.

The build mutates a single checkout. Before each rewrite and between remotes
the checkout is put back into a known-empty orphan state so no file or ref
from one remote leaks into the next.
"""

import logging

from ..exit_codes import GitCommandError, PreexistingStateError
from ..infra.git_client import GitClient

logger = logging.getLogger(__name__)

ORIGINAL_REFS_PREFIX = "refs/original/"


class WorkspaceCleaner:
    """Resets the build repository between phases."""

    def __init__(self, git: GitClient, orphan_branch: str = "void"):
        self.git = git
        self.orphan_branch = orphan_branch

    def reset(self) -> None:
        """
        Check out an empty orphan branch and delete every local branch.

        Afterwards there are no local branches and no files in the work
        tree besides .git.
        """
        if not self.git.ref_exists("HEAD"):
            # Unborn HEAD (fresh repository or orphan): nothing to leave
            self.git.point_head(self.orphan_branch)
        else:
            if self.orphan_branch in self.git.list_local_branches():
                # A born branch of that name blocks --orphan
                self.git.detach_head()
                self.git.delete_branch(self.orphan_branch)
            self.git.checkout_orphan(self.orphan_branch)
        self.git.reset_hard()
        self.git.clean_untracked()

        for branch in self.git.list_local_branches():
            self.git.delete_branch(branch)
        logger.debug(f"Workspace reset to orphan branch {self.orphan_branch}")

    def delete_all_tags(self) -> None:
        """Delete every local tag."""
        self.git.delete_tags(self.git.list_tags())

    def wipe_original_refs(self) -> None:
        """
        Delete the refs/original/ backups left by filter-branch.

        Raises:
            PreexistingStateError: If the backups cannot be removed
        """
        try:
            for ref in self.git.list_refs(ORIGINAL_REFS_PREFIX):
                self.git.delete_ref(ref)
        except GitCommandError as e:
            raise PreexistingStateError(
                f"Could not wipe leftover {ORIGINAL_REFS_PREFIX} refs: {e}"
            ) from e
