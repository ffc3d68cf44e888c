"""
Ref resolution service for monorepo-build.

Maps remotes to their branches, lists fetched tags and attributes commits
back to the remote that owns them.
"""

import logging
from typing import List

from ..domain.ref import Ref
from ..exit_codes import AmbiguousOrUnresolvedCommit
from ..infra.git_client import GitClient

logger = logging.getLogger(__name__)


class RefResolver:
    """
    Read-only view of the refs in the build repository.

    Example:
        resolver = RefResolver(GitClient("."))
        for branch in resolver.list_branches("alpha"):
            print(branch, resolver.resolve(f"refs/remotes/alpha/{branch}"))
    """

    def __init__(self, git: GitClient):
        self.git = git

    def list_branches(self, remote: str) -> List[str]:
        """Branch names reachable on remote (from its remote-tracking refs)."""
        return self.git.list_remote_tracking_branches(remote)

    def list_tags(self) -> List[str]:
        """
        Tag names currently in the local repository.

        Tags are fetched per remote, so this must be read before the next
        remote's fetch clears them.
        """
        return self.git.list_tags()

    def resolve(self, rev: str) -> str:
        """Commit id that rev peels to."""
        return self.git.rev_parse(rev)

    def resolve_branch(self, remote: str, branch: str) -> str:
        return self.resolve(f"refs/remotes/{remote}/{branch}")

    def resolve_tag(self, tag: str) -> str:
        return self.resolve(Ref.tag(tag).full_name)

    def remote_owning(self, commit: str) -> str:
        """
        Find the first remote whose remote-tracking branches contain commit.

        Remotes are tried in `git remote` listing order.

        Raises:
            AmbiguousOrUnresolvedCommit: If no remote-tracking branch contains it
        """
        containing = self.git.remotes_containing(commit)
        for remote in self.git.list_remotes():
            prefix = f"refs/remotes/{remote}/"
            if any(ref.startswith(prefix) for ref in containing):
                logger.debug(f"Commit {commit} owned by remote {remote}")
                return remote
        raise AmbiguousOrUnresolvedCommit(commit)
