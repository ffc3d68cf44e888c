"""
History rewriting service for monorepo-build.

Moves every path of a remote's history (all branches and all tags) under a
subdirectory using `git filter-branch --index-filter`, preserving commit
graph shape, authorship, dates and messages.
"""

import logging
import shlex
from typing import List, Optional

from ..domain.remote import RemoteSpec
from ..exit_codes import GitCommandError, RewriteFailure
from ..infra.git_client import GitClient
from .ref_resolver import RefResolver

logger = logging.getLogger(__name__)

TAB = "\t"


def _sed_replacement_escape(text: str) -> str:
    """Escape text for the replacement side of a `s|...|...|` sed command."""
    return text.replace("\\", "\\\\").replace("|", "\\|").replace("&", "\\&")


def build_index_filter(subdirectory: str) -> str:
    """
    Shell snippet for --index-filter that prefixes every path with subdirectory/.

    `ls-files -s` prints `<mode> <sha> <stage><TAB><path>`; the sed inserts
    the prefix after the tab (and after the opening quote of C-quoted
    paths). Every commit is moved the same way, whatever it contains.
    """
    sed_expr = shlex.quote(f's|{TAB}"*|&{_sed_replacement_escape(subdirectory)}/|')
    return (
        f'git ls-files -s | sed {sed_expr} | '
        'GIT_INDEX_FILE="$GIT_INDEX_FILE.new" git update-index --index-info && '
        'if [ -f "$GIT_INDEX_FILE.new" ]; then mv "$GIT_INDEX_FILE.new" "$GIT_INDEX_FILE"; fi'
    )


class HistoryRewriter:
    """
    Rewrites one remote's entire reachable history into a subdirectory.

    Example:
        rewriter = HistoryRewriter(GitClient("."))
        rewriter.rewrite(RemoteSpec.parse("beta:packages/beta"))
    """

    def __init__(
        self,
        git: GitClient,
        resolver: Optional[RefResolver] = None,
        head_branch: str = "master",
        verify: bool = True
    ):
        """
        Args:
            git: Client for the build repository
            resolver: Ref resolver (created from git if None)
            head_branch: Local branch checked out so filter-branch has a HEAD;
                also the remote branch preferred as its start point
            verify: Check afterwards that every rewritten ref lies under the
                subdirectory
        """
        self.git = git
        self.resolver = resolver or RefResolver(git)
        self.head_branch = head_branch
        self.verify = verify

    def _start_point(self, remote: str, branches: List[str], tags: List[str]) -> Optional[str]:
        if self.head_branch in branches:
            return f"refs/remotes/{remote}/{self.head_branch}"
        if branches:
            return f"refs/remotes/{remote}/{branches[0]}"
        if tags:
            return f"refs/tags/{tags[0]}"
        return None

    def rev_args(self, remote: RemoteSpec) -> List[str]:
        """Revision arguments covering everything rewritten for remote."""
        return [f"--remotes={remote.name}", "--tags"]

    def already_rewritten(self, remote: RemoteSpec) -> bool:
        """
        Check whether every path the remote's history ever held already
        sits under its subdirectory.

        The decision covers the whole history at once, so a history that
        only starts out inside the subdirectory is still moved as a whole.
        """
        prefix = remote.subdirectory + "/"
        paths = self.git.history_paths(self.rev_args(remote))
        return bool(paths) and all(path.startswith(prefix) for path in paths)

    def rewrite(self, remote: RemoteSpec) -> bool:
        """
        Rewrite remote's branches and the local tags into remote.subdirectory.

        Local tags are expected to hold only this remote's tags.

        Returns:
            False when there was nothing to do: the remote had no refs, or
            its history already lies under the subdirectory. True otherwise

        Raises:
            RewriteFailure: If filter-branch fails or leaves paths outside
                the subdirectory
        """
        branches = self.resolver.list_branches(remote.name)
        tags = self.resolver.list_tags()

        start_point = self._start_point(remote.name, branches, tags)
        if start_point is None:
            logger.warning(f"Remote '{remote.name}' has no branches or tags to rewrite")
            return False

        try:
            if self.already_rewritten(remote):
                logger.info(f"Remote '{remote.name}' already lives under '{remote.subdirectory}'")
                return False

            # filter-branch needs some valid HEAD
            self.git.checkout_new_branch(self.head_branch, start_point, force=True)
            self.git.filter_branch(
                build_index_filter(remote.subdirectory),
                self.rev_args(remote),
                tag_name_filter="cat",
            )
        except GitCommandError as e:
            raise RewriteFailure(remote.name, e.stderr or str(e)) from e

        if self.verify:
            self.verify_rewritten(remote, branches, tags)
        return True

    def verify_rewritten(self, remote: RemoteSpec, branches: List[str], tags: List[str]) -> None:
        """
        Check that every path of every rewritten ref sits under the subdirectory.

        Raises:
            RewriteFailure: Listing the first offending paths
        """
        prefix = remote.subdirectory + "/"
        refs = [f"refs/remotes/{remote.name}/{b}" for b in branches]
        refs += [f"refs/tags/{t}" for t in tags]

        for ref in refs:
            stray = [p for p in self.git.tree_paths(ref) if not p.startswith(prefix)]
            if stray:
                shown = ", ".join(stray[:5])
                more = f" and {len(stray) - 5} more" if len(stray) > 5 else ""
                raise RewriteFailure(
                    remote.name,
                    f"{ref} still has paths outside '{prefix}': {shown}{more}"
                )
