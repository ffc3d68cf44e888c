"""
Git client infrastructure for monorepo-build.

Provides a clean abstraction over git command execution.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from business logic

Unlike a read-only status client, every call here mutates or inspects the
one repository the build runs in, so failures are never swallowed: a
non-zero exit raises GitCommandError carrying git's own message.
"""

import os
import subprocess
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple
from pathlib import Path
import logging

from ..exit_codes import GitCommandError

logger = logging.getLogger(__name__)


class GitClient:
    """
    Abstraction over git commands for a single repository.

    The client is bound to one repository path and acts as the workspace
    handle passed to every build service.

    Example:
        client = GitClient("/path/to/monorepo")
        for branch in client.list_remote_tracking_branches("alpha"):
            print(branch, client.rev_parse(f"refs/remotes/alpha/{branch}"))
    """

    def __init__(
        self,
        path: str = ".",
        executable: str = "git",
        timeout: Optional[float] = None
    ):
        """
        Initialize GitClient.

        Args:
            path: Repository working directory
            executable: git binary to invoke
            timeout: Command timeout in seconds (None waits forever)
        """
        self.path = str(path)
        self.executable = executable
        self.timeout = timeout

    def _run(
        self,
        args: Sequence[str],
        check: bool = True,
        input: Optional[str] = None,
        env: Optional[Dict[str, str]] = None
    ) -> Tuple[str, int]:
        """
        Run a git command.

        Args:
            args: Arguments after the git executable
            check: Raise GitCommandError on non-zero exit
            input: Text fed to stdin
            env: Extra environment variables for this call

        Returns:
            Tuple of (stdout, returncode)
        """
        cmd = [self.executable] + list(args)
        run_env = None
        if env:
            run_env = os.environ.copy()
            run_env.update(env)

        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                cwd=self.path,
                capture_output=True,
                text=True,
                encoding="utf-8",
                # Paths are arbitrary bytes; keep them round-trippable
                errors="surrogateescape",
                input=input,
                env=run_env,
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired as e:
            logger.error(f"Git command timed out: {' '.join(cmd)}")
            raise GitCommandError(args, -1, f"timed out after {self.timeout}s") from e
        except OSError as e:
            logger.error(f"Git command failed: {' '.join(cmd)} - {e}")
            raise GitCommandError(args, -1, str(e)) from e

        if check and result.returncode != 0:
            logger.error(f"Git command failed ({result.returncode}): {' '.join(cmd)}")
            raise GitCommandError(args, result.returncode, result.stderr, result.stdout)

        return result.stdout, result.returncode

    @staticmethod
    def _lines(output: str) -> List[str]:
        return [line.strip() for line in output.splitlines() if line.strip()]

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def is_git_repo(self) -> bool:
        """Check if the client path is inside a git work tree."""
        if not Path(self.path).is_dir():
            return False
        output, code = self._run(["rev-parse", "--is-inside-work-tree"], check=False)
        return code == 0 and output.strip() == "true"

    def list_remotes(self) -> List[str]:
        """Registered remote names, in `git remote` listing order."""
        output, _ = self._run(["remote"])
        return self._lines(output)

    def list_refs(self, prefix: str) -> List[str]:
        """Full names of all refs under prefix (e.g. refs/original/)."""
        output, _ = self._run(["for-each-ref", "--format=%(refname)", prefix])
        return self._lines(output)

    def list_remote_tracking_branches(self, remote: str) -> List[str]:
        """
        Branch names of a remote, without the remote prefix.

        Symbolic refs such as refs/remotes/<remote>/HEAD are skipped.
        """
        prefix = f"refs/remotes/{remote}/"
        output, _ = self._run([
            "for-each-ref", "--format=%(refname)%00%(symref)", prefix
        ])
        branches = []
        for line in self._lines(output):
            refname, _, symref = line.partition("\0")
            if symref:
                continue
            branches.append(refname[len(prefix):])
        return branches

    def list_local_branches(self) -> List[str]:
        output, _ = self._run(["for-each-ref", "--format=%(refname:short)", "refs/heads/"])
        return self._lines(output)

    def list_tags(self) -> List[str]:
        output, _ = self._run(["for-each-ref", "--format=%(refname:short)", "refs/tags/"])
        return self._lines(output)

    def rev_parse(self, rev: str) -> str:
        """Resolve a revision to the commit id it peels to."""
        output, _ = self._run(["rev-parse", "--verify", f"{rev}^{{commit}}"])
        return output.strip()

    def ref_exists(self, ref: str) -> bool:
        _, code = self._run(["rev-parse", "--verify", "--quiet", ref], check=False)
        return code == 0

    def current_branch(self) -> Optional[str]:
        """Branch HEAD points at (even if unborn), or None when detached."""
        output, code = self._run(["symbolic-ref", "--quiet", "--short", "HEAD"], check=False)
        if code == 0 and output.strip():
            return output.strip()
        return None

    def remotes_containing(self, commit: str) -> List[str]:
        """Full names of remote-tracking branches that contain commit."""
        output, _ = self._run([
            "for-each-ref", "--format=%(refname)", f"--contains={commit}", "refs/remotes/"
        ])
        return self._lines(output)

    def parents(self, rev: str) -> List[str]:
        """Parent commit ids of rev, in order."""
        output, _ = self._run(["rev-list", "--parents", "-n", "1", rev])
        return output.split()[1:]

    def tree_paths(self, rev: str) -> List[str]:
        """Every path in the recursive tree of rev."""
        output, _ = self._run(["ls-tree", "-r", "-z", "--name-only", rev])
        return [path for path in output.split("\0") if path]

    def ls_tree(self, rev: str) -> str:
        """NUL-terminated `ls-tree -r` records, ready for update-index -z."""
        output, _ = self._run(["ls-tree", "-r", "-z", rev])
        return output

    def history_paths(self, rev_args: Sequence[str]) -> Set[str]:
        """
        Every path present in any commit reachable from rev_args.

        A path in a commit's tree is either added relative to its first
        parent or inherited from it, so the paths added along the whole
        history (root commits and each merge side included) are exactly
        the paths that ever existed.
        """
        output, _ = self._run([
            "log", "--format=", "--name-only", "-z", "--no-renames",
            "--diff-filter=A", "-m", "--root",
        ] + list(rev_args))
        return {path.strip("\n") for path in output.split("\0") if path.strip("\n")}

    # ------------------------------------------------------------------
    # Fetching and refs
    # ------------------------------------------------------------------

    def fetch(self, remote: str, tags: bool = True) -> None:
        args = ["fetch", "--quiet", remote]
        if tags:
            args.append("--tags")
        self._run(args)

    def delete_tags(self, names: Iterable[str]) -> None:
        names = list(names)
        if names:
            self._run(["tag", "-d"] + names)

    def delete_ref(self, ref: str) -> None:
        self._run(["update-ref", "-d", ref])

    def tag(self, name: str, rev: str = "HEAD", force: bool = True) -> None:
        args = ["tag"]
        if force:
            args.append("-f")
        self._run(args + [name, rev])

    # ------------------------------------------------------------------
    # Work tree and branches
    # ------------------------------------------------------------------

    def checkout(self, rev: str) -> None:
        self._run(["checkout", "-q", rev])

    def point_head(self, branch: str) -> None:
        """Make HEAD a symbolic ref to branch without touching the work tree."""
        self._run(["symbolic-ref", "HEAD", f"refs/heads/{branch}"])

    def detach_head(self) -> None:
        self._run(["checkout", "-q", "--detach"])

    def checkout_new_branch(self, name: str, start_point: str, force: bool = False) -> None:
        """Create branch name at start_point and check it out (-B when force)."""
        self._run(["checkout", "-q", "-B" if force else "-b", name, start_point])

    def checkout_orphan(self, name: str) -> None:
        self._run(["checkout", "-q", "--orphan", name])

    def reset_hard(self, rev: Optional[str] = None) -> None:
        args = ["reset", "-q", "--hard"]
        if rev:
            args.append(rev)
        self._run(args)

    def clean_untracked(self) -> None:
        """Remove untracked and ignored files and directories."""
        self._run(["clean", "-q", "-f", "-d", "-x"])

    def delete_branch(self, name: str) -> None:
        self._run(["branch", "-q", "-D", name])

    # ------------------------------------------------------------------
    # History rewriting and merging
    # ------------------------------------------------------------------

    def filter_branch(
        self,
        index_filter: str,
        rev_args: Sequence[str],
        tag_name_filter: Optional[str] = "cat",
        env: Optional[Dict[str, str]] = None
    ) -> None:
        """Run git filter-branch with an index filter over rev_args."""
        args = ["filter-branch", "--index-filter", index_filter]
        if tag_name_filter:
            args += ["--tag-name-filter", tag_name_filter]
        args += ["--"] + list(rev_args)
        self._run(args, env=env)

    def merge_no_commit(self, commits: Sequence[str]) -> None:
        """
        Start a merge recording commits as extra parents, without committing.

        Uses the `ours` strategy so no content merge happens and no conflict
        markers are written; the caller stages the real tree afterwards.
        """
        self._run([
            "merge", "-q", "--no-commit", "--no-ff", "-s", "ours",
            "--allow-unrelated-histories",
        ] + list(commits))

    def update_index_info(self, records: str) -> None:
        """Feed NUL-terminated index records to update-index."""
        if records:
            self._run(["update-index", "-z", "--index-info"], input=records)

    def flatten_tree_into_index(self, rev: str) -> None:
        """Stage every path of rev's tree, overwriting entries already staged."""
        self.update_index_info(self.ls_tree(rev))

    def commit(self, message: str) -> str:
        """
        Commit the index (with any pending merge parents) and return its id.
        """
        self._run(["commit", "-q", "--no-verify", "--allow-empty", "-m", message])
        return self.rev_parse("HEAD")
