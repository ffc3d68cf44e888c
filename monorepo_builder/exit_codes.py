"""
Standard exit codes and error types for monorepo-build.

Following Unix/POSIX conventions for command-line tools. Every run-ending
error is a CommandError carrying the exit code the CLI should use.
"""
from typing import List, Optional, Sequence

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors (git, rewrite, merge failures)
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes
CONFIG_ERROR = 66        # Configuration file error
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)


class CommandError(Exception):
    """
    Base exception for errors that end a run with a specific exit code.

    Attributes:
        exit_code: Process exit status for the CLI
        state: Pipeline state the error was raised in (set by the orchestrator)
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code
        self.state: Optional[str] = None


class InputError(CommandError):
    """Raised when the command line or repository setup is unusable."""
    def __init__(self, message: str):
        super().__init__(message, USAGE_ERROR)


class ConfigError(CommandError):
    """Raised when the configuration file cannot be read."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


class GitCommandError(CommandError):
    """Raised when a git invocation exits non-zero or times out."""
    def __init__(
        self,
        args: Sequence[str],
        returncode: int,
        stderr: str = "",
        stdout: str = ""
    ):
        self.git_args: List[str] = list(args)
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        self.stdout = (stdout or "").strip()
        detail = self.stderr or self.stdout or f"exit status {returncode}"
        super().__init__(f"git {' '.join(self.git_args)}: {detail}")


class AmbiguousOrUnresolvedCommit(CommandError):
    """Raised when no remote-tracking branch contains a commit."""
    def __init__(self, commit: str):
        super().__init__(f"No remote-tracking branch contains commit {commit}")
        self.commit = commit


class RewriteFailure(CommandError):
    """Raised when rewriting a remote's history into its subdirectory fails."""
    def __init__(self, remote: str, message: str):
        super().__init__(f"Rewriting history of remote '{remote}' failed: {message}")
        self.remote = remote


class MergeFailure(CommandError):
    """Raised when a merge job cannot stage, commit or tag its result."""
    def __init__(self, ref: str, message: str):
        super().__init__(f"Merging '{ref}' failed: {message}")
        self.ref = ref


class PreexistingStateError(CommandError):
    """Raised when leftovers from an earlier run cannot be wiped."""
    pass


def get_exit_code_for_exception(exc: BaseException) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    if isinstance(exc, CommandError):
        return exc.exit_code
    if isinstance(exc, KeyboardInterrupt):
        return INTERRUPTED
    return GENERAL_ERROR
