"""
Tests for exit codes and the error taxonomy.
"""

from monorepo_builder.exit_codes import (
    AmbiguousOrUnresolvedCommit,
    CommandError,
    ConfigError,
    GENERAL_ERROR,
    GitCommandError,
    INTERRUPTED,
    InputError,
    MergeFailure,
    PreexistingStateError,
    RewriteFailure,
    USAGE_ERROR,
    CONFIG_ERROR,
    get_exit_code_for_exception,
)


class TestCommandErrors:

    def test_exit_codes(self):
        assert InputError("x").exit_code == USAGE_ERROR
        assert ConfigError("x").exit_code == CONFIG_ERROR
        assert RewriteFailure("alpha", "boom").exit_code == GENERAL_ERROR
        assert MergeFailure("master", "boom").exit_code == GENERAL_ERROR
        assert PreexistingStateError("x").exit_code == GENERAL_ERROR
        assert AmbiguousOrUnresolvedCommit("abc").exit_code == GENERAL_ERROR

    def test_all_are_command_errors(self):
        for error in (
            InputError("x"),
            GitCommandError(["status"], 1),
            AmbiguousOrUnresolvedCommit("abc"),
            RewriteFailure("alpha", "boom"),
            MergeFailure("master", "boom"),
            PreexistingStateError("x"),
        ):
            assert isinstance(error, CommandError)
            assert error.state is None

    def test_git_command_error_prefers_stderr(self):
        error = GitCommandError(["fetch", "alpha"], 128, stderr="fatal: no such remote\n")
        assert str(error) == "git fetch alpha: fatal: no such remote"
        assert error.returncode == 128
        assert error.git_args == ["fetch", "alpha"]

    def test_git_command_error_without_output(self):
        error = GitCommandError(["status"], 3)
        assert "exit status 3" in str(error)

    def test_messages_name_subject(self):
        assert "alpha" in str(RewriteFailure("alpha", "boom"))
        assert "'master'" in str(MergeFailure("master", "boom"))
        assert "abc123" in str(AmbiguousOrUnresolvedCommit("abc123"))


class TestGetExitCodeForException:

    def test_command_error(self):
        assert get_exit_code_for_exception(InputError("x")) == USAGE_ERROR

    def test_keyboard_interrupt(self):
        assert get_exit_code_for_exception(KeyboardInterrupt()) == INTERRUPTED

    def test_other_exception(self):
        assert get_exit_code_for_exception(RuntimeError("x")) == GENERAL_ERROR
