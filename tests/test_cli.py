"""
Tests for the click command-line interface.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from monorepo_builder.cli import cli
from monorepo_builder.domain import BuildSummary, MergeResult, Ref
from monorepo_builder.exit_codes import (
    AmbiguousOrUnresolvedCommit,
    InputError,
    RewriteFailure,
    USAGE_ERROR,
)


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("MONOREPO_BUILD_CONFIG", raising=False)
    return CliRunner()


def fake_builder(lines, summary=None, error=None):
    """A MonorepoBuilder stand-in whose build() yields lines."""
    instance = MagicMock()

    def build(specs):
        instance.specs = specs
        yield from lines
        if error is not None:
            raise error
        return summary

    instance.build.side_effect = build
    instance.last_result = summary
    return instance


class TestBuildCommand:

    def test_fewer_than_two_remotes_prints_usage(self, runner):
        result = runner.invoke(cli, ['build', 'alpha'])

        assert result.exit_code == USAGE_ERROR
        assert "Please provide at least 2 remotes" in result.output
        assert "Usage: monorepo-build build <remote-name>[:<subdirectory>]" in result.output
        assert "Example:" in result.output

    def test_no_remotes(self, runner):
        result = runner.invoke(cli, ['build'])
        assert result.exit_code == USAGE_ERROR

    def test_progress_printed(self, runner):
        instance = fake_builder(["1. Rewrite history", "\tRemote 'alpha'", "3. Review"])
        with patch('monorepo_builder.commands.build.MonorepoBuilder', return_value=instance):
            result = runner.invoke(cli, ['build', 'alpha', 'beta:packages/beta'])

        assert result.exit_code == 0, result.output
        assert "1. Rewrite history" in result.output
        assert "Remote 'alpha'" in result.output
        assert [(s.name, s.subdirectory) for s in instance.specs] == [
            ("alpha", "alpha"), ("beta", "packages/beta")
        ]

    def test_ref_names_with_brackets_not_treated_as_markup(self, runner):
        instance = fake_builder(["\t\t[red]weird[/red], 1 revs:"])
        with patch('monorepo_builder.commands.build.MonorepoBuilder', return_value=instance):
            result = runner.invoke(cli, ['build', 'alpha', 'beta'])

        assert "[red]weird[/red], 1 revs:" in result.output

    def test_json_output(self, runner):
        summary = BuildSummary(remotes=["alpha", "beta"])
        summary.branches.append(MergeResult(Ref.branch("master"), "m1", ["a1", "b1"], True))
        summary.tags.append(MergeResult(Ref.tag("v1.0"), "a1", ["a0"], False))
        instance = fake_builder(["progress"], summary)

        with patch('monorepo_builder.commands.build.MonorepoBuilder', return_value=instance):
            result = runner.invoke(cli, ['build', '--json', 'alpha', 'beta'])

        assert result.exit_code == 0
        records = [json.loads(line) for line in result.stdout.splitlines() if line.startswith('{')]
        assert [(r['kind'], r['name'], r['merged']) for r in records[:-1]] == [
            ("branch", "master", True),
            ("tag", "v1.0", False),
        ]
        assert records[-1] == {
            'type': 'summary',
            'remotes': ["alpha", "beta"],
            'branches': 1,
            'tags': 1,
            'merge_commits': 1,
        }

    def test_invalid_remote_argument(self, runner):
        result = runner.invoke(cli, ['build', 'alpha', 'alpha:other'])

        assert result.exit_code == USAGE_ERROR
        assert "more than once" in result.output

    def test_fatal_error_names_stage(self, runner):
        error = RewriteFailure("beta", "fatal: bad object")
        error.state = "rewrite_history"
        instance = fake_builder(["1. Rewrite history"], error=error)

        with patch('monorepo_builder.commands.build.MonorepoBuilder', return_value=instance):
            result = runner.invoke(cli, ['build', 'alpha', 'beta'])

        assert result.exit_code == 1
        assert "Error (during rewrite_history):" in result.output
        assert "fatal: bad object" in result.output

    def test_error_with_undecodable_path(self, runner):
        """A stray Latin-1 filename in the message is escaped, not a crash."""
        error = RewriteFailure("one", "Paths outside 'one/': caf\udce9.txt")
        instance = fake_builder([], error=error)

        with patch('monorepo_builder.commands.build.MonorepoBuilder', return_value=instance):
            result = runner.invoke(cli, ['build', 'one', 'two'])

        assert result.exit_code == 1
        assert "caf\\udce9.txt" in result.output

    def test_input_error_from_builder(self, runner):
        instance = fake_builder([], error=InputError("Unknown remote(s): beta"))
        with patch('monorepo_builder.commands.build.MonorepoBuilder', return_value=instance):
            result = runner.invoke(cli, ['build', 'alpha', 'beta'])

        assert result.exit_code == USAGE_ERROR
        assert "Unknown remote(s): beta" in result.output

    def test_broken_config(self, runner, tmp_path):
        config_dir = tmp_path / '.monorepo-build'
        config_dir.mkdir()
        (config_dir / 'config.json').write_text('{broken')

        result = runner.invoke(cli, ['build', 'alpha', 'beta'])

        assert result.exit_code == 66


class TestWhenceCommand:

    def test_prints_owner(self, runner):
        resolver = MagicMock()
        resolver.resolve.return_value = "abc123"
        resolver.remote_owning.return_value = "beta"

        with patch('monorepo_builder.commands.whence.RefResolver', return_value=resolver):
            result = runner.invoke(cli, ['whence', 'master'])

        assert result.exit_code == 0
        assert result.output.strip() == "beta abc123"
        resolver.remote_owning.assert_called_once_with("abc123")

    def test_json(self, runner):
        resolver = MagicMock()
        resolver.resolve.return_value = "abc123"
        resolver.remote_owning.return_value = "beta"

        with patch('monorepo_builder.commands.whence.RefResolver', return_value=resolver):
            result = runner.invoke(cli, ['whence', '--json', 'master'])

        assert json.loads(result.output) == {'rev': 'master', 'commit': 'abc123', 'remote': 'beta'}

    def test_unresolved(self, runner):
        resolver = MagicMock()
        resolver.resolve.return_value = "abc123"
        resolver.remote_owning.side_effect = AmbiguousOrUnresolvedCommit("abc123")

        with patch('monorepo_builder.commands.whence.RefResolver', return_value=resolver):
            result = runner.invoke(cli, ['whence', 'master'])

        assert result.exit_code == 1
        assert "abc123" in result.output


class TestConfigCommand:

    def test_show(self, runner):
        result = runner.invoke(cli, ['config', 'show'])

        assert result.exit_code == 0
        config = json.loads(result.output)
        assert config['build']['orphan_branch'] == 'void'

    def test_show_pretty(self, runner):
        result = runner.invoke(cli, ['config', 'show', '--pretty'])
        assert result.exit_code == 0
        assert '\n  "build"' in result.output

    def test_show_path(self, runner, tmp_path):
        result = runner.invoke(cli, ['config', 'show', '--path'])

        data = json.loads(result.output)
        assert data['config_path'] == str(tmp_path / '.monorepo-build' / 'config.json')
        assert data['exists'] is False
