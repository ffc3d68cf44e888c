"""
The `whence` command: tell which remote a commit came from.
"""

import json
import sys

import click
from rich.console import Console

from ..config import load_config
from ..exit_codes import CommandError, get_exit_code_for_exception
from ..services.ref_resolver import RefResolver
from .build import make_git_client, report_error


@click.command('whence')
@click.argument('rev')
@click.option('--repo', '-C', 'repo_path', default='.', show_default=True,
              type=click.Path(file_okay=False),
              help='Repository that has the remotes registered')
@click.option('--json', 'json_output', is_flag=True, help='Output as JSON')
def whence_cmd(rev, repo_path, json_output):
    """Show the remote whose branches contain REV.

    Remotes are tried in `git remote` order; the first one with a
    remote-tracking branch containing the commit wins.
    """
    try:
        config = load_config()
        resolver = RefResolver(make_git_client(config, repo_path))
        commit = resolver.resolve(rev)
        remote = resolver.remote_owning(commit)
    except CommandError as e:
        report_error(Console(stderr=True), e)
        sys.exit(get_exit_code_for_exception(e))

    if json_output:
        print(json.dumps({'rev': rev, 'commit': commit, 'remote': remote}))
    else:
        click.echo(f"{remote} {commit}")
