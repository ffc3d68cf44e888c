"""
The `build` command: fold several remotes into one monorepo.
"""

import json
import sys

import click
from rich.console import Console
from rich.markup import escape

from ..config import configure_logging, load_config
from ..domain.remote import parse_remote_specs
from ..exit_codes import CommandError, InputError, USAGE_ERROR, get_exit_code_for_exception
from ..infra.git_client import GitClient
from ..services.orchestrator import MonorepoBuilder

USAGE = "Usage: monorepo-build build <remote-name>[:<subdirectory>] <remote-name>[:<subdirectory>] ..."
EXAMPLE = "Example: monorepo-build build main-repository package-alpha:packages/alpha package-beta:packages/beta"


def make_git_client(config, repo_path):
    git_config = config.get('git', {})
    return GitClient(
        repo_path,
        executable=git_config.get('executable', 'git'),
        timeout=git_config.get('timeout_seconds'),
    )


def report_error(console, error):
    """Print a CommandError, naming the stage it failed in."""
    stage = f" (during {error.state})" if getattr(error, 'state', None) else ""
    # git paths may carry bytes that are not UTF-8
    message = str(error).encode("utf-8", "backslashreplace").decode("utf-8")
    console.print(f"[red]Error{stage}:[/red] {escape(message)}", soft_wrap=True)


@click.command('build')
@click.argument('remotes', nargs=-1)
@click.option('--repo', '-C', 'repo_path', default='.', show_default=True,
              type=click.Path(file_okay=False),
              help='Repository that has the remotes registered')
@click.option('--json', 'json_output', is_flag=True,
              help='Write final refs as JSONL to stdout; progress goes to stderr')
@click.option('--verbose', '-v', is_flag=True, help='Log every git command')
def build_cmd(remotes, repo_path, json_output, verbose):
    """Build a monorepo from the given remotes.

    Add the remotes first with "git remote add <remote-name> <repository-url>".
    The monorepo will contain all branches and tags from all remotes, merging
    those with the same name. If a subdirectory is not given, the remote name
    is used instead.

    Examples:

    \b
        monorepo-build build main-repository package-alpha:packages/alpha
        monorepo-build build -C ~/monorepo alpha beta:packages/beta --json
    """
    console = Console(stderr=json_output)
    err_console = Console(stderr=True)

    if len(remotes) < 2:
        console.print("Please provide at least 2 remotes to be merged into a new monorepo",
                      markup=False, highlight=False, soft_wrap=True)
        console.print(USAGE, markup=False, highlight=False, soft_wrap=True)
        console.print(EXAMPLE, markup=False, highlight=False, soft_wrap=True)
        sys.exit(USAGE_ERROR)

    try:
        config = load_config()
        configure_logging(config, verbose)
        specs = parse_remote_specs(remotes)

        builder = MonorepoBuilder(config=config, git_client=make_git_client(config, repo_path))
        for line in builder.build(specs):
            console.print(line, markup=False, highlight=False, soft_wrap=True)
    except KeyboardInterrupt as e:
        err_console.print("\n[yellow]Interrupted by user[/yellow]")
        err_console.print("The repository is in an intermediate state; reset it before retrying.",
                          markup=False, soft_wrap=True)
        sys.exit(get_exit_code_for_exception(e))
    except CommandError as e:
        report_error(err_console, e)
        if isinstance(e, InputError):
            err_console.print(USAGE, markup=False, highlight=False, soft_wrap=True)
        sys.exit(get_exit_code_for_exception(e))

    if json_output:
        for result in builder.last_result.results:
            print(json.dumps(result.to_dict(), ensure_ascii=False), flush=True)
        print(json.dumps(builder.last_result.to_dict(), ensure_ascii=False), flush=True)
