#!/usr/bin/env python3

import click

from monorepo_builder.commands.build import build_cmd
from monorepo_builder.commands.whence import whence_cmd
from monorepo_builder.commands.config import config_cmd


@click.group()
@click.version_option(package_name="monorepo-build")
def cli():
    """monorepo-build - Fold several git repositories into one monorepo.

    Rewrites each remote's history into its own subdirectory and merges
    branches and tags with the same name across remotes.
    """
    pass


cli.add_command(build_cmd)
cli.add_command(whence_cmd)
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
