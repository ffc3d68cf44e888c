"""
Remote domain object for monorepo-build.

A remote is one source repository being folded into the monorepo, given on
the command line as ``<remote-name>[:<subdirectory>]``.
"""

from dataclasses import dataclass
from typing import Iterable, List

from ..exit_codes import InputError


@dataclass(frozen=True)
class RemoteSpec:
    """
    A registered git remote plus the subdirectory its history moves into.

    Examples:
        RemoteSpec.parse("alpha")                -> RemoteSpec("alpha", "alpha")
        RemoteSpec.parse("beta:packages/beta")   -> RemoteSpec("beta", "packages/beta")
    """

    name: str
    subdirectory: str

    @classmethod
    def parse(cls, argument: str) -> 'RemoteSpec':
        """
        Parse a ``<remote-name>[:<subdirectory>]`` argument.

        The subdirectory defaults to the remote name. Surrounding slashes
        are dropped so ``beta:/packages/beta/`` lands in ``packages/beta``.

        Raises:
            InputError: If the name or subdirectory is unusable
        """
        name, sep, subdirectory = argument.strip().partition(':')
        name = name.strip()
        if not name:
            raise InputError(f"Missing remote name in '{argument}'")

        if sep:
            subdirectory = subdirectory.strip().strip('/')
            if not subdirectory:
                raise InputError(f"Empty subdirectory in '{argument}'")
        else:
            subdirectory = name

        parts = subdirectory.split('/')
        if any(part in ('', '.', '..') for part in parts):
            raise InputError(f"Invalid subdirectory '{subdirectory}' in '{argument}'")
        # The index filter splices the subdirectory into git's quoted path output
        if any(ch in '"\\' or ord(ch) < 32 for ch in subdirectory):
            raise InputError(f"Unsupported character in subdirectory '{subdirectory}'")

        return cls(name=name, subdirectory=subdirectory)

    def __str__(self) -> str:
        return f"{self.name}:{self.subdirectory}"


def parse_remote_specs(arguments: Iterable[str]) -> List[RemoteSpec]:
    """
    Parse all remote arguments, preserving command-line order.

    Raises:
        InputError: On a malformed argument or a remote given twice
    """
    specs = []
    seen = set()
    for argument in arguments:
        spec = RemoteSpec.parse(argument)
        if spec.name in seen:
            raise InputError(f"Remote '{spec.name}' given more than once")
        seen.add(spec.name)
        specs.append(spec)
    return specs
