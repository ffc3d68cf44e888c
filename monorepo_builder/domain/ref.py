"""
Ref domain object for monorepo-build.

Refs are identified across the whole run by (kind, name): a branch called
``master`` coming from two remotes is one ref to unify, not two.
"""

from dataclasses import dataclass
from enum import Enum


class RefKind(Enum):
    """Kind of a named ref."""
    BRANCH = "branch"
    TAG = "tag"


@dataclass(frozen=True)
class Ref:
    """A named branch or tag."""

    kind: RefKind
    name: str

    @classmethod
    def branch(cls, name: str) -> 'Ref':
        return cls(RefKind.BRANCH, name)

    @classmethod
    def tag(cls, name: str) -> 'Ref':
        return cls(RefKind.TAG, name)

    @property
    def full_name(self) -> str:
        """Fully qualified local ref name, e.g. refs/heads/master."""
        if self.kind == RefKind.BRANCH:
            return f"refs/heads/{self.name}"
        return f"refs/tags/{self.name}"

    def __str__(self) -> str:
        return self.name
