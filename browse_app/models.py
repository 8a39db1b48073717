from dataclasses import dataclass, field
from typing import Optional

import pygit2


TREE = "tree"
BLOB = "blob"
SUBMODULE = "submodule"


@dataclass(frozen=True)
class RefSet:
    """Branch and tag shorthands of one repository, read fresh on every call."""
    branches: tuple = ()
    tags: tuple = ()


@dataclass(frozen=True)
class BreadcrumbPath:
    dir: str
    href: Optional[str] = None


@dataclass(frozen=True)
class TreeItem:
    name: str
    kind: str
    path: str
    size: Optional[int] = None


@dataclass(frozen=True)
class ChangedPath:
    status: str
    path: str
    old_path: Optional[str] = None

    @property
    def is_rename(self):
        return self.old_path is not None and self.old_path != self.path


@dataclass
class RepoListItem:
    name: str
    commit: pygit2.Commit
    kind: str
    updated: int = field(init=False)

    def __post_init__(self):
        self.updated = self.commit.author.time
