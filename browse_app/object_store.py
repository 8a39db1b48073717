import itertools
import logging
import os
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

import pygit2
from asgiref.sync import sync_to_async
from pygit2.enums import FileMode, RepositoryOpenFlag, SortMode

from .exceptions import NotFound
from .models import BLOB, SUBMODULE, TREE, ChangedPath, RefSet, TreeItem


logger = logging.getLogger(__name__)

BARE = "bare"
NON_BARE = "non-bare"
WALK_BATCH = 256
TAG_PREFIX = "refs/tags/"

_LOOKUP_ERRORS = (KeyError, ValueError, pygit2.GitError)


class RepositoryHandle:
    """An opened repository. Owned by a single request; release with close()."""

    def __init__(self, name: str, path: str, kind: str, repo: pygit2.Repository):
        self.name = name
        self.path = path
        self.kind = kind
        self.repo = repo

    def close(self):
        if self.repo is not None:
            self.repo.free()
            self.repo = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.close()

    def __repr__(self):
        return f"<RepositoryHandle {self.name} ({self.kind})>"


class ObjectStore(ABC):
    """Read-only access to git objects.

    Every lookup that fails because the object does not exist raises
    NotFound. Implementations must be safe to await from an event loop.
    """

    @abstractmethod
    async def open_bare(self, path: str, name: str) -> RepositoryHandle:
        ...

    @abstractmethod
    async def open_non_bare(self, path: str, name: str) -> RepositoryHandle:
        ...

    @abstractmethod
    async def resolve_commitish(self, handle: RepositoryHandle, rev: str) -> pygit2.Commit:
        """Resolve an id, short id or anything rev-parse understands to a commit."""
        ...

    @abstractmethod
    async def resolve_branch_or_tag(self, handle: RepositoryHandle, name: str) -> pygit2.Commit:
        """Resolve a branch or tag shorthand to the commit it points at."""
        ...

    @abstractmethod
    async def head_ref(self, handle: RepositoryHandle) -> str:
        ...

    @abstractmethod
    async def head_commit(self, handle: RepositoryHandle) -> pygit2.Commit:
        ...

    @abstractmethod
    async def get_tree(self, commit: pygit2.Commit) -> pygit2.Tree:
        ...

    @abstractmethod
    async def get_entry(self, tree: pygit2.Tree, path: str) -> pygit2.Object:
        """Walk every segment of path below tree and return the terminal object."""
        ...

    @abstractmethod
    async def get_blob(self, entry: pygit2.Object) -> pygit2.Blob:
        ...

    @abstractmethod
    async def list_tree(self, tree: pygit2.Tree, prefix: str = "") -> list[TreeItem]:
        ...

    @abstractmethod
    async def list_refs(self, handle: RepositoryHandle) -> RefSet:
        ...

    @abstractmethod
    def walk_ancestry(self, handle: RepositoryHandle, start: pygit2.Commit) -> AsyncIterator[pygit2.Commit]:
        """Yield start and every commit reachable from it, newest first."""
        ...

    @abstractmethod
    async def touches_path(self, commit: pygit2.Commit, path: str) -> bool:
        ...

    @abstractmethod
    async def changed_paths(self, handle: RepositoryHandle, commit: pygit2.Commit) -> list[ChangedPath]:
        ...


def entry_kind(obj: pygit2.Object) -> str:
    if isinstance(obj, pygit2.Tree):
        return TREE
    if isinstance(obj, pygit2.Blob):
        return BLOB
    return SUBMODULE


def _take(iterator, n):
    return list(itertools.islice(iterator, n))


def _entry_id(tree: pygit2.Tree, path: str):
    try:
        return tree[path].id
    except _LOOKUP_ERRORS:
        return None


class Pygit2ObjectStore(ObjectStore):

    async def open_bare(self, path, name):
        return await sync_to_async(self._open)(path, name, BARE)

    async def open_non_bare(self, path, name):
        return await sync_to_async(self._open)(path, name, NON_BARE)

    def _open(self, path, name, kind):
        if not os.path.isdir(path):
            raise NotFound(f"No such repository {name}")
        try:
            repo = pygit2.Repository(path, flags=RepositoryOpenFlag.NO_SEARCH)
        except _LOOKUP_ERRORS as exc:
            logger.debug("Cannot open %s as a repository: %s", path, exc)
            raise NotFound(f"No such repository {name}") from exc
        return RepositoryHandle(name, path, kind, repo)

    async def resolve_commitish(self, handle, rev):
        return await sync_to_async(self._resolve_commitish)(handle, rev)

    def _resolve_commitish(self, handle, rev):
        try:
            return handle.repo.revparse_single(rev).peel(pygit2.Commit)
        except _LOOKUP_ERRORS as exc:
            raise NotFound(f"{rev} does not name a commit in {handle.name}") from exc

    async def resolve_branch_or_tag(self, handle, name):
        return await sync_to_async(self._resolve_branch_or_tag)(handle, name)

    def _resolve_branch_or_tag(self, handle, name):
        if not name.strip():
            raise NotFound(f"No branch or tag named {name!r} in {handle.name}")
        try:
            return handle.repo.lookup_reference_dwim(name).peel(pygit2.Commit)
        except _LOOKUP_ERRORS as exc:
            raise NotFound(f"No branch or tag {name} in {handle.name}") from exc

    async def head_ref(self, handle):
        return await sync_to_async(self._head_ref)(handle)

    def _head_ref(self, handle):
        try:
            return handle.repo.head.shorthand
        except _LOOKUP_ERRORS as exc:
            raise NotFound(f"Repository {handle.name} has no commits") from exc

    async def head_commit(self, handle):
        return await sync_to_async(self._head_commit)(handle)

    def _head_commit(self, handle):
        try:
            return handle.repo.head.peel(pygit2.Commit)
        except _LOOKUP_ERRORS as exc:
            raise NotFound(f"Repository {handle.name} has no commits") from exc

    async def get_tree(self, commit):
        return await sync_to_async(lambda: commit.tree)()

    async def get_entry(self, tree, path):
        return await sync_to_async(self._get_entry)(tree, path)

    def _get_entry(self, tree, path):
        try:
            obj = tree[path]
        except _LOOKUP_ERRORS as exc:
            raise NotFound(f"No such path {path}") from exc
        if entry_kind(obj) == SUBMODULE:
            raise NotFound(f"No such path {path}")
        return obj

    async def get_blob(self, entry):
        if not isinstance(entry, pygit2.Blob):
            raise NotFound(f"{entry.id} is not a blob")
        return entry

    async def list_tree(self, tree, prefix=""):
        return await sync_to_async(self._list_tree)(tree, prefix)

    def _list_tree(self, tree, prefix):
        items = []
        for obj in tree:
            if obj.filemode == FileMode.COMMIT:
                kind, size = SUBMODULE, None
            else:
                kind = TREE if obj.type_str == "tree" else BLOB
                size = obj.size if kind == BLOB else None
            path = f"{prefix}/{obj.name}" if prefix else obj.name
            items.append(TreeItem(obj.name, kind, path, size))
        items.sort(key=lambda item: (item.kind != TREE, item.name))
        return items

    async def list_refs(self, handle):
        return await sync_to_async(self._list_refs)(handle)

    def _list_refs(self, handle):
        repo = handle.repo
        tags = [r[len(TAG_PREFIX):] for r in repo.references if r.startswith(TAG_PREFIX)]
        return RefSet(branches=tuple(sorted(repo.branches.local)), tags=tuple(sorted(tags)))

    async def walk_ancestry(self, handle, start):
        walker = await sync_to_async(handle.repo.walk)(start.id, SortMode.TIME)
        fetch = sync_to_async(_take)
        while True:
            batch = await fetch(walker, WALK_BATCH)
            for commit in batch:
                yield commit
            if len(batch) < WALK_BATCH:
                return

    async def touches_path(self, commit, path):
        return await sync_to_async(self._touches_path)(commit, path)

    def _touches_path(self, commit, path):
        current = _entry_id(commit.tree, path)
        if not commit.parents:
            return current is not None
        return all(_entry_id(parent.tree, path) != current for parent in commit.parents)

    async def changed_paths(self, handle, commit):
        return await sync_to_async(self._changed_paths)(handle, commit)

    def _changed_paths(self, handle, commit):
        if commit.parents:
            diff = handle.repo.diff(commit.parents[0], commit)
        else:
            diff = commit.tree.diff_to_tree(swap=True)
        return [
            ChangedPath(delta.status_char(), delta.new_file.path, delta.old_file.path)
            for delta in diff.deltas
        ]


_default_store = None


def get_object_store() -> ObjectStore:
    global _default_store
    if _default_store is None:
        _default_store = Pygit2ObjectStore()
    return _default_store
