import logging
import os

from .exceptions import NotFound
from .models import RepoListItem
from .object_store import get_object_store


logger = logging.getLogger(__name__)

GIT_SUFFIX = ".git"
MAX_DEPTH = 2

SORT_BY_NAME = "name"
SORT_BY_UPDATED = "updated"


def trim_suffix(s, suffix):
    return s[:-len(suffix)] if suffix and s.endswith(suffix) else s


def repo_name(root, repo_path):
    rel = os.path.relpath(os.path.normpath(repo_path), os.path.normpath(root))
    rel = rel.replace(os.sep, "/")
    if rel == GIT_SUFFIX or rel.endswith("/" + GIT_SUFFIX):
        # non-bare
        return trim_suffix(trim_suffix(rel, GIT_SUFFIX), "/")
    return trim_suffix(rel, GIT_SUFFIX)


def _valid_name(name):
    parts = name.split("/")
    return all(part and part not in (".", "..") for part in parts)


def repo_folders(root, depth=MAX_DEPTH):
    """Return the metadata directories of every repository under root.

    Top-level entries and one level of namespacing are scanned. A directory
    named `*.git` is a bare repository; a directory holding `.git/` is a
    non-bare one. Neither is descended into.
    """
    folders = []
    if not os.path.isdir(root):
        return folders

    def scan(directory, level):
        try:
            entries = sorted(os.scandir(directory), key=lambda e: e.name)
        except OSError as exc:
            logger.warning("Cannot read %s: %s", directory, exc)
            return
        for entry in entries:
            if not entry.is_dir():
                continue
            if entry.name == GIT_SUFFIX:
                continue
            if entry.name.endswith(GIT_SUFFIX):
                folders.append(entry.path)
            elif os.path.isdir(os.path.join(entry.path, GIT_SUFFIX)):
                folders.append(os.path.join(entry.path, GIT_SUFFIX))
            elif level < depth:
                scan(entry.path, level + 1)

    scan(root, 1)
    return folders


async def discover(root, store=None):
    store = store or get_object_store()
    handles = []
    for folder in repo_folders(root):
        name = repo_name(root, folder)
        try:
            if os.path.basename(folder) == GIT_SUFFIX:
                handles.append(await store.open_non_bare(folder, name))
            else:
                handles.append(await store.open_bare(folder, name))
        except NotFound:
            logger.info("Skipping %s: not a git repository", folder)
    return handles


async def open_repository(root, name, store=None):
    store = store or get_object_store()
    if not name or not _valid_name(name):
        raise NotFound(f"No such repository {name}")
    potential_bare = os.path.join(root, name + GIT_SUFFIX)
    potential_non_bare = os.path.join(root, name, GIT_SUFFIX)
    if os.path.isdir(potential_bare):
        return await store.open_bare(potential_bare, name)
    if os.path.isdir(potential_non_bare):
        return await store.open_non_bare(potential_non_bare, name)
    raise NotFound(f"No such repository {name}")


async def list_repositories(root, sort_key=SORT_BY_UPDATED, store=None):
    store = store or get_object_store()
    items = []
    for handle in await discover(root, store):
        try:
            commit = await store.head_commit(handle)
        except NotFound as exc:
            logger.info("Leaving %s out of the listing: %s", handle.name, exc.reason)
            handle.close()
            continue
        items.append(RepoListItem(handle.name, commit, handle.kind))
        handle.close()

    if sort_key == SORT_BY_NAME:
        items.sort(key=lambda item: item.name)
    else:
        items.sort(key=lambda item: item.updated, reverse=True)
    return items


async def count_ancestors(handle, commit, store=None):
    store = store or get_object_store()
    n = 0
    async for _ in store.walk_ancestry(handle, commit):
        n += 1
    return n
