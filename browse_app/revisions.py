import logging

from .exceptions import NotFound
from .models import BLOB, TREE
from .object_store import entry_kind, get_object_store


logger = logging.getLogger(__name__)


async def resolve_revision(handle, rev=None, store=None):
    """Return (rev, commit) for rev, or for the head shorthand if rev is None.

    rev is first tried as anything the object store can parse into a commit,
    then as a branch or tag shorthand. Branch and tag names containing `/`
    are not supported by the URL layout.
    """
    store = store or get_object_store()
    if rev is None:
        rev = await store.head_ref(handle)
    if not rev.strip():
        raise NotFound("Invalid rev id")

    try:
        return rev, await store.resolve_commitish(handle, rev)
    except NotFound as exc:
        logger.debug("%s: %s", handle.name, exc.reason)
    try:
        return rev, await store.resolve_branch_or_tag(handle, rev)
    except NotFound as exc:
        logger.debug("%s: %s", handle.name, exc.reason)
    raise NotFound("Invalid rev id")


def normalize_path(path):
    if path is None:
        return None
    path = "/".join(part for part in path.split("/") if part)
    return path or None


async def resolve_path(commit, path, expected_kind, store=None):
    store = store or get_object_store()
    path = normalize_path(path)
    if path is None:
        if expected_kind == TREE:
            return await store.get_tree(commit)
        raise NotFound("Invalid blob, path is undefined")

    tree = await store.get_tree(commit)
    entry = await store.get_entry(tree, path)
    if entry_kind(entry) != expected_kind:
        raise NotFound(f"No such {expected_kind} {path}")
    if expected_kind == BLOB:
        return await store.get_blob(entry)
    return entry
