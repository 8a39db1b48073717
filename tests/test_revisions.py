import pygit2
import pytest
import pytest_asyncio

from browse_app.exceptions import NotFound
from browse_app.models import BLOB, TREE
from browse_app.object_store import entry_kind, get_object_store
from browse_app.repositories import open_repository
from browse_app.revisions import normalize_path, resolve_path, resolve_revision


@pytest_asyncio.fixture
async def proj(repos):
    handle = await open_repository(repos.root, "proj")
    yield handle
    handle.close()


class RecordingStore:
    """Stand-in store that fails the commit-ish lookup and records the calls."""

    def __init__(self, branch_result=None):
        self.calls = []
        self.branch_result = branch_result

    async def head_ref(self, handle):
        self.calls.append("head_ref")
        return "main"

    async def resolve_commitish(self, handle, rev):
        self.calls.append(("commitish", rev))
        raise NotFound(f"{rev} is not a commit")

    async def resolve_branch_or_tag(self, handle, name):
        self.calls.append(("branch_or_tag", name))
        if self.branch_result is None:
            raise NotFound(f"no {name}")
        return self.branch_result


class FakeHandle:
    name = "fake"


@pytest.mark.asyncio
async def test_absent_revision_uses_head_shorthand(repos, proj):
    rev, commit = await resolve_revision(proj)
    assert rev == "main"
    assert str(commit.id) == repos.second


@pytest.mark.parametrize("rev,expected", [
    ("main", "second"),
    ("feature", "first"),
    ("v1", "first"),
    ("v2", "second"),
])
@pytest.mark.asyncio
async def test_branches_and_tags(repos, proj, rev, expected):
    _, commit = await resolve_revision(proj, rev)
    assert isinstance(commit, pygit2.Commit)
    assert str(commit.id) == getattr(repos, expected)


@pytest.mark.asyncio
async def test_full_and_short_ids(repos, proj):
    _, commit = await resolve_revision(proj, repos.first)
    assert str(commit.id) == repos.first
    rev, commit = await resolve_revision(proj, repos.first[:7])
    assert rev == repos.first[:7]
    assert str(commit.id) == repos.first


@pytest.mark.parametrize("rev", ["nope", "0" * 40, "main..feature", "", "   "])
@pytest.mark.asyncio
async def test_invalid_revision(proj, rev):
    with pytest.raises(NotFound) as excinfo:
        await resolve_revision(proj, rev)
    assert excinfo.value.reason == "Invalid rev id"


@pytest.mark.asyncio
async def test_empty_repository_has_no_default_revision(repos):
    async with await open_repository(repos.root, "empty") as handle:
        with pytest.raises(NotFound):
            await resolve_revision(handle)


@pytest.mark.asyncio
async def test_branch_or_tag_is_tried_after_commitish():
    store = RecordingStore(branch_result="commit")
    rev, commit = await resolve_revision(FakeHandle(), None, store)
    assert (rev, commit) == ("main", "commit")
    assert store.calls == ["head_ref", ("commitish", "main"), ("branch_or_tag", "main")]


@pytest.mark.asyncio
async def test_both_attempts_fail():
    store = RecordingStore()
    with pytest.raises(NotFound, match="Invalid rev id"):
        await resolve_revision(FakeHandle(), "x", store)
    assert store.calls == [("commitish", "x"), ("branch_or_tag", "x")]


def test_normalize_path():
    assert normalize_path(None) is None
    assert normalize_path("") is None
    assert normalize_path("/") is None
    assert normalize_path("/src//lib/") == "src/lib"


@pytest.mark.asyncio
async def test_root_tree_without_path(proj):
    _, commit = await resolve_revision(proj)
    tree = await resolve_path(commit, None, TREE)
    assert tree.id == commit.tree.id


@pytest.mark.asyncio
async def test_blob_without_path(proj):
    _, commit = await resolve_revision(proj)
    with pytest.raises(NotFound, match="path is undefined"):
        await resolve_path(commit, None, BLOB)


@pytest.mark.asyncio
async def test_nested_tree_and_blob(proj):
    _, commit = await resolve_revision(proj)
    tree = await resolve_path(commit, "src/lib", TREE)
    assert entry_kind(tree) == TREE
    assert "foo.py" in tree
    blob = await resolve_path(commit, "src/lib/foo.py", BLOB)
    assert blob.data.startswith(b"def foo")


@pytest.mark.parametrize("path,kind", [
    ("src", BLOB),
    ("README.md", TREE),
    ("missing", TREE),
    ("src/missing.py", BLOB),
    ("README.md/inner", BLOB),
])
@pytest.mark.asyncio
async def test_path_kind_mismatch_or_absence(proj, path, kind):
    _, commit = await resolve_revision(proj)
    with pytest.raises(NotFound):
        await resolve_path(commit, path, kind)


@pytest.mark.asyncio
async def test_resolving_same_path_twice(proj):
    _, commit = await resolve_revision(proj)
    first = await resolve_path(commit, "src/lib/foo.py", BLOB)
    again = await resolve_path(commit, "src/lib/foo.py", BLOB)
    assert entry_kind(first) == entry_kind(again) == BLOB
    assert first.id == again.id


@pytest.mark.asyncio
async def test_path_at_older_revision(proj):
    _, commit = await resolve_revision(proj, "v1")
    with pytest.raises(NotFound):
        await resolve_path(commit, "src/main.c", BLOB)


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["", " "])
async def test_blank_branch_or_tag_name(proj, name):
    store = get_object_store()
    with pytest.raises(NotFound):
        await store.resolve_branch_or_tag(proj, name)


@pytest.mark.asyncio
async def test_blank_revision_never_reaches_the_store():
    store = RecordingStore(branch_result="commit")
    with pytest.raises(NotFound, match="Invalid rev id"):
        await resolve_revision(FakeHandle(), "", store)
    assert store.calls == []
