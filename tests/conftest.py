# Shared pytest fixtures: Django setup and real repositories built with pygit2

import os
from types import SimpleNamespace

import django
from django.test.utils import setup_test_environment
import pygit2
import pytest
from pygit2.enums import FileMode, ObjectType

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "repoview_core.settings")
django.setup()
setup_test_environment()


def build_tree(repo, files):
    # files maps slash-separated paths to blob contents
    builder = repo.TreeBuilder()
    subtrees = {}
    for path, data in files.items():
        head, _, rest = path.partition("/")
        if rest:
            subtrees.setdefault(head, {})[rest] = data
        else:
            builder.insert(head, repo.create_blob(data), FileMode.BLOB)
    for name, sub in subtrees.items():
        builder.insert(name, build_tree(repo, sub), FileMode.TREE)
    return builder.write()


def make_commit(repo, files, message, when, ref="refs/heads/main"):
    sig = pygit2.Signature("Tester", "tester@example.com", when, 0)
    parents = [] if repo.head_is_unborn else [repo.head.target]
    return repo.create_commit(ref, sig, sig, message, build_tree(repo, files), parents)


def init_bare(path):
    return pygit2.init_repository(str(path), bare=True, initial_head="main")


def init_non_bare(workdir):
    return pygit2.init_repository(str(workdir), bare=False, initial_head="main")


FIRST_FILES = {
    "README.md": b"# proj\n",
    "src/lib/foo.py": b"def foo():\n    return 1\n",
    "logo.png": b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR",
    "latin1.txt": b"caf\xe9\n",
}

SECOND_FILES = dict(FIRST_FILES, **{
    "README.md": b"# proj v2\n",
    "src/main.c": b"int main(void) { return 0; }\n",
})


@pytest.fixture
def repos(tmp_path):
    # Creates a repository root holding:
    #   proj.git/     bare, two commits, branch "feature", tags v1 (light) and v2 (annotated)
    #   ns/app/.git   non-bare, nested one level
    #   empty.git/    bare, no commits
    root = tmp_path / "repositories"
    root.mkdir()

    proj = init_bare(root / "proj.git")
    first = make_commit(proj, FIRST_FILES, "Initial import\n", 1000)
    second = make_commit(proj, SECOND_FILES, "Add main\n\nWith a body.\n", 2000)
    proj.create_branch("feature", proj[first])
    proj.references.create("refs/tags/v1", first)
    tagger = pygit2.Signature("Tester", "tester@example.com", 2100, 0)
    proj.create_tag("v2", second, ObjectType.COMMIT, tagger, "release 2\n")

    (root / "ns").mkdir()
    app = init_non_bare(root / "ns" / "app")
    app_commit = make_commit(app, {"app.txt": b"app\n"}, "app\n", 5000)

    init_bare(root / "empty.git")

    return SimpleNamespace(
        root=str(root),
        first=str(first),
        second=str(second),
        app_commit=str(app_commit),
    )


@pytest.fixture
def sorted_repos(tmp_path):
    # alpha is older than beta
    root = tmp_path / "sorted"
    root.mkdir()
    make_commit(init_bare(root / "beta.git"), {"b": b"b\n"}, "beta\n", 2000)
    make_commit(init_bare(root / "alpha.git"), {"a": b"a\n"}, "alpha\n", 1000)
    return str(root)
