import logging
import math

from asgiref.sync import sync_to_async

from .helpers import highlight_code, language_from_path, line_gutter, split_message
from .models import BLOB, TREE, BreadcrumbPath
from .object_store import get_object_store
from .repositories import count_ancestors, open_repository
from .revisions import normalize_path, resolve_path, resolve_revision


logger = logging.getLogger(__name__)

MAX_BLOB_SIZE = 10**9
DEFAULT_PAGE_SIZE = 30


def repo_name_from_params(repo, namespace=None):
    return f"{namespace}/{repo}" if namespace else repo


def breadcrumbs(path):
    if not path:
        return None
    parts = path.split("/")
    return [
        BreadcrumbPath(part, None if i == len(parts) - 1 else "/".join(parts[:i + 1]))
        for i, part in enumerate(parts)
    ]


class NavigationContext:
    """Everything a single request needs to render one repository view.

    Built from the URL parameters, then populated by initialize(): the
    repository is opened, the revision resolved to a commit and finally
    load() fetches the payload of the concrete view.
    """

    view: str

    def __init__(self, root, repo_name, rev=None, path=None, store=None):
        self.root = root
        self.repo_name = repo_name
        # Branch/commit id/tag; None means the head shorthand.
        self.rev = rev
        # None is the repository root.
        self.path = normalize_path(path)
        self.store = store or get_object_store()
        self.repo = None
        self.commit = None
        self.refs = None
        self.initialized = False

    async def initialize(self):
        try:
            self.repo = await open_repository(self.root, self.repo_name, self.store)
            self.rev, self.commit = await resolve_revision(self.repo, self.rev, self.store)
            await self.load()
        except Exception:
            self.close()
            raise
        self.initialized = True
        return self

    async def load(self):
        pass

    async def load_refs(self):
        self.refs = await self.store.list_refs(self.repo)
        return self.refs

    @property
    def subpaths(self):
        return breadcrumbs(self.path)

    def close(self):
        if self.repo is not None:
            self.repo.close()

    async def __aenter__(self):
        return await self.initialize()

    async def __aexit__(self, exc_type, exc, tb):
        self.close()

    def __repr__(self):
        return f"<{type(self).__name__} {self.repo_name}@{self.rev}:{self.path or ''}>"


class TreeContext(NavigationContext):
    view = "tree"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tree = None
        self.entries = []

    async def load(self):
        self.tree = await resolve_path(self.commit, self.path, TREE, self.store)
        self.entries = await self.store.list_tree(self.tree, self.path or "")


class BlobContext(NavigationContext):
    view = "blob"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.blob = None
        self.highlighted_code = None
        self.line_gutter = None
        self.undecodable = False

    async def load(self):
        self.blob = await resolve_path(self.commit, self.path, BLOB, self.store)

    @property
    def is_binary(self):
        return self.blob.is_binary

    @property
    def is_too_large(self):
        return self.blob.size > MAX_BLOB_SIZE

    @property
    def is_rendered(self):
        return self.highlighted_code is not None

    @property
    def filename(self):
        return self.path.rsplit("/", 1)[-1]

    async def render_text(self):
        return await sync_to_async(self._render_text)()

    def _render_text(self):
        if self.is_binary or self.is_too_large:
            return False
        try:
            text = self.blob.data.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("%r is not utf-8, showing as binary", self)
            self.undecodable = True
            return False
        self.highlighted_code = highlight_code(text, language_from_path(self.path))
        self.line_gutter = line_gutter(text)
        return True


class CommitContext(NavigationContext):
    view = "commit"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.changes = []

    async def load(self):
        self.changes = await self.store.changed_paths(self.repo, self.commit)

    @property
    def summary(self):
        return split_message(self.commit.message)[0]

    @property
    def body(self):
        return split_message(self.commit.message)[1]


class HistoryContext(NavigationContext):
    view = "commits"

    def __init__(self, *args, page=1, page_size=DEFAULT_PAGE_SIZE, **kwargs):
        super().__init__(*args, **kwargs)
        self.page = max(page, 1)
        self.page_size = page_size
        self.commits = []
        self.total = 0

    async def load(self):
        start = (self.page - 1) * self.page_size
        end = start + self.page_size
        if self.path is None:
            self.total = await count_ancestors(self.repo, self.commit, self.store)
            i = 0
            async for commit in self.store.walk_ancestry(self.repo, self.commit):
                if i >= end:
                    break
                if i >= start:
                    self.commits.append(commit)
                i += 1
            return

        matched = 0
        async for commit in self.store.walk_ancestry(self.repo, self.commit):
            if not await self.store.touches_path(commit, self.path):
                continue
            if start <= matched < end:
                self.commits.append(commit)
            matched += 1
        self.total = matched

    @property
    def num_pages(self):
        return max(math.ceil(self.total / self.page_size), 1)

    @property
    def has_previous(self):
        return self.page > 1

    @property
    def has_next(self):
        return self.page < self.num_pages

    @property
    def previous_page(self):
        return self.page - 1

    @property
    def next_page(self):
        return self.page + 1
