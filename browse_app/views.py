import logging

from django.conf import settings
from django.http import Http404, HttpRequest, HttpResponse, StreamingHttpResponse
from django.shortcuts import render
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from .context import (
    BlobContext,
    CommitContext,
    HistoryContext,
    TreeContext,
    repo_name_from_params,
)
from .exceptions import NotFound
from .helpers import highlight_css
from .maintenance import fetch_all as fetch_all_remotes
from .repositories import SORT_BY_NAME, SORT_BY_UPDATED, list_repositories


logger = logging.getLogger(__name__)


async def _initialize(ctx):
    try:
        await ctx.initialize()
    except NotFound as exc:
        logger.info("%r: %s", ctx, exc.reason)
        raise Http404(exc.reason) from exc
    return ctx


async def _render(request, template, ctx, *steps):
    try:
        await ctx.load_refs()
        for step in steps:
            await step()
        return render(request, template, {"ctx": ctx, "meta": {"title": ctx.repo_name}})
    finally:
        ctx.close()


def _page(request: HttpRequest) -> int:
    try:
        return max(int(request.GET.get("page", 1)), 1)
    except ValueError:
        return 1


async def repo_list(request: HttpRequest) -> HttpResponse:
    by_name = bool(request.GET.get("by-name"))
    items = await list_repositories(
        settings.REPOVIEW_REPOS_ROOT,
        SORT_BY_NAME if by_name else SORT_BY_UPDATED,
    )
    return render(request, "browse/repo_list.html", {
        "items": items,
        "order_by": "name" if by_name else "last_updated",
        "meta": {"title": "Repository list"},
    })


@csrf_exempt
@require_POST
async def fetch_all(request: HttpRequest) -> StreamingHttpResponse:
    return StreamingHttpResponse(
        fetch_all_remotes(settings.REPOVIEW_REPOS_ROOT),
        content_type="text/plain",
    )


async def tree_view(request, repo, rev=None, path=None, namespace=None):
    ctx = TreeContext(settings.REPOVIEW_REPOS_ROOT, repo_name_from_params(repo, namespace), rev, path)
    await _initialize(ctx)
    return await _render(request, "browse/tree.html", ctx)


async def blob_view(request, repo, rev, path, namespace=None):
    ctx = BlobContext(settings.REPOVIEW_REPOS_ROOT, repo_name_from_params(repo, namespace), rev, path)
    await _initialize(ctx)
    return await _render(request, "browse/blob.html", ctx, ctx.render_text)


async def raw_blob(request, repo, rev, path, namespace=None):
    ctx = BlobContext(settings.REPOVIEW_REPOS_ROOT, repo_name_from_params(repo, namespace), rev, path)
    await _initialize(ctx)
    try:
        if ctx.is_binary:
            return HttpResponse(ctx.blob.data, content_type="application/octet-stream")
        return HttpResponse(ctx.blob.data, content_type="text/plain; charset=utf-8")
    finally:
        ctx.close()


async def commit_detail(request, repo, rev, namespace=None):
    ctx = CommitContext(settings.REPOVIEW_REPOS_ROOT, repo_name_from_params(repo, namespace), rev)
    await _initialize(ctx)
    return await _render(request, "browse/commit.html", ctx)


async def commit_list(request, repo, rev=None, path=None, namespace=None):
    ctx = HistoryContext(
        settings.REPOVIEW_REPOS_ROOT,
        repo_name_from_params(repo, namespace),
        rev,
        path,
        page=_page(request),
        page_size=settings.REPOVIEW_HISTORY_PAGE_SIZE,
    )
    await _initialize(ctx)
    return await _render(request, "browse/commits.html", ctx)


def pygments_css(request):
    return HttpResponse(highlight_css(), content_type="text/css")
