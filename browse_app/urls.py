from django.urls import path

from . import views


app_name = 'browse_app'

# Branch and tag names containing "/" are not supported.
# Keep the most generic routes last.
urlpatterns = [
    path("", views.repo_list, name="repo_list"),
    path("fetch_all", views.fetch_all, name="fetch_all"),
    path("pygments.css", views.pygments_css, name="pygments_css"),
]

for prefix, suffix in (("", ""), ("<str:namespace>/", "_ns")):
    urlpatterns += [
        path(f"{prefix}<str:repo>/blob/<str:rev>/<path:path>", views.blob_view, name=f"blob{suffix}"),
        path(f"{prefix}<str:repo>/raw/<str:rev>/<path:path>", views.raw_blob, name=f"raw{suffix}"),
        path(f"{prefix}<str:repo>/commit/<str:rev>", views.commit_detail, name=f"commit{suffix}"),
        path(f"{prefix}<str:repo>/commits", views.commit_list, name=f"commits_head{suffix}"),
        path(f"{prefix}<str:repo>/commits/<str:rev>", views.commit_list, name=f"commits{suffix}"),
        path(f"{prefix}<str:repo>/commits/<str:rev>/<path:path>", views.commit_list, name=f"commits_path{suffix}"),
        path(f"{prefix}<str:repo>/tree/<str:rev>", views.tree_view, name=f"tree_root{suffix}"),
        path(f"{prefix}<str:repo>/tree/<str:rev>/<path:path>", views.tree_view, name=f"tree{suffix}"),
    ]

urlpatterns += [
    path("<str:repo>", views.tree_view, name="repo_overview"),
    path("<str:namespace>/<str:repo>", views.tree_view, name="repo_overview_ns"),
]
