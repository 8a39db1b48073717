from django.conf import settings


def site(request):
    return {
        "SITE_NAME": settings.REPOVIEW_SITE_NAME,
        "VERSION": settings.REPOVIEW_VERSION,
    }
