import os
import subprocess
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "repoview-insecure-development-key")
DEBUG = os.environ.get("REPOVIEW_DEBUG", "") not in ("", "0", "false", "False")
ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "*").split(",")

INSTALLED_APPS = [
    "django.contrib.staticfiles",
    "browse_app",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
]

ROOT_URLCONF = "repoview_core.urls"
ASGI_APPLICATION = "repoview_core.asgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "browse_app.context_processors.site",
            ],
        },
    },
]

# No models: everything is read from the repositories on disk.
DATABASES = {}

USE_TZ = True
TIME_ZONE = "UTC"

STATIC_URL = "static/"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "{asctime} {levelname} {name}: {message}", "style": "{"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "browse_app": {
            "handlers": ["console"],
            "level": "DEBUG" if DEBUG else "INFO",
        },
    },
}


def guess_git_revision():
    try:
        out = subprocess.run(
            ["git", "log", "--format=%h", "-n", "1"],
            cwd=BASE_DIR, capture_output=True, text=True, check=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return "0.1.0"
    return out.stdout.strip() or "0.1.0"


REPOVIEW_REPOS_ROOT = os.environ.get("REPOVIEW_REPOS_ROOT", str(BASE_DIR / "repositories"))
REPOVIEW_SITE_NAME = os.environ.get("REPOVIEW_SITE_NAME", "repoview")
REPOVIEW_VERSION = guess_git_revision()
REPOVIEW_HISTORY_PAGE_SIZE = int(os.environ.get("REPOVIEW_HISTORY_PAGE_SIZE", "30"))
