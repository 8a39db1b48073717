from django.apps import AppConfig


class BrowseAppConfig(AppConfig):
    name = "browse_app"
    verbose_name = "Repository browser"
