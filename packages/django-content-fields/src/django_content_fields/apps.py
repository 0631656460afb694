from django.apps import AppConfig
from django.utils.module_loading import autodiscover_modules


class DjangoContentFieldsConfig(AppConfig):
    name = "django_content_fields"
    verbose_name = "Content Fields"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self):
        # Content types declared in installed apps' contents.py
        autodiscover_modules("contents")
