import django
import pytest
from django.conf import settings


def pytest_configure():
    if not settings.configured:
        settings.configure(
            DEBUG=True,
            DATABASES={
                "default": {
                    "ENGINE": "django.db.backends.sqlite3",
                    "NAME": ":memory:",
                }
            },
            CACHES={
                "default": {
                    "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
                    "LOCATION": "content-fields-tests",
                }
            },
            INSTALLED_APPS=[
                "django.contrib.contenttypes",
                "django.contrib.auth",
                "django_content_fields",
            ],
            DEFAULT_AUTO_FIELD="django.db.models.BigAutoField",
            USE_TZ=True,
            SECRET_KEY="test-secret-key-for-content-fields",
        )
    django.setup()


@pytest.fixture(autouse=True)
def clear_cache():
    """Start every test with an empty schema cache."""
    from django.core.cache import cache

    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def serializer():
    """A serializer over the default registry."""
    from django_content_fields.serializer import ContentSerializer

    return ContentSerializer()


@pytest.fixture
def schema_generator():
    """A fresh schema generator with its own generation counter."""
    from django_content_fields.schema import SchemaGenerator

    return SchemaGenerator()
