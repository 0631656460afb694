"""Process-scoped instances shared by the service layer.

The serializer keeps per-type accessor caches and the catalog scans once,
so both are created lazily and reused for the life of the process.
"""

from functools import lru_cache

from .content_types import ContentTypeCatalog
from .registry import FieldTypeRegistry, field_types
from .schema import SchemaGenerator
from .serializer import ContentSerializer


def get_registry() -> FieldTypeRegistry:
    return field_types


@lru_cache(maxsize=None)
def get_serializer() -> ContentSerializer:
    return ContentSerializer(registry=get_registry())


@lru_cache(maxsize=None)
def get_schema_generator() -> SchemaGenerator:
    return SchemaGenerator(registry=get_registry())


@lru_cache(maxsize=None)
def get_catalog() -> ContentTypeCatalog:
    return ContentTypeCatalog()
