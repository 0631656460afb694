"""Content serializer.

Converts a content instance into a flat list of (field name, string value)
pairs encoded as JSON, and back:

    [
      {"fieldName": "title", "value": "Hello"},
      {"fieldName": "tags", "value": "a,b"}
    ]

Deserialization never raises on bad stored data. Malformed JSON yields an
empty instance; unknown entries and unresolvable field types are skipped.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, TypeVar

from .content_types import ContentBase
from .exceptions import NotAContentTypeError
from .field_types import FieldType
from .registry import FieldTypeRegistry, field_types

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=ContentBase)

VALUE_SLOT = "_value"
VALUE_PROPERTY = "value"


@dataclass
class ContentFieldValue:
    """One serialized field: its name and string value."""

    field_name: str
    value: str = ""

    def to_json(self) -> dict[str, str]:
        return {"fieldName": self.field_name, "value": self.value}

    @classmethod
    def from_json(cls, data: Any) -> "ContentFieldValue | None":
        if not isinstance(data, dict):
            return None
        field_name = data.get("fieldName")
        if not isinstance(field_name, str):
            return None
        value = data.get("value")
        if value is None:
            value = ""
        elif not isinstance(value, str):
            value = str(value)
        return cls(field_name=field_name, value=value)


def parse_field_values(text: str | None) -> list[ContentFieldValue] | None:
    """Parse stored JSON into field values. Returns None if unparsable."""
    if not text:
        return None
    try:
        data = json.loads(text)
    except (TypeError, ValueError):
        return None
    if not isinstance(data, list):
        return None
    values = []
    for item in data:
        field_value = ContentFieldValue.from_json(item)
        if field_value is not None:
            values.append(field_value)
    return values


class ContentSerializer:
    """Serialize content instances to their flat storage form and back.

    Keeps per-type caches describing how to reach each field type's value
    slot. The caches are only ever filled with the same answer for a given
    type, so concurrent fills need no locking.
    """

    def __init__(self, registry: FieldTypeRegistry | None = None, indent: int | None = 2):
        self.registry = registry or field_types
        self.indent = indent
        self._accessor_cache: dict[type, str | None] = {}

    # ── Value slot access ────────────────────────────────────────

    def _accessor_for(self, field_instance: FieldType) -> str | None:
        field_class = type(field_instance)
        try:
            return self._accessor_cache[field_class]
        except KeyError:
            pass
        if hasattr(field_instance, VALUE_SLOT):
            accessor = VALUE_SLOT
        elif hasattr(field_class, VALUE_PROPERTY):
            accessor = VALUE_PROPERTY
        else:
            accessor = None
        self._accessor_cache[field_class] = accessor
        return accessor

    def get_field_string_value(self, field_instance: FieldType) -> str:
        """String form of the value held by a field type instance."""
        accessor = self._accessor_for(field_instance)
        if accessor is None:
            return ""
        return field_instance.convert_to_string(getattr(field_instance, accessor))

    def set_field_value(self, field_instance: FieldType, raw: str) -> None:
        """Decode ``raw`` into the value slot of a field type instance."""
        accessor = self._accessor_for(field_instance)
        if accessor == VALUE_SLOT:
            setattr(field_instance, VALUE_SLOT, field_instance.convert_value(raw))
        elif accessor == VALUE_PROPERTY:
            # The string accessor decodes on assignment
            setattr(field_instance, VALUE_PROPERTY, raw)

    def create_field_type_instance(self, shape: type[FieldType]) -> FieldType | None:
        """Create a fresh instance of a declared shape the registry knows, else None."""
        if not self.registry.system_name_for(shape):
            return None
        return shape()

    # ── Serialization ────────────────────────────────────────────

    def to_field_values(self, content: ContentBase) -> list[ContentFieldValue]:
        """Flatten a content instance into field values, in declaration order."""
        values = []
        for content_field in content._meta.fields:
            field_instance = getattr(content, content_field.name)
            if field_instance is None:
                continue
            values.append(
                ContentFieldValue(
                    field_name=content_field.name,
                    value=self.get_field_string_value(field_instance),
                )
            )
        return values

    def serialize(self, content: ContentBase) -> str:
        """Serialize a content instance to JSON text."""
        if not isinstance(content, ContentBase):
            raise NotAContentTypeError(f"{type(content).__name__} is not a content type")
        payload = [field_value.to_json() for field_value in self.to_field_values(content)]
        return json.dumps(payload, indent=self.indent, ensure_ascii=False)

    def deserialize(self, content_type: type[C], text: str | None) -> C:
        """Rebuild a content instance from JSON text.

        Args:
            content_type: ContentBase subclass to instantiate
            text: Serialized field values

        Returns:
            A new instance; fields without a stored entry keep their
            empty default.
        """
        if not (isinstance(content_type, type) and issubclass(content_type, ContentBase)):
            raise NotAContentTypeError(f"{content_type!r} is not a content type")

        content = content_type()
        field_values = parse_field_values(text)
        if field_values is None:
            if text:
                logger.warning(
                    "Unparsable content for %s, returning empty instance",
                    content_type.content_type_id(),
                )
            return content

        by_name: dict[str, str] = {}
        for field_value in field_values:
            # First entry wins
            by_name.setdefault(field_value.field_name, field_value.value)

        for content_field in content._meta.fields:
            if content_field.name not in by_name:
                continue
            field_instance = self.create_field_type_instance(content_field.field_type)
            if field_instance is None:
                logger.warning(
                    "Skipping field %s.%s: field type %s is not registered",
                    content_type.content_type_id(),
                    content_field.name,
                    content_field.field_type.__name__,
                )
                continue
            self.set_field_value(field_instance, by_name[content_field.name])
            setattr(content, content_field.name, field_instance)

        return content
