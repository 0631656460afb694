"""Form schema generation for content types.

Builds a JSON-shaped form description from a content type's field
declarations. Each node carries both Form-Render keys (``widget``,
``props``) and Formily keys (``x-component``, ``x-component-props``) so
either renderer can consume it:

    {
      "type": "object",
      "properties": {
        "title": {"type": "string", "title": "Title", "widget": "input", ...},
        ...
      },
      "required": ["title"]
    }

Schemas depend only on class-level declarations, so they are memoized in
the Django cache with a sliding timeout and an absolute ceiling.
"""

import json
import logging
import math
import time as _time
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Callable

from django.core.cache import caches

from .conf import get_setting
from .content_types import ContentField, is_content_type
from .exceptions import NotAContentTypeError
from .field_types import (
    TIME_FORMAT,
    DateTimeFieldType,
    FieldType,
    ValueType,
    format_date,
    format_datetime,
    get_enum_description,
    get_member_label,
)
from .registry import FieldTypeRegistry, field_types

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "content_fields:schema:"

# Builder used for registered types without a builder of their own
VALUE_TYPE_FALLBACKS = {
    ValueType.STRING: "text",
    ValueType.INTEGER: "integer",
    ValueType.FLOAT: "number",
    ValueType.BOOLEAN: "boolean",
    ValueType.TIMESTAMP: "datetime",
    ValueType.TIME: "time",
    ValueType.STRING_ARRAY: "array",
}

# Unordered fields sort after every field with an order hint
_UNORDERED = 1

Builder = Callable[[dict, ContentField, type[FieldType]], None]


def _ordered_fields(fields):
    indexed = list(enumerate(fields))
    indexed.sort(
        key=lambda pair: (
            (0, pair[1].order, pair[0]) if pair[1].order is not None else (_UNORDERED, 0, pair[0])
        )
    )
    return [content_field for _, content_field in indexed]


def _enum_options(enum_type: type[Enum]) -> list[dict[str, str]]:
    return [
        {"label": get_member_label(member), "value": str(member.value)}
        for member in enum_type
    ]


def _is_number(value) -> bool:
    """True for finite ints, floats and Decimals (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return False
    if isinstance(value, Decimal):
        return value.is_finite()
    if isinstance(value, float):
        return math.isfinite(value)
    return True


# =============================================================================
# DEFAULT VALUE CONVERTERS
# =============================================================================
# Each converter returns the JSON value for a declared default or raises
# TypeError / ValueError when the default does not fit the field.


def _string_default(value, shape):
    if isinstance(value, str):
        return value
    if _is_number(value):
        return str(value)
    raise TypeError("string default expected")


def _boolean_default(value, shape):
    if not isinstance(value, bool):
        raise TypeError("boolean default expected")
    return value


def _integer_default(value, shape):
    if not _is_number(value) or value != int(value):
        raise TypeError("integer default expected")
    return int(value)


def _number_default(value, shape):
    if not _is_number(value):
        raise TypeError("number default expected")
    return float(value)


def _datetime_default(value, shape):
    if isinstance(value, str):
        value = DateTimeFieldType().convert_value(value)
    if isinstance(value, (date, datetime)):
        return format_date(value)
    raise TypeError("date default expected")


def _time_default(value, shape):
    if not isinstance(value, time):
        raise TypeError("time default expected")
    return value.strftime(TIME_FORMAT)


def _array_default(value, shape):
    if not isinstance(value, (list, tuple)):
        raise TypeError("list default expected")
    item_type = getattr(shape, "item_type", None) or str
    items = []
    for item in value:
        if item_type is datetime:
            if not isinstance(item, datetime):
                raise TypeError("datetime items expected")
            items.append(format_datetime(item))
        elif item_type is float:
            if not _is_number(item):
                raise TypeError("number items expected")
            items.append(float(item))
        elif item_type is bool:
            if not isinstance(item, bool):
                raise TypeError("boolean items expected")
            items.append(item)
        elif item_type is int:
            if not isinstance(item, int) or isinstance(item, bool):
                raise TypeError("integer items expected")
            items.append(item)
        else:
            if not isinstance(item, str):
                raise TypeError("string items expected")
            items.append(item)
    return items


def _member_value(value, enum_type) -> str:
    if isinstance(value, enum_type):
        return str(value.value)
    if isinstance(value, int) and not isinstance(value, bool):
        return str(enum_type(value).value)
    raise TypeError(f"{enum_type.__name__} member expected")


def _option_default(value, shape):
    return _member_value(value, shape.enum_type)


def _multi_option_default(value, shape):
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_member_value(item, shape.enum_type) for item in value]
    return [_member_value(value, shape.enum_type)]


class SchemaGenerator:
    """Generate and memoize form schemas for content types.

    Args:
        registry: Field type registry (defaults to the process registry)
        cache_alias: Django cache alias for memoized schemas
        sliding_timeout: Seconds an entry lives after its last read
        absolute_timeout: Seconds after which an entry is always rebuilt

    Attributes:
        generation_count: Number of schemas built (cache misses)
    """

    def __init__(
        self,
        registry: FieldTypeRegistry | None = None,
        cache_alias: str | None = None,
        sliding_timeout: int | None = None,
        absolute_timeout: int | None = None,
    ):
        self.registry = registry or field_types
        self.cache_alias = cache_alias or get_setting("SCHEMA_CACHE")
        self.sliding_timeout = sliding_timeout or get_setting("SCHEMA_SLIDING_TIMEOUT")
        self.absolute_timeout = absolute_timeout or get_setting("SCHEMA_ABSOLUTE_TIMEOUT")
        self.generation_count = 0
        self._builders: dict[str, Builder] = {
            "text": self._build_text,
            "textArea": self._build_text_area,
            "markdown": self._build_markdown,
            "url": self._build_url,
            "color": self._build_color,
            "datetime": self._build_datetime,
            "time": self._build_time,
            "integer": self._build_integer,
            "number": self._build_number,
            "boolean": self._build_boolean,
            "image": self._build_image,
            "file": self._build_file,
            "array": self._build_array,
            "options": self._build_options,
            "options-multi": self._build_options_multi,
        }

    def register_builder(self, system_name: str, builder: Builder) -> None:
        """Register a node builder for a custom field type."""
        self._builders[system_name] = builder

    # ── Caching ──────────────────────────────────────────────────

    @property
    def cache(self):
        return caches[self.cache_alias]

    def cache_key(self, content_type) -> str:
        return f"{CACHE_KEY_PREFIX}{content_type.content_type_id()}"

    def _get_cached(self, key: str) -> dict | None:
        entry = self.cache.get(key)
        if entry is None:
            logger.debug("Schema cache miss for %s", key)
            return None
        remaining = entry["expires_at"] - _time.time()
        if remaining <= 0:
            self.cache.delete(key)
            logger.debug("Schema cache entry %s passed its absolute timeout", key)
            return None
        self.cache.touch(key, min(self.sliding_timeout, remaining))
        return entry["schema"]

    def _set_cached(self, key: str, schema: dict) -> None:
        entry = {"schema": schema, "expires_at": _time.time() + self.absolute_timeout}
        self.cache.set(key, entry, min(self.sliding_timeout, self.absolute_timeout))

    def invalidate(self, content_type) -> None:
        """Drop the cached schema of a content type."""
        self.cache.delete(self.cache_key(content_type))

    # ── Public API ───────────────────────────────────────────────

    def generate_schema(self, content_type) -> dict:
        """Return the form schema of a content type, from cache when possible.

        Raises:
            NotAContentTypeError: If content_type is not a ContentBase subclass
        """
        if not is_content_type(content_type):
            raise NotAContentTypeError(f"{content_type!r} must be a ContentBase subclass")

        key = self.cache_key(content_type)
        schema = self._get_cached(key)
        if schema is not None:
            return schema

        # Concurrent misses may each build and store the same schema
        schema = self.build_schema(content_type)
        self._set_cached(key, schema)
        return schema

    def generate_schema_json(self, content_type, indent: int | None = 2) -> str:
        """Return the form schema of a content type as JSON text."""
        return json.dumps(self.generate_schema(content_type), indent=indent, ensure_ascii=False)

    def build_schema(self, content_type) -> dict:
        """Build the form schema of a content type, bypassing the cache."""
        self.generation_count += 1
        properties = {}
        required = []
        for content_field in _ordered_fields(content_type._meta.fields):
            node = self.build_field_schema(content_field)
            if node is None:
                continue
            properties[content_field.name] = node
            if content_field.required:
                required.append(content_field.name)

        schema: dict[str, Any] = {"type": "object", "properties": properties}
        if required:
            schema["required"] = required
        return schema

    def build_field_schema(self, content_field: ContentField) -> dict | None:
        """Build one property node, or None if the field type is not supported."""
        shape = content_field.field_type
        system_name = self.registry.system_name_for(shape)
        if system_name is None:
            logger.debug("No schema for %s: unregistered field type", content_field.name)
            return None

        builder = self._builders.get(getattr(shape, "generic_name", system_name))
        if builder is None:
            builder = self._builders.get(VALUE_TYPE_FALLBACKS.get(shape.value_type))
        if builder is None:
            return None

        node: dict[str, Any] = {"title": self._title(content_field), "x-decorator": "FormItem"}
        if content_field.description:
            node["description"] = content_field.description

        builder(node, content_field, shape)

        if content_field.required:
            node["required"] = True
            if content_field.required_message:
                node.setdefault("message", {})["required"] = content_field.required_message

        if content_field.compare_to:
            other = content_field.compare_to
            message = content_field.compare_message or f"Must match {other}."
            message = message.replace("'", "\\'")
            node["x-validator"] = {
                "validator": (
                    f"(value) => {{ return value === form.values.{other} ? '' : '{message}'; }}"
                ),
                "depends": [other],
            }
        return node

    # ── Node helpers ─────────────────────────────────────────────

    def _title(self, content_field: ContentField) -> str:
        if content_field.display_name:
            return content_field.display_name
        enum_type = getattr(content_field.field_type, "enum_type", None)
        if enum_type is not None:
            description = get_enum_description(enum_type)
            if description:
                return description
        return content_field.name

    def _apply_default(self, node: dict, content_field: ContentField, shape, converter) -> None:
        if content_field.default is None:
            return
        try:
            value = converter(content_field.default, shape)
        except (TypeError, ValueError, OverflowError):
            logger.debug(
                "Ignoring default %r for %s: does not fit %s",
                content_field.default,
                content_field.name,
                shape.__name__,
            )
            return
        node["default"] = value
        node["defaultValue"] = value

    def _apply_length(self, node: dict, content_field: ContentField, props: dict) -> None:
        if content_field.min_length:
            node["minLength"] = content_field.min_length
            node["min"] = content_field.min_length
        if content_field.max_length is not None:
            node["maxLength"] = content_field.max_length
            node["max"] = content_field.max_length
            props["maxLength"] = content_field.max_length

    def _apply_range(self, node: dict, content_field: ContentField, props: dict) -> None:
        if content_field.min_value is not None:
            minimum = float(content_field.min_value)
            node["minimum"] = minimum
            node["min"] = minimum
            props["min"] = minimum
        if content_field.max_value is not None:
            maximum = float(content_field.max_value)
            node["maximum"] = maximum
            node["max"] = maximum
            props["max"] = maximum

    def _apply_pattern(self, node: dict, content_field: ContentField) -> None:
        if not content_field.pattern:
            return
        node["pattern"] = content_field.pattern
        node["x-validator"] = "pattern"
        node.setdefault("message", {})["pattern"] = (
            content_field.pattern_message or "Please enter a value in the correct format."
        )

    @staticmethod
    def _set_props(node: dict, props: dict) -> None:
        node["props"] = props
        node["x-component-props"] = dict(props)

    # ── Builders ─────────────────────────────────────────────────

    def _build_text(self, node, content_field, shape):
        node.update({"type": "string", "widget": "input", "x-component": "Input"})
        self._apply_default(node, content_field, shape, _string_default)

        props = {"placeholder": f"Please enter {node['title']}"}
        self._apply_length(node, content_field, props)
        self._apply_pattern(node, content_field)

        data_type = content_field.data_type
        if data_type == "email":
            node.update({"format": "email", "x-validator": "email"})
            props["placeholder"] = "Please enter an email address"
        elif data_type == "phone":
            node.update({"format": "tel", "x-validator": "phone"})
            props["placeholder"] = "Please enter a phone number"
            node.setdefault("message", {})["pattern"] = "Invalid phone number format."
        elif data_type == "url":
            node.update({"format": "url", "x-validator": "url"})
            props["placeholder"] = "Please enter a URL"
        elif data_type == "password":
            node.update({"widget": "password", "x-component": "Password"})
        elif data_type == "multiline":
            node.update({"widget": "textarea", "x-component": "TextArea"})

        self._set_props(node, props)

    def _build_text_area(self, node, content_field, shape):
        node.update({"type": "string", "widget": "textArea", "x-component": "TextArea"})
        self._apply_default(node, content_field, shape, _string_default)

        props = {}
        self._apply_length(node, content_field, props)
        self._apply_pattern(node, content_field)
        node["props"] = props
        if props:
            node["x-component-props"] = dict(props)

    def _build_markdown(self, node, content_field, shape):
        node.update({"type": "string", "widget": "markdown", "x-component": "Markdown"})
        self._apply_default(node, content_field, shape, _string_default)

        props = {"placeholder": f"Please enter {node['title']}"}
        if content_field.markdown_toolbar:
            props["toolbar"] = content_field.markdown_toolbar
        self._set_props(node, props)

    def _build_url(self, node, content_field, shape):
        node.update(
            {
                "type": "string",
                "format": "url",
                "widget": "input",
                "x-component": "Input",
                "x-validator": "url",
            }
        )
        self._apply_default(node, content_field, shape, _string_default)
        self._set_props(node, {"placeholder": "Please enter a URL"})

    def _build_color(self, node, content_field, shape):
        node.update(
            {"type": "string", "format": "color", "widget": "color", "x-component": "ColorPicker"}
        )
        self._apply_default(node, content_field, shape, _string_default)

    def _build_datetime(self, node, content_field, shape):
        node.update({"type": "string", "widget": "datePicker", "x-component": "DatePicker"})
        self._apply_default(node, content_field, shape, _datetime_default)

        show_time = bool(content_field.display_format and "HH:mm" in content_field.display_format)
        self._set_props(node, {"showTime": show_time})

    def _build_time(self, node, content_field, shape):
        node.update({"type": "string", "widget": "timePicker", "x-component": "TimePicker"})
        self._apply_default(node, content_field, shape, _time_default)
        self._set_props(node, {"format": "HH:mm:ss"})

    def _build_integer(self, node, content_field, shape):
        node.update({"type": "number", "widget": "inputNumber", "x-component": "NumberPicker"})
        self._apply_default(node, content_field, shape, _integer_default)

        props = {"precision": 0}
        self._apply_range(node, content_field, props)
        self._set_props(node, props)

    def _build_number(self, node, content_field, shape):
        node.update({"type": "number", "widget": "inputNumber", "x-component": "NumberPicker"})
        self._apply_default(node, content_field, shape, _number_default)

        props = {"precision": 2}
        self._apply_range(node, content_field, props)
        self._set_props(node, props)

    def _build_boolean(self, node, content_field, shape):
        node.update({"type": "boolean", "widget": "switch", "x-component": "Switch"})
        self._apply_default(node, content_field, shape, _boolean_default)

    def _build_image(self, node, content_field, shape):
        node.update({"type": "string", "widget": "imageUpload", "x-component": "ImageUploader"})
        self._apply_default(node, content_field, shape, _string_default)
        self._set_props(node, {"listType": "picture-card", "accept": "image/*"})

    def _build_file(self, node, content_field, shape):
        node.update({"type": "string", "widget": "upload", "x-component": "Upload"})
        self._apply_default(node, content_field, shape, _string_default)
        self._set_props(node, {"listType": "text", "multiple": False})

    def _build_array(self, node, content_field, shape):
        node.update({"type": "array", "widget": "list", "x-component": "ArrayItems"})
        self._apply_default(node, content_field, shape, _array_default)
        item_type = getattr(shape, "item_type", None) or str
        node["items"] = self._item_schema(item_type, content_field)

    def _item_schema(self, item_type: type, content_field: ContentField) -> dict:
        if item_type in (int, float):
            items = {"type": "number", "widget": "inputNumber", "x-component": "NumberPicker"}
            props = {"precision": 0 if item_type is int else 2}
            self._apply_range(items, content_field, props)
            self._set_props(items, props)
        elif item_type is bool:
            items = {"type": "boolean", "widget": "switch", "x-component": "Switch"}
        elif item_type is datetime:
            items = {
                "type": "string",
                "format": "date-time",
                "widget": "datePicker",
                "x-component": "DatePicker",
            }
            self._set_props(items, {"showTime": True})
        else:
            items = {"type": "string", "widget": "input", "x-component": "Input"}
            props = {}
            self._apply_length(items, content_field, props)
            if props:
                self._set_props(items, props)
        return items

    def _build_options(self, node, content_field, shape):
        node.update({"type": "string", "widget": "radio", "x-component": "Radio.Group"})
        self._apply_default(node, content_field, shape, _option_default)
        self._set_props(node, {"options": _enum_options(shape.enum_type)})

    def _build_options_multi(self, node, content_field, shape):
        node.update({"type": "array", "widget": "checkboxes", "x-component": "Checkbox.Group"})
        self._apply_default(node, content_field, shape, _multi_option_default)
        self._set_props(node, {"options": _enum_options(shape.enum_type), "direction": "row"})
