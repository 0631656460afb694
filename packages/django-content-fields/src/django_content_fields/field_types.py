"""Built-in field types for django-content-fields.

A field type describes how one content field's value is represented,
converted to and from its single-string storage form, and validated.
Every variant carries a stable ``system_name`` used for registry lookup.

Parameterized variants are created by subscripting the generic class:

    ArrayFieldType[int]            # system name "array<int>"
    OptionsFieldType[QuestionType]  # system name "options<questiontype>"

Conversions never raise for malformed input; they return ``None`` (or an
empty list for multi-valued types) instead.
"""

import math
import re
from datetime import date, datetime, time
from enum import Enum
from typing import Any

from django.core.exceptions import ValidationError
from django.core.validators import URLValidator
from django.utils.dateparse import parse_date, parse_datetime, parse_time


TIME_FORMAT = "%H:%M:%S"

INT_MIN = -(2**31)
INT_MAX = 2**31 - 1

COLOR_PATTERN = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")
INTEGER_PATTERN = re.compile(r"^\s*[+-]?\d+\s*$")


class ValueType(Enum):
    """Semantic shape of a decoded field value."""

    STRING = "string"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    TIMESTAMP = "timestamp"
    TIME = "time"
    STRING_ARRAY = "string_array"
    TYPED_ARRAY = "typed_array"
    ENUM = "enum"
    ENUM_ARRAY = "enum_array"


class FieldType:
    """Base class for all field types.

    Subclasses override the class attributes and, for non-string values,
    ``convert_value``, ``convert_to_string`` and ``check``.

    Attributes:
        name: Human-readable label
        system_name: Stable machine identifier (registry key)
        value_type: Semantic shape of the decoded value
        multi_valued: True when the decoded value is a list
        error_message: Message returned by get_validation_error_message()
    """

    name: str = ""
    system_name: str | None = None
    value_type: ValueType = ValueType.STRING
    multi_valued: bool = False
    error_message: str | None = None

    def __init__(self, value: Any = None):
        self._value = self.empty_value() if value is None else value

    def __repr__(self):
        return f"<{type(self).__name__}: {self.value!r}>"

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self._value == other._value

    __hash__ = None

    def empty_value(self) -> Any:
        """Value held by a freshly created instance."""
        return [] if self.multi_valued else None

    # ── Codec ───────────────────────────────────────────────────

    def convert_value(self, raw: str | None) -> Any:
        """Parse a stored string into the decoded value."""
        return raw or None

    def convert_to_string(self, value: Any) -> str:
        """Encode a decoded value as its canonical string."""
        if value is None:
            return ""
        return str(value)

    def check(self, raw: str) -> bool:
        """Variant-specific acceptance test for a raw string."""
        return True

    def validate(self, raw: str | None, rules: str | None = None) -> bool:
        """Check whether a raw string is acceptable for this field.

        Args:
            raw: The candidate string
            rules: Optional regular expression the whole string must match

        Returns:
            True if the string is acceptable
        """
        raw = raw or ""
        if not self.check(raw):
            return False
        if rules and re.fullmatch(rules, raw) is None:
            return False
        return True

    def get_validation_error_message(self) -> str | None:
        return self.error_message

    # ── Value slot ──────────────────────────────────────────────

    def get_value(self) -> Any:
        return self._value

    def set_value(self, value: Any) -> None:
        self._value = value

    @property
    def value(self) -> str:
        """String view of the held value."""
        return self.convert_to_string(self._value)

    @value.setter
    def value(self, raw: str) -> None:
        self._value = self.convert_value(raw)

    def is_empty(self) -> bool:
        return self._value is None or self._value == "" or self._value == []


# =============================================================================
# STRING-VALUED TYPES
# =============================================================================


class TextFieldType(FieldType):
    name = "Text"
    system_name = "text"


class UrlFieldType(FieldType):
    name = "URL"
    system_name = "url"
    error_message = "Enter a valid URL."

    _validator = URLValidator()

    def check(self, raw: str) -> bool:
        try:
            self._validator(raw)
        except ValidationError:
            return False
        return True


class ColorFieldType(FieldType):
    name = "Color"
    system_name = "color"
    error_message = "Enter a valid color value (for example #FF0000)."

    def check(self, raw: str) -> bool:
        return COLOR_PATTERN.match(raw) is not None


class TextAreaFieldType(FieldType):
    name = "TextArea"
    system_name = "textArea"


class MarkdownFieldType(FieldType):
    name = "Markdown"
    system_name = "markdown"


class ImageFieldType(FieldType):
    """Image reference stored as a path or URL string."""

    name = "Image"
    system_name = "image"


class FileFieldType(FieldType):
    """File reference stored as a path or URL string."""

    name = "File"
    system_name = "file"


# =============================================================================
# SCALAR TYPES
# =============================================================================


def _parse_datetime(raw: str | None) -> datetime | None:
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        parsed = parse_datetime(raw)
        if parsed is None:
            parsed_date = parse_date(raw)
            if parsed_date is not None:
                parsed = datetime.combine(parsed_date, time.min)
    except ValueError:
        # Well formed but out of range, e.g. month 13
        return None
    return parsed


def format_date(value: date) -> str:
    """``YYYY-MM-DD`` with the year always four digits wide."""
    return f"{value.year:04d}-{value:%m-%d}"


def format_datetime(value: date) -> str:
    """Canonical ``YYYY-MM-DD HH:MM:SS`` form; plain dates become midnight."""
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    return f"{format_date(value)} {value:%H:%M:%S}"


class DateTimeFieldType(FieldType):
    name = "Date/Time"
    system_name = "datetime"
    value_type = ValueType.TIMESTAMP
    error_message = "Enter a valid date/time."

    def convert_value(self, raw):
        return _parse_datetime(raw)

    def convert_to_string(self, value):
        if isinstance(value, date):
            return format_datetime(value)
        return ""

    def check(self, raw):
        return _parse_datetime(raw) is not None


class TimeFieldType(FieldType):
    name = "Time"
    system_name = "time"
    value_type = ValueType.TIME
    error_message = "Enter a valid time."

    def convert_value(self, raw):
        raw = (raw or "").strip()
        if not raw:
            return None
        try:
            return parse_time(raw)
        except ValueError:
            return None

    def convert_to_string(self, value):
        if isinstance(value, time):
            return value.strftime(TIME_FORMAT)
        return ""

    def check(self, raw):
        return self.convert_value(raw) is not None


class IntegerFieldType(FieldType):
    """Signed 32-bit integer."""

    name = "Integer"
    system_name = "integer"
    value_type = ValueType.INTEGER
    error_message = "Enter a whole number."

    def convert_value(self, raw):
        if raw is None or INTEGER_PATTERN.match(raw) is None:
            return None
        number = int(raw)
        if not INT_MIN <= number <= INT_MAX:
            return None
        return number

    def convert_to_string(self, value):
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return ""

    def check(self, raw):
        return self.convert_value(raw) is not None


class BooleanFieldType(FieldType):
    name = "Boolean"
    system_name = "boolean"
    value_type = ValueType.BOOLEAN
    error_message = "Enter true or false."

    def convert_value(self, raw):
        normalized = (raw or "").strip().lower()
        if normalized == "true":
            return True
        if normalized == "false":
            return False
        return None

    def convert_to_string(self, value):
        if isinstance(value, bool):
            return "True" if value else "False"
        return ""

    def check(self, raw):
        return self.convert_value(raw) is not None


def _format_number(value: float) -> str:
    text = repr(float(value))
    if text.endswith(".0"):
        text = text[:-2]
    return text


class NumberFieldType(FieldType):
    """Finite floating point number."""

    name = "Number"
    system_name = "number"
    value_type = ValueType.FLOAT
    error_message = "Enter a number."

    def convert_value(self, raw):
        if not raw or "_" in raw:
            return None
        try:
            number = float(raw.strip())
        except ValueError:
            return None
        if not math.isfinite(number):
            return None
        return number

    def convert_to_string(self, value):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return ""
        try:
            number = float(value)
        except OverflowError:
            return ""
        if not math.isfinite(number):
            return ""
        return _format_number(number)

    def check(self, raw):
        return self.convert_value(raw) is not None


# =============================================================================
# MULTI-VALUED TYPES
# =============================================================================


def _split(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [item for item in raw.split(",") if item]


def _join(parts) -> str:
    return ",".join(part for part in parts if part)


class StringArrayFieldType(FieldType):
    """List of strings stored comma-joined."""

    name = "String array"
    system_name = "array"
    value_type = ValueType.STRING_ARRAY
    multi_valued = True

    def convert_value(self, raw):
        return _split(raw)

    def convert_to_string(self, value):
        if value is None:
            return ""
        if isinstance(value, (list, tuple)):
            return _join(str(item) for item in value)
        return str(value)


def _parameterize(cls, key, attrs: dict):
    """Return the cached subclass of ``cls`` for ``key``, creating it once."""
    variants = cls.__dict__["_variants"]
    try:
        return variants[key]
    except KeyError:
        pass
    variant_name = f"{cls.__name__}[{key.__name__}]"
    variant = type(
        variant_name,
        (cls,),
        {"__module__": cls.__module__, "__qualname__": variant_name, **attrs},
    )
    return variants.setdefault(key, variant)


ITEM_TYPE_TAGS = {
    str: "string",
    int: "int",
    float: "float",
    bool: "bool",
    datetime: "datetime",
}

ITEM_CODECS = {
    str: TextFieldType,
    int: IntegerFieldType,
    float: NumberFieldType,
    bool: BooleanFieldType,
    datetime: DateTimeFieldType,
}


class ArrayFieldType(FieldType):
    """Generic list field; subscript with an item type, e.g. ``ArrayFieldType[int]``.

    Items that fail to parse are dropped rather than failing the whole value.
    """

    generic_name = "array"
    value_type = ValueType.TYPED_ARRAY
    multi_valued = True
    item_type: type | None = None
    _variants: dict = {}

    def __class_getitem__(cls, item_type):
        if cls.item_type is not None:
            raise TypeError(f"{cls.__name__} is already parameterized")
        if item_type not in ITEM_TYPE_TAGS:
            raise TypeError(f"Unsupported array item type: {item_type!r}")
        tag = ITEM_TYPE_TAGS[item_type]
        return _parameterize(
            ArrayFieldType,
            item_type,
            {
                "item_type": item_type,
                "name": f"Array<{item_type.__name__}>",
                "system_name": f"array<{tag}>",
                "error_message": f"Enter a comma-separated list of {tag} values.",
            },
        )

    @property
    def item_tag(self) -> str | None:
        return ITEM_TYPE_TAGS.get(self.item_type)

    def _codec(self) -> FieldType:
        return ITEM_CODECS[self.item_type]()

    def convert_value(self, raw):
        items = _split(raw)
        if self.item_type in (None, str):
            return items
        codec = self._codec()
        result = []
        for item in items:
            converted = codec.convert_value(item)
            if converted is not None:
                result.append(converted)
        return result

    def convert_to_string(self, value):
        if value is None:
            return ""
        if isinstance(value, (list, tuple)):
            if self.item_type in (None, str):
                return _join(str(item) for item in value)
            codec = self._codec()
            return _join(codec.convert_to_string(item) for item in value)
        return str(value)

    def check(self, raw):
        if self.item_type in (None, str):
            return True
        codec = self._codec()
        return all(codec.convert_value(item) is not None for item in _split(raw))


# =============================================================================
# ENUMERATION TYPES
# =============================================================================


def enum_description(text: str):
    """Class decorator attaching a description to an enumeration.

    Used as the title of option fields that declare no display name.

    Example:
        @enum_description("Question type")
        class QuestionType(models.IntegerChoices):
            SINGLE_CHOICE = 1, "Single choice"
    """

    def decorator(enum_cls):
        enum_cls.__content_description__ = text
        return enum_cls

    return decorator


def get_enum_description(enum_cls) -> str | None:
    return getattr(enum_cls, "__content_description__", None)


def get_member_label(member: Enum) -> str:
    """Description of an enum member: its choices label if any, else its name."""
    label = getattr(member, "label", None)
    if label:
        return str(label)
    return member.name


def _check_enum(cls, enum_cls):
    if cls.enum_type is not None:
        raise TypeError(f"{cls.__name__} is already parameterized")
    if not (isinstance(enum_cls, type) and issubclass(enum_cls, Enum)):
        raise TypeError(f"Options fields need an Enum, got {enum_cls!r}")
    for member in enum_cls:
        if not isinstance(member.value, int) or isinstance(member.value, bool):
            raise TypeError(f"{enum_cls.__name__}.{member.name} must have an integer value")

    # The lowercased class name is the system name tag, shared by both families
    tag = enum_cls.__name__.lower()
    for family in (OptionsFieldType, OptionsMultiFieldType):
        for other in list(family._variants):
            if other is not enum_cls and other.__name__.lower() == tag:
                raise TypeError(
                    f"Enum name {enum_cls.__name__!r} is already used by "
                    f"{other.__module__}.{other.__qualname__}; "
                    f"options<{tag}> must name a single enum"
                )


def _parse_member(enum_cls, raw: str):
    if INTEGER_PATTERN.match(raw) is None:
        return None
    try:
        return enum_cls(int(raw))
    except ValueError:
        return None


def _member_to_string(value) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return ""


class OptionsFieldType(FieldType):
    """Single choice among the members of an integer enumeration.

    Subscript with the enum: ``OptionsFieldType[QuestionType]``. Members are
    stored by their integer value. The system name is built from the enum
    class name, so a second enum with the same name is rejected.
    """

    generic_name = "options"
    value_type = ValueType.ENUM
    enum_type: type[Enum] | None = None
    _variants: dict = {}

    def __class_getitem__(cls, enum_cls):
        _check_enum(cls, enum_cls)
        return _parameterize(
            OptionsFieldType,
            enum_cls,
            {
                "enum_type": enum_cls,
                "name": f"Options<{enum_cls.__name__}>",
                "system_name": f"options<{enum_cls.__name__.lower()}>",
                "error_message": f"Select a valid {enum_cls.__name__} choice.",
            },
        )

    def convert_value(self, raw):
        raw = (raw or "").strip()
        if not raw or self.enum_type is None:
            return None
        return _parse_member(self.enum_type, raw)

    def convert_to_string(self, value):
        if value is None:
            return ""
        return _member_to_string(value)

    def check(self, raw):
        if not raw:
            return True
        return self.convert_value(raw) is not None


class OptionsMultiFieldType(FieldType):
    """Multiple choices among the members of an integer enumeration."""

    generic_name = "options-multi"
    value_type = ValueType.ENUM_ARRAY
    multi_valued = True
    enum_type: type[Enum] | None = None
    _variants: dict = {}

    def __class_getitem__(cls, enum_cls):
        _check_enum(cls, enum_cls)
        return _parameterize(
            OptionsMultiFieldType,
            enum_cls,
            {
                "enum_type": enum_cls,
                "name": f"Options-multi<{enum_cls.__name__}>",
                "system_name": f"options-multi<{enum_cls.__name__.lower()}>",
                "error_message": (
                    f"Select valid {enum_cls.__name__} choices, separated by commas."
                ),
            },
        )

    def convert_value(self, raw):
        if self.enum_type is None:
            return []
        members = []
        for item in _split(raw):
            member = _parse_member(self.enum_type, item)
            if member is not None:
                members.append(member)
        return members

    def convert_to_string(self, value):
        if value is None:
            return ""
        if isinstance(value, (list, tuple)):
            return _join(_member_to_string(item) for item in value)
        return _member_to_string(value)

    def check(self, raw):
        if self.enum_type is None:
            return False
        return all(_parse_member(self.enum_type, item) is not None for item in _split(raw))


BUILTIN_FIELD_TYPES = [
    TextFieldType,
    UrlFieldType,
    ColorFieldType,
    TextAreaFieldType,
    MarkdownFieldType,
    DateTimeFieldType,
    TimeFieldType,
    IntegerFieldType,
    BooleanFieldType,
    NumberFieldType,
    ImageFieldType,
    FileFieldType,
    StringArrayFieldType,
]

GENERIC_FIELD_TYPES = [
    ArrayFieldType,
    OptionsFieldType,
    OptionsMultiFieldType,
]
