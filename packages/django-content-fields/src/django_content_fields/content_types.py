"""Content type definitions and discovery.

A content type is a ContentBase subclass declaring its fields with
ContentField. The field list is collected once, when the class is created,
into ``cls._meta``; serialization and schema generation read that
descriptor instead of inspecting instances.

Usage:
    class Page(ContentBase):
        content_description = "A plain page"

        title = ContentField(TextFieldType, display_name="Title", required=True)
        tags = ContentField(ArrayFieldType[str])

    page = Page(title="Hello", tags=["a", "b"])
    page.title.get_value()  # "Hello"
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from .exceptions import ContentTypeNotFoundError
from .field_types import FieldType, ValueType

logger = logging.getLogger(__name__)


DATA_TYPES = ("email", "phone", "url", "password", "multiline")
MARKDOWN_TOOLBARS = ("simple", "standard", "full")


class ContentField:
    """Declaration of one field of a content type.

    Holds the field type plus display metadata and validation constraints.
    On instances it behaves as an attribute holding a FieldType instance;
    assigning a plain value wraps it in a new instance of the field type.
    A string assigned to a non-text field is parsed when the field type
    accepts it; otherwise it is held as is and reported by validation.

    Attributes:
        field_type: FieldType subclass (possibly parameterized)
        display_name: Label shown to editors
        description: Help text shown to editors
        order: Ordering hint for form rendering
        required: Whether a value must be supplied
        required_message: Custom message for a missing value
        min_length, max_length: String length bounds
        min_value, max_value: Numeric range
        pattern, pattern_message: Regex the value must match
        default: Default value for new content
        compare_to, compare_message: Name of a field this one must equal
        display_format: Display format hint, e.g. "yyyy-MM-dd HH:mm"
        data_type: Text refinement (email, phone, url, password, multiline)
        markdown_toolbar: Editor toolbar style (simple, standard, full)
    """

    def __init__(
        self,
        field_type: type[FieldType],
        *,
        display_name: str | None = None,
        description: str | None = None,
        order: int | None = None,
        required: bool = False,
        required_message: str | None = None,
        min_length: int | None = None,
        max_length: int | None = None,
        min_value: float | None = None,
        max_value: float | None = None,
        pattern: str | None = None,
        pattern_message: str | None = None,
        default: Any = None,
        compare_to: str | None = None,
        compare_message: str | None = None,
        display_format: str | None = None,
        data_type: str | None = None,
        markdown_toolbar: str | None = None,
    ):
        if not (isinstance(field_type, type) and issubclass(field_type, FieldType)):
            raise TypeError(f"ContentField needs a FieldType subclass, got {field_type!r}")
        if data_type is not None and data_type not in DATA_TYPES:
            raise ValueError(f"Unknown data_type: {data_type}")
        if markdown_toolbar is not None and markdown_toolbar not in MARKDOWN_TOOLBARS:
            raise ValueError(f"Unknown markdown_toolbar: {markdown_toolbar}")

        self.field_type = field_type
        self.display_name = display_name
        self.description = description
        self.order = order
        self.required = required
        self.required_message = required_message
        self.min_length = min_length
        self.max_length = max_length
        self.min_value = min_value
        self.max_value = max_value
        self.pattern = pattern
        self.pattern_message = pattern_message
        self.default = default
        self.compare_to = compare_to
        self.compare_message = compare_message
        self.display_format = display_format
        self.data_type = data_type
        self.markdown_toolbar = markdown_toolbar
        self.name: str | None = None

    def __repr__(self):
        return f"<ContentField {self.name}: {self.field_type.__name__}>"

    def __set_name__(self, owner, name):
        self.name = name

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return instance.__dict__.get(self.name)

    def __set__(self, instance, value):
        if value is not None and not isinstance(value, FieldType):
            wrapped = self.field_type()
            if (
                isinstance(value, str)
                and wrapped.value_type is not ValueType.STRING
                and wrapped.validate(value)
            ):
                # Stored-form strings decode through the codec
                wrapped.value = value
            else:
                wrapped.set_value(value)
            value = wrapped
        instance.__dict__[self.name] = value

    def create(self) -> FieldType:
        """Create an empty instance of this field's type."""
        return self.field_type()

    @property
    def has_length_bounds(self) -> bool:
        return self.min_length is not None or self.max_length is not None

    @property
    def has_range(self) -> bool:
        return self.min_value is not None or self.max_value is not None


@dataclass(frozen=True)
class ContentTypeMeta:
    """Field descriptor of a content type, built once per class."""

    content_type_id: str
    fields: tuple[ContentField, ...]
    abstract: bool = False

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def get_field(self, name: str) -> ContentField | None:
        for content_field in self.fields:
            if content_field.name == name:
                return content_field
        return None


class ContentBase:
    """Base class for content type definitions.

    Class attributes:
        content_name: Display name (defaults to the class name)
        content_description: Short description shown to editors
        content_order: Rank used when content types are listed

    Pass ``abstract=True`` as a class keyword to keep a base class out of
    discovery.
    """

    content_name: str | None = None
    content_description: str = ""
    content_order: int = 0

    _meta: ContentTypeMeta

    def __init_subclass__(cls, abstract: bool = False, **kwargs):
        super().__init_subclass__(**kwargs)
        fields: dict[str, ContentField] = {}
        for klass in reversed(cls.__mro__):
            for name, attr in vars(klass).items():
                if isinstance(attr, ContentField):
                    fields[name] = attr
        cls._meta = ContentTypeMeta(
            content_type_id=f"{cls.__module__}.{cls.__qualname__}",
            fields=tuple(fields.values()),
            abstract=abstract,
        )

    def __init__(self, **values):
        for content_field in self._meta.fields:
            setattr(self, content_field.name, content_field.create())
        for name, value in values.items():
            if self._meta.get_field(name) is None:
                raise TypeError(f"{type(self).__name__}() got an unexpected field {name!r}")
            setattr(self, name, value)

    def __repr__(self):
        return f"<{type(self).__name__} {self.to_dict()!r}>"

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None

    @classmethod
    def content_type_id(cls) -> str:
        """Fully qualified identifier stored with each content row."""
        return cls._meta.content_type_id

    @classmethod
    def display_name(cls) -> str:
        return cls.content_name or cls.__name__

    def get_field_type(self, name: str) -> FieldType | None:
        return getattr(self, name, None) if self._meta.get_field(name) else None

    def to_dict(self) -> dict[str, Any]:
        """Decoded value of every declared field."""
        values = {}
        for content_field in self._meta.fields:
            instance = getattr(self, content_field.name)
            values[content_field.name] = None if instance is None else instance.get_value()
        return values


ContentBase._meta = ContentTypeMeta(content_type_id="", fields=(), abstract=True)


def is_content_type(cls) -> bool:
    """Check whether ``cls`` is a ContentBase subclass."""
    return isinstance(cls, type) and issubclass(cls, ContentBase) and cls is not ContentBase


# =============================================================================
# DISCOVERY
# =============================================================================


@dataclass(frozen=True)
class ContentTypeInfo:
    """Listing entry for a content type."""

    system_type_id: str
    display_name: str
    description: str
    order_rank: int


def discover_content_types() -> list[type[ContentBase]]:
    """Return every concrete ContentBase subclass imported so far."""
    found = []
    seen = set()
    pending = list(ContentBase.__subclasses__())
    while pending:
        cls = pending.pop(0)
        if cls in seen:
            continue
        seen.add(cls)
        pending.extend(cls.__subclasses__())
        if not cls._meta.abstract:
            found.append(cls)
    return found


@dataclass(frozen=True)
class _Catalog:
    types: tuple[type[ContentBase], ...]
    by_id: dict[str, type[ContentBase]]


class ContentTypeCatalog:
    """Process-wide catalog of content types, built once on first use.

    Concurrent first callers wait on a lock while one of them scans; every
    caller then sees the complete catalog.
    """

    def __init__(self, provider: Callable[[], Iterable[type[ContentBase]]] | None = None):
        self._provider = provider or discover_content_types
        self._lock = threading.Lock()
        self._catalog: _Catalog | None = None

    def _get_catalog(self) -> _Catalog:
        catalog = self._catalog
        if catalog is not None:
            return catalog

        with self._lock:
            if self._catalog is None:
                types = sorted(self._provider(), key=lambda cls: cls.content_order)
                self._catalog = _Catalog(
                    types=tuple(types),
                    by_id={cls.content_type_id(): cls for cls in types},
                )
                logger.info("Content type catalog built with %d types", len(types))
            return self._catalog

    @property
    def is_built(self) -> bool:
        return self._catalog is not None

    def content_types(self) -> list[type[ContentBase]]:
        """All content type classes, ordered by content_order."""
        return list(self._get_catalog().types)

    def list_content_types(self) -> list[ContentTypeInfo]:
        """Listing entries for all content types, ordered by rank."""
        return [
            ContentTypeInfo(
                system_type_id=cls.content_type_id(),
                display_name=cls.display_name(),
                description=cls.content_description,
                order_rank=cls.content_order,
            )
            for cls in self._get_catalog().types
        ]

    def get(self, content_type_id: str) -> type[ContentBase]:
        """Get a content type class by its identifier.

        Raises:
            ContentTypeNotFoundError: If no such content type is known
        """
        try:
            return self._get_catalog().by_id[content_type_id]
        except KeyError:
            raise ContentTypeNotFoundError(f"Unknown content type: {content_type_id}") from None

    def reset(self) -> None:
        """Drop the built catalog so the next call rescans (for testing)."""
        with self._lock:
            self._catalog = None
