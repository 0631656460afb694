"""Field Type Registry.

Maps stable system names to field type classes and back. Built-in types are
registered when the default registry is created; apps register their own
types with ``field_type``; the serializer and schema generator only ever
go through the registry.

Lookups are read-only. Register custom types at import time, before the
registry is used to serve requests.
"""

import re

from .field_types import (
    BUILTIN_FIELD_TYPES,
    GENERIC_FIELD_TYPES,
    ITEM_TYPE_TAGS,
    FieldType,
)


GENERIC_NAME_PATTERN = re.compile(r"^([\w-]+)<(\w+)>$")


class FieldTypeRegistry:
    """Registry of field types keyed by system name.

    Plain types are matched by exact class. Generic families (array,
    options, options-multi) are registered once and resolve any of their
    parameterized variants.
    """

    def __init__(self):
        self._types: dict[str, type[FieldType]] = {}
        self._generics: dict[str, type[FieldType]] = {}

    @classmethod
    def with_builtins(cls) -> "FieldTypeRegistry":
        """Create a registry holding every built-in field type."""
        registry = cls()
        for field_type in BUILTIN_FIELD_TYPES:
            registry.register(field_type)
        for generic in GENERIC_FIELD_TYPES:
            registry.register_generic(generic)
        return registry

    def register(self, field_type: type[FieldType]) -> type[FieldType]:
        """Register a field type class. Returns the class so it can decorate."""
        if not field_type.system_name:
            raise ValueError(f"{field_type.__name__} has no system_name")
        self._types[field_type.system_name] = field_type
        return field_type

    def register_generic(self, generic: type[FieldType]) -> type[FieldType]:
        """Register a generic family by its ``generic_name``."""
        self._generics[generic.generic_name] = generic
        return generic

    def unregister(self, system_name: str) -> None:
        """Unregister a field type or generic family by name."""
        self._types.pop(system_name, None)
        self._generics.pop(system_name, None)

    def get(self, system_name: str) -> type[FieldType] | None:
        """Get the field type class for a system name."""
        field_type = self._types.get(system_name)
        if field_type is not None:
            return field_type
        return self._resolve_generic(system_name)

    def all(self) -> list[type[FieldType]]:
        """Get all registered plain field types."""
        return list(self._types.values())

    def generics(self) -> list[type[FieldType]]:
        """Get all registered generic families."""
        return list(self._generics.values())

    def clear(self) -> None:
        """Clear all registered types (for testing)."""
        self._types.clear()
        self._generics.clear()

    def _resolve_generic(self, system_name: str) -> type[FieldType] | None:
        match = GENERIC_NAME_PATTERN.match(system_name)
        if match is None:
            return None
        family, tag = match.groups()
        generic = self._generics.get(family)
        if generic is None:
            return None

        if hasattr(generic, "enum_type"):
            # Only enums already used to parameterize the family
            for enum_cls, variant in generic._variants.items():
                if enum_cls.__name__.lower() == tag:
                    return variant
            return None

        for item_type, item_tag in ITEM_TYPE_TAGS.items():
            if item_tag == tag:
                return generic[item_type]
        return None

    # ── Resolution ───────────────────────────────────────────────

    def resolve_by_name(self, system_name: str | None) -> FieldType | None:
        """Return a fresh field type instance for a system name, or None.

        Multi-valued instances start with an empty list, never None.
        """
        if not system_name:
            return None
        field_type = self.get(system_name)
        if field_type is None:
            return None
        return field_type()

    def system_name_for(self, shape) -> str | None:
        """Return the system name for a declared field shape, or None.

        Args:
            shape: A FieldType subclass, possibly a parameterized variant

        Returns:
            The system name if the shape is registered (exactly, or as a
            variant of a registered generic family), else None
        """
        if not (isinstance(shape, type) and issubclass(shape, FieldType)):
            return None
        name = shape.system_name
        if not name:
            return None
        if self._types.get(name) is shape:
            return name

        generic = self._generics.get(getattr(shape, "generic_name", None))
        if generic is not None and shape is not generic and issubclass(shape, generic):
            return name
        return None


field_types = FieldTypeRegistry.with_builtins()


def field_type(cls: type[FieldType]) -> type[FieldType]:
    """Class decorator registering a custom field type in the default registry.

    Example:
        @field_type
        class SlugFieldType(FieldType):
            name = "Slug"
            system_name = "slug"
    """
    return field_types.register(cls)
