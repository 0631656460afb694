"""Tests for django-content-fields field type registry."""

from datetime import datetime

import pytest
from django.db import models

from django_content_fields.field_types import (
    ArrayFieldType,
    BUILTIN_FIELD_TYPES,
    FieldType,
    IntegerFieldType,
    OptionsFieldType,
    OptionsMultiFieldType,
    StringArrayFieldType,
    TextFieldType,
)
from django_content_fields.registry import FieldTypeRegistry, field_type, field_types


class Channel(models.IntegerChoices):
    EMAIL = 1, "Email"
    SMS = 2, "SMS"


class TestResolveByName:
    """Tests for resolving system names to instances."""

    def test_builtin_names_resolve(self):
        """Every built-in type resolves by its system name."""
        for builtin in BUILTIN_FIELD_TYPES:
            instance = field_types.resolve_by_name(builtin.system_name)
            assert type(instance) is builtin

    def test_fresh_instance_each_time(self):
        """Each call returns a new instance."""
        first = field_types.resolve_by_name("text")
        second = field_types.resolve_by_name("text")
        assert first is not second

    def test_unknown_name(self):
        """Unknown or empty names resolve to None."""
        assert field_types.resolve_by_name("nope") is None
        assert field_types.resolve_by_name("") is None
        assert field_types.resolve_by_name(None) is None

    def test_array_instance_starts_empty(self):
        """Resolved array instances hold an empty list."""
        instance = field_types.resolve_by_name("array")
        assert instance.get_value() == []

    def test_parameterized_array(self):
        """Array names resolve to the matching parameterized variant."""
        instance = field_types.resolve_by_name("array<int>")
        assert type(instance) is ArrayFieldType[int]
        assert instance.get_value() == []
        assert type(field_types.resolve_by_name("array<datetime>")) is ArrayFieldType[datetime]

    def test_unknown_array_tag(self):
        assert field_types.resolve_by_name("array<complex>") is None

    def test_enum_variants_resolve_once_used(self):
        """Enumeration names resolve to variants already declared."""
        OptionsFieldType[Channel]
        OptionsMultiFieldType[Channel]
        assert type(field_types.resolve_by_name("options<channel>")) is OptionsFieldType[Channel]
        assert (
            type(field_types.resolve_by_name("options-multi<channel>"))
            is OptionsMultiFieldType[Channel]
        )
        assert field_types.resolve_by_name("options<neverdeclared>") is None


class TestSystemNameFor:
    """Tests for mapping declared shapes to system names."""

    def test_exact_builtin(self):
        assert field_types.system_name_for(TextFieldType) == "text"
        assert field_types.system_name_for(StringArrayFieldType) == "array"

    def test_parameterized_variants(self):
        """Generic variants derive their name from the parameter."""
        assert field_types.system_name_for(ArrayFieldType[str]) == "array<string>"
        assert field_types.system_name_for(ArrayFieldType[float]) == "array<float>"
        assert field_types.system_name_for(OptionsFieldType[Channel]) == "options<channel>"

    def test_unparameterized_generic(self):
        """A bare generic has no system name."""
        assert field_types.system_name_for(ArrayFieldType) is None
        assert field_types.system_name_for(OptionsFieldType) is None

    def test_unregistered_subclass(self):
        """Subclasses of registered types are not registered themselves."""

        class ShoutFieldType(TextFieldType):
            system_name = "shout"

        assert field_types.system_name_for(ShoutFieldType) is None

    def test_not_a_field_type(self):
        assert field_types.system_name_for(str) is None
        assert field_types.system_name_for("text") is None
        assert field_types.system_name_for(None) is None


class TestFieldTypeRegistry:
    """Tests for registration on standalone registries."""

    def test_empty_registry(self):
        registry = FieldTypeRegistry()
        assert registry.all() == []
        assert registry.resolve_by_name("text") is None

    def test_with_builtins(self):
        """The built-in registry holds every plain and generic type."""
        registry = FieldTypeRegistry.with_builtins()
        assert len(registry.all()) == len(BUILTIN_FIELD_TYPES)
        assert ArrayFieldType in registry.generics()

    def test_register_and_unregister(self):
        """Registered types resolve until unregistered."""

        class SlugFieldType(FieldType):
            name = "Slug"
            system_name = "slug"

        registry = FieldTypeRegistry()
        assert registry.register(SlugFieldType) is SlugFieldType
        assert registry.get("slug") is SlugFieldType
        assert registry.system_name_for(SlugFieldType) == "slug"

        registry.unregister("slug")
        assert registry.get("slug") is None
        assert registry.system_name_for(SlugFieldType) is None

    def test_register_requires_system_name(self):
        """Types without a system name cannot be registered."""

        class Nameless(FieldType):
            pass

        with pytest.raises(ValueError):
            FieldTypeRegistry().register(Nameless)

    def test_unregister_generic(self):
        registry = FieldTypeRegistry.with_builtins()
        registry.unregister("array")
        # Both the plain string array and the generic family are gone
        assert registry.get("array") is None
        assert registry.get("array<int>") is None

    def test_clear(self):
        registry = FieldTypeRegistry.with_builtins()
        registry.clear()
        assert registry.all() == []
        assert registry.generics() == []

    def test_later_registration_replaces(self):
        """Registering the same system name again replaces the type."""

        class OtherInteger(IntegerFieldType):
            system_name = "integer"

        registry = FieldTypeRegistry.with_builtins()
        registry.register(OtherInteger)
        assert registry.get("integer") is OtherInteger
        assert registry.system_name_for(IntegerFieldType) is None


class TestFieldTypeDecorator:
    """Tests for the field_type registration decorator."""

    def test_decorator_registers_in_default_registry(self):
        """Decorated classes resolve through the default registry."""
        try:

            @field_type
            class PhoneFieldType(FieldType):
                name = "Phone"
                system_name = "phone-test"

            assert field_types.get("phone-test") is PhoneFieldType
            assert isinstance(field_types.resolve_by_name("phone-test"), PhoneFieldType)
        finally:
            field_types.unregister("phone-test")

        assert field_types.get("phone-test") is None
