"""Tests for django-content-fields content type definitions and discovery."""

import threading
import time

import pytest

from django_content_fields.content_types import (
    ContentBase,
    ContentField,
    ContentTypeCatalog,
    ContentTypeInfo,
    discover_content_types,
    is_content_type,
)
from django_content_fields.exceptions import ContentTypeNotFoundError
from django_content_fields.field_types import (
    ArrayFieldType,
    IntegerFieldType,
    StringArrayFieldType,
    TextFieldType,
)


class Article(ContentBase):
    content_description = "News article"
    content_order = 2

    title = ContentField(TextFieldType, display_name="Title", required=True)
    tags = ContentField(StringArrayFieldType)
    rating = ContentField(IntegerFieldType)
    note = "not a field"


class BaseBlock(ContentBase, abstract=True):
    heading = ContentField(TextFieldType)


class HeroBlock(BaseBlock):
    content_name = "Hero"
    content_order = 1

    image = ContentField(TextFieldType)


class TestContentField:
    """Tests for field declarations."""

    def test_requires_field_type(self):
        """Only FieldType subclasses can be declared."""
        with pytest.raises(TypeError):
            ContentField(str)
        with pytest.raises(TypeError):
            ContentField(TextFieldType())

    def test_rejects_unknown_data_type(self):
        with pytest.raises(ValueError):
            ContentField(TextFieldType, data_type="fax")

    def test_rejects_unknown_toolbar(self):
        with pytest.raises(ValueError):
            ContentField(TextFieldType, markdown_toolbar="huge")

    def test_name_set_from_attribute(self):
        assert Article.title.name == "title"
        assert Article.title.display_name == "Title"
        assert Article.title.required is True

    def test_has_range(self):
        """Either bound makes a range."""
        assert ContentField(IntegerFieldType, min_value=1).has_range
        assert ContentField(IntegerFieldType, max_value=1).has_range
        assert not ContentField(IntegerFieldType).has_range


class TestContentBase:
    """Tests for content type classes and instances."""

    def test_fields_in_declaration_order(self):
        """Only ContentField members are collected, in order."""
        assert Article._meta.field_names == ["title", "tags", "rating"]

    def test_inherited_fields_come_first(self):
        assert HeroBlock._meta.field_names == ["heading", "image"]

    def test_content_type_id(self):
        """The identifier is the module plus qualified name."""
        assert Article.content_type_id() == f"{__name__}.Article"

    def test_display_name(self):
        assert Article.display_name() == "Article"
        assert HeroBlock.display_name() == "Hero"

    def test_new_instance_holds_empty_fields(self):
        """A new instance holds an empty field type instance per field."""
        article = Article()
        assert isinstance(article.title, TextFieldType)
        assert article.title.get_value() is None
        assert article.tags.get_value() == []

    def test_keyword_values(self):
        """Plain values are wrapped in the declared field type."""
        article = Article(title="Hello", tags=["a", "b"], rating=4)
        assert isinstance(article.title, TextFieldType)
        assert article.to_dict() == {"title": "Hello", "tags": ["a", "b"], "rating": 4}

    def test_string_for_typed_field_is_parsed(self):
        """Stored-form strings assigned to typed fields are decoded."""
        article = Article(title="7", tags="a,b", rating="42")
        assert article.to_dict() == {"title": "7", "tags": ["a", "b"], "rating": 42}

    def test_unparsable_string_is_held(self):
        """Strings the field type rejects stay as given for validation to report."""
        article = Article(rating="many")
        assert article.rating.get_value() == "many"

    def test_unknown_keyword(self):
        with pytest.raises(TypeError):
            Article(subtitle="nope")

    def test_assign_field_type_instance(self):
        """Assigning a field type instance stores it unchanged."""
        article = Article()
        title = TextFieldType("Direct")
        article.title = title
        assert article.title is title

    def test_assign_none(self):
        article = Article()
        article.title = None
        assert article.title is None
        assert article.to_dict()["title"] is None

    def test_equality(self):
        assert Article(title="A") == Article(title="A")
        assert Article(title="A") != Article(title="B")

    def test_get_field_type(self):
        article = Article(title="A")
        assert article.get_field_type("title").get_value() == "A"
        assert article.get_field_type("note") is None

    def test_is_content_type(self):
        assert is_content_type(Article)
        assert is_content_type(HeroBlock)
        assert not is_content_type(ContentBase)
        assert not is_content_type(Article())
        assert not is_content_type(dict)


class TestDiscovery:
    """Tests for content type discovery and the catalog."""

    def test_discover_skips_abstract(self):
        """Concrete subclasses are found; abstract ones are not."""
        found = discover_content_types()
        assert Article in found
        assert HeroBlock in found
        assert BaseBlock not in found

    def test_catalog_orders_by_rank(self):
        """Types are listed by order rank, stable for ties."""

        class Tied(ContentBase):
            content_order = 2

        catalog = ContentTypeCatalog(provider=lambda: [Article, Tied, HeroBlock])
        assert catalog.content_types() == [HeroBlock, Article, Tied]

    def test_list_content_types(self):
        catalog = ContentTypeCatalog(provider=lambda: [Article, HeroBlock])
        infos = catalog.list_content_types()
        assert infos == [
            ContentTypeInfo(
                system_type_id=HeroBlock.content_type_id(),
                display_name="Hero",
                description="",
                order_rank=1,
            ),
            ContentTypeInfo(
                system_type_id=Article.content_type_id(),
                display_name="Article",
                description="News article",
                order_rank=2,
            ),
        ]

    def test_get_by_id(self):
        catalog = ContentTypeCatalog(provider=lambda: [Article])
        assert catalog.get(Article.content_type_id()) is Article

    def test_get_unknown(self):
        catalog = ContentTypeCatalog(provider=lambda: [Article])
        with pytest.raises(ContentTypeNotFoundError):
            catalog.get("missing.Type")

    def test_built_once(self):
        """The provider runs once until reset."""
        calls = []

        def provider():
            calls.append(1)
            return [Article]

        catalog = ContentTypeCatalog(provider=provider)
        assert not catalog.is_built
        catalog.content_types()
        catalog.list_content_types()
        catalog.get(Article.content_type_id())
        assert len(calls) == 1
        assert catalog.is_built

        catalog.reset()
        assert not catalog.is_built
        catalog.content_types()
        assert len(calls) == 2

    def test_concurrent_first_use_scans_once(self):
        """Concurrent first callers share a single scan."""
        calls = []

        def slow_provider():
            calls.append(1)
            time.sleep(0.05)
            return [Article, HeroBlock]

        catalog = ContentTypeCatalog(provider=slow_provider)
        results = []

        def worker():
            results.append(catalog.content_types())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(calls) == 1
        assert all(result == [HeroBlock, Article] for result in results)
        assert len(results) == 8

    def test_parameterized_fields_declared(self):
        """Parameterized field types can be declared."""

        class Scores(ContentBase):
            values = ContentField(ArrayFieldType[int])

        assert Scores(values=[1, 2]).values.get_value() == [1, 2]
