"""Tests for django-content-fields models."""

import pytest


@pytest.mark.django_db
class TestContent:
    """Tests for the Content model."""

    def test_defaults(self):
        """New rows get a UUID, draft status and a creation time."""
        from django_content_fields.models import Content, ContentStatus

        row = Content.objects.create(title="Hello", slug="hello", content_type="app.Page")

        assert row.id is not None
        assert row.status == ContentStatus.DRAFT
        assert row.json_content == ""
        assert row.created_at is not None
        assert row.updated_at is None
        assert not row.is_published

    def test_str(self):
        from django_content_fields.models import Content

        row = Content(title="Hello", slug="hello", content_type="app.Page")
        assert str(row) == "Hello (app.Page)"

    def test_newest_first(self):
        from django_content_fields.models import Content

        first = Content.objects.create(title="A", slug="a", content_type="app.Page")
        second = Content.objects.create(title="B", slug="b", content_type="app.Page")
        Content.objects.filter(pk=first.pk).update(created_at=second.created_at.replace(year=2000))

        assert list(Content.objects.all()) == [second, first]

    def test_unicode_slug_allowed(self):
        from django_content_fields.models import Content

        row = Content(title="Köln", slug="köln", content_type="app.Page")
        row.full_clean()
