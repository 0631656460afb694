"""Models for django-content-fields.

One generic storage row holds any content type: the type identifier plus
the serialized field values produced by ContentSerializer.
"""

import uuid

from django.db import models

SLUG_MAX_LENGTH = 200
TITLE_MAX_LENGTH = 255


class ContentStatus(models.TextChoices):
    """Status choices for stored content."""

    DRAFT = "draft", "Draft"
    PUBLISHED = "published", "Published"


class Content(models.Model):
    """Stored content instance.

    Attributes:
        id: UUID primary key
        slug: URL-safe identifier (unicode allowed)
        title: Display title
        content_type: Content type identifier (``module.QualName``)
        json_content: Serialized field values
        status: Draft or published
        created_at: When the row was created
        updated_at: When the field values were last replaced
        published_at: When the content was last published
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Identity
    slug = models.SlugField(max_length=SLUG_MAX_LENGTH, db_index=True, allow_unicode=True)
    title = models.CharField(max_length=TITLE_MAX_LENGTH)
    content_type = models.CharField(max_length=255)

    # Payload
    json_content = models.TextField(blank=True, default="")

    status = models.CharField(
        max_length=20,
        choices=ContentStatus.choices,
        default=ContentStatus.DRAFT,
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(null=True, blank=True)
    published_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "content"
        verbose_name_plural = "contents"
        indexes = [
            models.Index(fields=["content_type", "slug"], name="content_type_slug_idx"),
            models.Index(fields=["content_type", "created_at"], name="content_type_created_idx"),
        ]

    def __str__(self):
        return f"{self.title} ({self.content_type})"

    @property
    def is_published(self) -> bool:
        return self.status == ContentStatus.PUBLISHED
