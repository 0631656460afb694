"""Services for django-content-fields.

Repository functions storing content instances as generic ``Content`` rows
and reading them back as typed instances.
"""

import logging

from django.core.exceptions import ValidationError
from django.core.paginator import Page, Paginator
from django.db import transaction
from django.utils import timezone
from django.utils.text import slugify

from .conf import get_setting
from .content_types import ContentBase, is_content_type
from .exceptions import ContentNotFoundError, ContentValidationError, NotAContentTypeError
from .models import SLUG_MAX_LENGTH, TITLE_MAX_LENGTH, Content, ContentStatus
from .runtime import get_schema_generator, get_serializer
from .schema import SchemaGenerator
from .serializer import ContentSerializer
from .validation import validate_content

logger = logging.getLogger(__name__)


def _check_content(content) -> None:
    if not isinstance(content, ContentBase):
        raise NotAContentTypeError(f"{type(content).__name__} is not a content type")


def _validate(content: ContentBase) -> None:
    errors = validate_content(content)
    if errors:
        raise ContentValidationError(errors)


def _derive_title(content: ContentBase) -> str:
    for content_field in content._meta.fields:
        if content_field.name.lower() == "title":
            field_instance = getattr(content, content_field.name)
            if field_instance is not None and field_instance.value:
                return field_instance.value
    return type(content).__name__


def _derive_slug(title: str) -> str:
    return slugify(title, allow_unicode=True)[:SLUG_MAX_LENGTH].rstrip("-_")


def _get_row(content_id) -> Content:
    try:
        return Content.objects.get(pk=content_id)
    except (Content.DoesNotExist, ValidationError):
        # ValidationError for ids that are not UUIDs
        raise ContentNotFoundError(f"Content not found: {content_id}") from None


def save_content(
    content: ContentBase,
    title: str | None = None,
    slug: str | None = None,
    validate: bool = True,
    serializer: ContentSerializer | None = None,
) -> Content:
    """Store a content instance as a new draft row.

    Args:
        content: The content instance
        title: Display title (defaults to the content's ``title`` field,
            then the class name), cut to the column length
        slug: URL-safe identifier (defaults to the slugified title, cut to
            the column length)
        validate: Run field validation before saving
        serializer: Serializer to use (defaults to the shared one)

    Returns:
        The created Content row

    Raises:
        NotAContentTypeError: If content is not a ContentBase instance
        ContentValidationError: If validation is enabled and fails
    """
    _check_content(content)
    if validate:
        _validate(content)
    serializer = serializer or get_serializer()

    title = (title or _derive_title(content))[:TITLE_MAX_LENGTH]
    row = Content(
        title=title,
        content_type=content.content_type_id(),
        json_content=serializer.serialize(content),
        status=ContentStatus.DRAFT,
    )
    row.slug = slug or _derive_slug(title) or row.id.hex
    row.save()
    logger.debug("Saved %s content %s", row.content_type, row.pk)
    return row


def get_content(
    content_type: type[ContentBase],
    content_id,
    serializer: ContentSerializer | None = None,
):
    """Load a stored content instance by id.

    Returns:
        The typed instance, or None if no row of that type exists
    """
    if not is_content_type(content_type):
        raise NotAContentTypeError(f"{content_type!r} is not a content type")
    serializer = serializer or get_serializer()
    try:
        row = Content.objects.get(pk=content_id, content_type=content_type.content_type_id())
    except (Content.DoesNotExist, ValidationError):
        return None
    return serializer.deserialize(content_type, row.json_content)


def get_content_by_slug(
    content_type: type[ContentBase],
    slug: str,
    serializer: ContentSerializer | None = None,
):
    """Load the newest stored content instance with the given slug.

    Returns:
        The typed instance, or None if not found
    """
    if not is_content_type(content_type):
        raise NotAContentTypeError(f"{content_type!r} is not a content type")
    serializer = serializer or get_serializer()
    row = (
        Content.objects.filter(content_type=content_type.content_type_id(), slug=slug)
        .order_by("-created_at")
        .first()
    )
    if row is None:
        return None
    return serializer.deserialize(content_type, row.json_content)


def list_content_rows(
    content_type: type[ContentBase] | str | None = None,
    page: int = 1,
    page_size: int | None = None,
    slug: str | None = None,
    status: str | None = None,
    title: str | None = None,
) -> Page:
    """Paginate stored rows, newest first.

    Args:
        content_type: Restrict to one content type (class or identifier)
        page: 1-based page number (clamped to the valid range)
        page_size: Rows per page (defaults to CONTENT_FIELDS_PAGE_SIZE)
        slug: Exact slug filter
        status: Status filter
        title: Case-insensitive title substring filter

    Returns:
        A Django Page of Content rows
    """
    queryset = Content.objects.all()
    if content_type is not None:
        if not isinstance(content_type, str):
            content_type = content_type.content_type_id()
        queryset = queryset.filter(content_type=content_type)
    if slug:
        queryset = queryset.filter(slug=slug)
    if status:
        queryset = queryset.filter(status=status)
    if title:
        queryset = queryset.filter(title__icontains=title)

    paginator = Paginator(queryset.order_by("-created_at"), page_size or get_setting("PAGE_SIZE"))
    return paginator.get_page(page)


def list_contents(
    content_type: type[ContentBase],
    page: int = 1,
    page_size: int | None = None,
    serializer: ContentSerializer | None = None,
) -> list:
    """Paginate stored instances of one content type, newest first.

    Returns:
        Typed instances for the requested page
    """
    if not is_content_type(content_type):
        raise NotAContentTypeError(f"{content_type!r} is not a content type")
    serializer = serializer or get_serializer()
    rows = list_content_rows(content_type, page=page, page_size=page_size)
    return [serializer.deserialize(content_type, row.json_content) for row in rows]


def update_content(
    content_id,
    content: ContentBase,
    validate: bool = True,
    serializer: ContentSerializer | None = None,
) -> Content:
    """Replace the stored field values of a row.

    Raises:
        ContentNotFoundError: If no row has the given id
        ContentValidationError: If validation is enabled and fails
    """
    _check_content(content)
    if validate:
        _validate(content)
    serializer = serializer or get_serializer()

    with transaction.atomic():
        row = _get_row(content_id)
        row.json_content = serializer.serialize(content)
        row.updated_at = timezone.now()
        row.save(update_fields=["json_content", "updated_at"])
    return row


def delete_content(content_id) -> bool:
    """Delete a stored row.

    Returns:
        True if a row was deleted
    """
    try:
        deleted, _ = Content.objects.filter(pk=content_id).delete()
    except ValidationError:
        return False
    return deleted > 0


def set_content_status(content_id, status: str) -> Content:
    """Change the status of a stored row.

    Publishing stamps ``published_at``.

    Raises:
        ContentNotFoundError: If no row has the given id
        ValueError: If status is not a ContentStatus value
    """
    if status not in ContentStatus.values:
        raise ValueError(f"Invalid status: {status}")

    with transaction.atomic():
        row = _get_row(content_id)
        row.status = status
        update_fields = ["status"]
        if status == ContentStatus.PUBLISHED:
            row.published_at = timezone.now()
            update_fields.append("published_at")
        row.save(update_fields=update_fields)
    return row


def get_content_schema(
    content_type: type[ContentBase],
    schema_generator: SchemaGenerator | None = None,
) -> dict:
    """Form schema of a content type."""
    schema_generator = schema_generator or get_schema_generator()
    return schema_generator.generate_schema(content_type)
