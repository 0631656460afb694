"""Exceptions for django-content-fields."""


class ContentFieldsError(Exception):
    """Base exception for content field errors."""
    pass


class NotAContentTypeError(ContentFieldsError, TypeError):
    """Raised when a class that is not a ContentBase subclass is used as a content type."""
    pass


class ContentTypeNotFoundError(ContentFieldsError):
    """Raised when a content type id is not in the discovery catalog."""
    pass


class ContentNotFoundError(ContentFieldsError):
    """Raised when a stored content row is not found."""
    pass


class ContentValidationError(ContentFieldsError):
    """Raised when field values fail validation before persisting.

    Attributes:
        errors: Mapping of field name to a list of error messages
    """

    def __init__(self, errors: dict[str, list[str]]):
        self.errors = errors
        fields = ", ".join(sorted(errors))
        super().__init__(f"Invalid field values: {fields}")
