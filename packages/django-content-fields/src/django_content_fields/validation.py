"""Validation of content instances against their field declarations.

Collects every problem instead of stopping at the first one, so editors
see all invalid fields at once. Constraint checks reuse Django's
validators and their messages.
"""

from django.core.exceptions import ValidationError
from django.core.validators import (
    MaxLengthValidator,
    MaxValueValidator,
    MinLengthValidator,
    MinValueValidator,
    RegexValidator,
)

from .content_types import ContentBase, ContentField
from .field_types import FieldType

REQUIRED_MESSAGE = "This field is required."
INVALID_MESSAGE = "Enter a valid value."


def _raw_value(field_instance: FieldType | None) -> str:
    if field_instance is None:
        return ""
    return field_instance.value


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _run(validator, value, errors: list[str]) -> None:
    try:
        validator(value)
    except ValidationError as e:
        errors.extend(e.messages)


def _constraint_validators(content_field: ContentField) -> list:
    validators = []
    if content_field.min_length is not None:
        validators.append(MinLengthValidator(content_field.min_length))
    if content_field.max_length is not None:
        validators.append(MaxLengthValidator(content_field.max_length))
    if content_field.pattern:
        validators.append(
            RegexValidator(
                rf"\A(?:{content_field.pattern})\Z",
                message=content_field.pattern_message or INVALID_MESSAGE,
            )
        )
    return validators


def validate_field(instance: ContentBase, content_field: ContentField) -> list[str]:
    """Validate one field of a content instance.

    Args:
        instance: The content instance
        content_field: Declaration of the field to check

    Returns:
        List of error messages (empty if valid)
    """
    field_instance = getattr(instance, content_field.name)
    raw = _raw_value(field_instance)

    if not raw and field_instance is not None and not field_instance.is_empty():
        # Held value the field type cannot encode, e.g. a str on an integer field
        return [field_instance.get_validation_error_message() or INVALID_MESSAGE]

    if not raw:
        if content_field.required:
            return [content_field.required_message or REQUIRED_MESSAGE]
        return []

    errors: list[str] = []
    if not field_instance.validate(raw):
        errors.append(field_instance.get_validation_error_message() or INVALID_MESSAGE)
        return errors

    for validator in _constraint_validators(content_field):
        _run(validator, raw, errors)

    value = field_instance.get_value()
    numbers = value if isinstance(value, list) else [value]
    numbers = [number for number in numbers if _is_number(number)]
    if content_field.min_value is not None:
        for number in numbers:
            _run(MinValueValidator(content_field.min_value), number, errors)
    if content_field.max_value is not None:
        for number in numbers:
            _run(MaxValueValidator(content_field.max_value), number, errors)

    if content_field.compare_to:
        other = getattr(instance, content_field.compare_to, None)
        other_raw = _raw_value(other) if isinstance(other, FieldType) else ""
        if raw != other_raw:
            errors.append(
                content_field.compare_message or f"Must match {content_field.compare_to}."
            )

    return errors


def validate_content(instance: ContentBase) -> dict[str, list[str]]:
    """Validate every declared field of a content instance.

    Returns:
        Mapping of field name to error messages, only for invalid fields
    """
    errors = {}
    for content_field in instance._meta.fields:
        field_errors = validate_field(instance, content_field)
        if field_errors:
            errors[content_field.name] = field_errors
    return errors
