"""Django Content Fields configuration.

All settings can be overridden in your Django settings.py.

Example:
    # settings.py
    CONTENT_FIELDS_SCHEMA_CACHE = 'schemas'
    CONTENT_FIELDS_SCHEMA_SLIDING_TIMEOUT = 60 * 60
"""

from django.conf import settings


# =============================================================================
# DEFAULTS
# =============================================================================

DEFAULTS = {
    # Cache alias (see CACHES) used to memoize generated form schemas
    "SCHEMA_CACHE": "default",
    # Seconds a schema stays cached after its last read
    "SCHEMA_SLIDING_TIMEOUT": 60 * 60 * 24,
    # Seconds after which a schema is regenerated regardless of reads
    "SCHEMA_ABSOLUTE_TIMEOUT": 60 * 60 * 24 * 7,
    # Default page size for content listings
    "PAGE_SIZE": 10,
}


def get_setting(name: str, default=None):
    """Get a setting with CONTENT_FIELDS_ prefix."""
    if default is None:
        default = DEFAULTS.get(name)
    return getattr(settings, f"CONTENT_FIELDS_{name}", default)
