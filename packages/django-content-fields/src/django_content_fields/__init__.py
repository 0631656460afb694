__version__ = "0.1.0"

__all__ = [
    "ContentBase",
    "ContentField",
    "ContentSerializer",
    "SchemaGenerator",
    "field_type",
    "field_types",
]

_LAZY = {
    "ContentBase": "content_types",
    "ContentField": "content_types",
    "ContentSerializer": "serializer",
    "SchemaGenerator": "schema",
    "field_type": "registry",
    "field_types": "registry",
}


def __getattr__(name):
    if name in _LAZY:
        from importlib import import_module

        module = import_module(f".{_LAZY[name]}", __name__)
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
