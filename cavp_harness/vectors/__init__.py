# Vector Files Module
"""
NIST CAVP response file parsing:
- Comment and blank line removal
- label = value field events
- Vector path resolution
"""

from importlib import import_module

__all__ = [
    'LineKind',
    'VectorLine',
    'classify_line',
    'parse_field',
    'iter_lines',
    'iter_fields',
    'iter_vector_lines',
    'iter_vector_fields',
    'resolve_vector_path',
]

# Lazy imports to avoid RuntimeWarning when running module directly
def __getattr__(name):
    """Lazy import to avoid circular import issues."""
    if name not in __all__:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    return getattr(import_module(".parser", __name__), name)
