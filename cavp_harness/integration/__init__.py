# Integration Module
"""
Event logging and the multi-file suite runner.
"""

from importlib import import_module

_MODULES = {
    'EventType': 'event_logger',
    'HarnessEvent': 'event_logger',
    'EventLogger': 'event_logger',
    'console_printer': 'event_logger',
    'create_event_logger': 'event_logger',
    'run_suite': 'suite',
    'run_vector_file': 'suite',
}

# Lazy imports to avoid circular import issues
def __getattr__(name):
    """Lazy import to avoid circular import issues."""
    if name not in _MODULES:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    return getattr(import_module(f".{_MODULES[name]}", __name__), name)

__all__ = list(_MODULES)
