# Core Module
"""
Hex codec and the hash oracle adapter.
"""

from importlib import import_module

_MODULES = {
    'hex_to_bytes': 'hex_codec',
    'bytes_to_hex': 'hex_codec',
    'HashOracle': 'oracle',
    'CryptographyOracle': 'oracle',
    'HashlibOracle': 'oracle',
    'FunctionOracle': 'oracle',
    'ProcessOracle': 'oracle',
    'normalize_digest': 'oracle',
    'create_oracle': 'oracle',
    'self_test': 'oracle',
}

# Lazy imports to avoid RuntimeWarning when running module directly
def __getattr__(name):
    """Lazy import of codec and oracle names."""
    if name not in _MODULES:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    return getattr(import_module(f".{_MODULES[name]}", __name__), name)

__all__ = list(_MODULES)
