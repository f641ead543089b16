# Test Drivers Module
"""
Test execution drivers:
- KAT driver (Len / Msg / MD cases)
- Monte Carlo driver (Seed / COUNT / MD checkpoints)
- Shared run results and counters
"""

from importlib import import_module

_MODULES = {
    'KATDriver': 'kat',
    'KATLabel': 'kat',
    'KATRecord': 'kat',
    'KATState': 'kat',
    'MonteCarloDriver': 'monte_carlo',
    'MCTLabel': 'monte_carlo',
    'MCTState': 'monte_carlo',
    'run_checkpoint': 'monte_carlo',
    'Accumulator': 'results',
    'CaseFailure': 'results',
    'FailureKind': 'results',
    'RunMode': 'results',
    'RunResult': 'results',
    'SuiteResult': 'results',
}

# Lazy imports to avoid circular import issues
def __getattr__(name):
    """Lazy import of driver and result names."""
    if name not in _MODULES:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    return getattr(import_module(f".{_MODULES[name]}", __name__), name)

__all__ = list(_MODULES)
