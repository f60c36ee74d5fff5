"""
Orderman Adapters.

Implementations of protocols for external systems, and the registry
that loads the configured ones.
"""

from orderman.adapters.registry import (
    get_composition_expander,
    get_financial_backend,
    get_process_backend,
    reset_backends,
)

__all__ = [
    "get_composition_expander",
    "get_financial_backend",
    "get_process_backend",
    "reset_backends",
]
