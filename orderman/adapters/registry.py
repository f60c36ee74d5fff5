"""
Orderman backend registry — loads collaborator adapters from settings.

Usage:
    from orderman.adapters import get_financial_backend

    backend = get_financial_backend()
    records = backend.record_sale(order, lines, payments)

Settings:
    ORDERMAN = {
        "COMPOSITION_EXPANDER": "orderman.adapters.catalog.CatalogCompositionExpander",
        "FINANCIAL_BACKEND": "billing.adapters.OrdermanFinancialBackend",
        "PROCESS_BACKEND": "workflow.adapters.OrdermanProcessBackend",
    }

Each backend is instantiated once per process and cached.
Misconfigured paths raise ImproperlyConfigured.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from orderman.conf import orderman_settings
from orderman.protocols.composition import CompositionExpander
from orderman.protocols.financial import FinancialBackend
from orderman.protocols.process import ProcessBackend

logger = logging.getLogger(__name__)


# Cached backend instances, keyed by setting name
_lock = threading.Lock()
_backends: dict[str, Any] = {}


def _load(setting: str, protocol: type) -> Any:
    backend = _backends.get(setting)
    if backend is not None:
        return backend

    with _lock:
        backend = _backends.get(setting)
        if backend is None:  # double-checked
            path = getattr(orderman_settings, setting)
            if not path:
                raise ImproperlyConfigured(
                    f"ORDERMAN['{setting}'] must be configured."
                )

            try:
                backend_class = import_string(path)
            except ImportError as e:
                raise ImproperlyConfigured(
                    f"Failed to import ORDERMAN['{setting}'] '{path}': {e}"
                ) from e

            backend = backend_class()
            if not isinstance(backend, protocol):
                raise ImproperlyConfigured(
                    f"ORDERMAN['{setting}'] '{path}' does not implement "
                    f"{protocol.__name__}"
                )
            _backends[setting] = backend
            logger.debug("Loaded %s: %s", setting, path)

    return backend


def get_composition_expander() -> CompositionExpander:
    """Return the configured composition expander."""
    return _load("COMPOSITION_EXPANDER", CompositionExpander)


def get_financial_backend() -> FinancialBackend:
    """Return the configured financial backend."""
    return _load("FINANCIAL_BACKEND", FinancialBackend)


def get_process_backend() -> ProcessBackend:
    """Return the configured process backend."""
    return _load("PROCESS_BACKEND", ProcessBackend)


def reset_backends() -> None:
    """Reset the cached backends. Useful for testing."""
    with _lock:
        _backends.clear()
