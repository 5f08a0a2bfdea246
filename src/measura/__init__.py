"""
measura: unit-aware quantities for Python.

measura pairs numbers with units of measurement ("12 meters + 5 centimeters"),
performs arithmetic across units that measure the same thing, and raises at
the point of a unit mismatch instead of letting it travel downstream.
This module exposes a minimal, stable public API. Heavy subsystems (e.g. the
units registry) are imported lazily to avoid import-time side effects and
circular imports.
"""

import logging
from importlib import metadata as _metadata


__author__ = "Parneet Sidhu"
__license__ = "MIT"

# Library logging: emit nothing unless the application configures handlers.
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Try to read the installed package version first; fall back to a default for local dev.
try:
    __version__ = _metadata.version("measura")
except _metadata.PackageNotFoundError:
    import tomllib
    from pathlib import Path
    _pyproject = Path(__file__).resolve().parents[2] / "pyproject.toml"
    with open(_pyproject, "rb") as f:
        __version__ = tomllib.load(f)["project"]["version"]

# Public names exposed by the package. Keep this minimal and stable.
__all__ = ["__version__", "__author__", "__license__", "Quantity", "u"]

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - typing aid only
    from measura.units.registry import UnitsRegistry
# Lazy access helpers -------------------------------------------------------

def _get_default_registry() -> "UnitsRegistry":
    # Import here to avoid import-time side-effects / circular imports.
    from measura.units.registry import DEFAULT_REGISTRY  # local import
    return DEFAULT_REGISTRY

def __getattr__(name: str) -> Any:
    """
    Lazy attribute access. Accessing 'u' will construct a namespace from the
    package's default registry on first use; 'Quantity' imports the core class.
    """
    if name == "u":
        return _get_default_registry().as_namespace()
    if name == "Quantity":
        from measura.core.quantity import Quantity
        return Quantity
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

def __dir__() -> list[str]:
    # Improve discoverability in REPL / autocomplete.
    return sorted(list(globals().keys()) + ["u", "Quantity"])
