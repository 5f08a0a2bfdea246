"""
measura.units.registry
======================

A structured, extensible, and testable units registry for measura.

- Encapsulates global state in a `UnitsRegistry` class (thread-safe).
- Data-driven registration of the default catalog.
- Normalization that handles surrounding whitespace and Unicode NFC.
- Lazy, safe synthesis of SI-prefixed units ("kilometers", "km") with
  anti-stacking checks.
- Lazy synthesis of derived units from their labels ("meters squared",
  "meters per seconds").
- Aliases for symbols and singular spellings ("m", "meter" → "meters").
- Clear public API: `register`, `register_alias`, `get`, `has`, `all`,
  `reference_unit`, `units_measuring`.
"""
from __future__ import annotations

import logging
import threading
import unicodedata
from typing import ClassVar, Dict, Iterable, List, Mapping, Optional, Tuple

from measura.core.errors import InvalidUnitError
from measura.core.unit import Unit
from measura.units.parser import extract_unit_label, is_composite_label
from measura.units.prefixes import PREFIXES, Prefix

logger = logging.getLogger(__name__)

# Longest first for robust matching ("da" before "d")
_PREFIXES_BY_SYMBOL: Tuple[Prefix, ...] = tuple(sorted(PREFIXES, key=lambda p: len(p.symbol), reverse=True))
_PREFIXES_BY_NAME: Tuple[Prefix, ...] = tuple(
    sorted({p.name: p for p in reversed(PREFIXES)}.values(), key=lambda p: len(p.name), reverse=True)
)
# First listed symbol wins ("µ" over the ASCII "u")
_CANONICAL_PREFIX_SYMBOL: Mapping[str, str] = {p.name: p.symbol for p in reversed(PREFIXES)}


def normalize_symbol(s: str) -> str:
    """Normalize user-provided unit names and symbols.

    Rules:
    - Unicode normalize to NFC (composed forms like "µ").
    - Strip surrounding whitespace.
    - Leave case as-is ("Mm" and "mm" are different units).
    """
    if not s:
        return s
    return unicodedata.normalize("NFC", s.strip())


# ---------------------------------------------------------------------------
# Units registry
# ---------------------------------------------------------------------------
class UnitsRegistry:
    """Thread-safe registry of `Unit` objects grouped by measurement category.

    Every category has a reference unit (scale factor 1); the first unit
    registered with scale factor 1 in a category becomes its reference
    unless one is named explicitly.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._units: Dict[str, Unit] = {}
        self._aliases: Dict[str, str] = {}
        self._references: Dict[str, str] = {}
        self._non_prefixable: set[str] = set()
        self._prefixed: set[str] = set()

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and self.has(symbol)

    def set_non_prefixable(self, names: Iterable[str]) -> None:
        """Mark units that must not accept SI prefixes (e.g. 'kilograms', 'minutes')."""
        with self._lock:
            self._non_prefixable = {self._canonical(normalize_symbol(s)) for s in names}

    def is_non_prefixable(self, name: str) -> bool:
        return self._canonical(normalize_symbol(name)) in self._non_prefixable

    # -------------------------- public API ---------------------------------
    def register(self, unit: Unit, replace: bool = False, reference: bool = False) -> Unit:
        """Register (or overwrite if replace is True) a `Unit` under its canonical name.

        The unit's symbol, if any, is registered as an alias. Returns the
        registered unit, bound to this registry.
        """
        unit = unit.bind(self)
        with self._lock:
            if unit.name in getattr(UnitNamespace, "_reserved_names", ()):
                raise ValueError(
                    f"Cannot register unit '{unit.name}': "
                    "name conflicts with UnitNamespace attribute/method."
                )
            if not replace:
                if unit.name in self._units:
                    raise ValueError(
                        f"Cannot register unit '{unit.name}': "
                        "a unit with this name already exists."
                    )
                if unit.name in self._aliases:
                    raise ValueError(
                        f"Cannot register unit '{unit.name}': "
                        "an alias with this name already exists."
                    )

            self._units[unit.name] = unit
            if unit.symbol:
                self.register_alias(unit.symbol, unit.name, replace=replace)
            if reference or (unit.scale_factor == 1 and unit.measures not in self._references):
                self._references[unit.measures] = unit.name

        logger.debug("registered unit %s (%s, scale %r)", unit.name, unit.measures, unit.scale_factor)
        return unit

    def register_alias(self, alias: str, canonical: str, replace: bool = False) -> None:
        key = normalize_symbol(alias)
        with self._lock:
            if key in getattr(UnitNamespace, "_reserved_names", ()):
                raise ValueError(
                    f"Cannot register alias '{alias}': "
                    "name conflicts with UnitNamespace attribute/method."
                )
            if canonical not in self._units:
                raise ValueError(f"Cannot register alias '{alias}': unknown unit '{canonical}'.")
            if not replace:
                if key in self._units and key != canonical:
                    raise ValueError(
                        f"Cannot register alias '{alias}': "
                        f"a unit with the name '{key}' already exists."
                    )
                existing = self._aliases.get(key)
                if existing is not None and existing != canonical:
                    raise ValueError(
                        f"Cannot register alias '{alias}': "
                        f"it already refers to '{existing}'."
                    )
            self._aliases[key] = canonical

    def has(self, symbol: str) -> bool:
        try:
            self.get(symbol)
            return True
        except InvalidUnitError:
            return False

    def get(self, symbol: str) -> Unit:
        """Lookup a unit by name, symbol or alias.

        Missing names are synthesized from an SI prefix ("km") or, for
        derived-unit labels ("meters squared"), from their components.
        Raises `InvalidUnitError` if unknown.
        """
        if not isinstance(symbol, str) or not symbol.strip():
            raise InvalidUnitError(symbol)

        if is_composite_label(symbol):
            return self._get_composite(symbol)

        sym = normalize_symbol(symbol)
        with self._lock:
            u = self._units.get(self._canonical(sym))
            if u is not None:
                return u

            synthesized = self._try_synthesize_prefixed(sym)
            if synthesized is not None:
                return synthesized

        raise InvalidUnitError(symbol)

    def reference_unit(self, measures: str) -> Unit:
        """Return the defining unit (scale factor 1) for a measurement category."""
        with self._lock:
            name = self._references.get(measures)
            if name is None:
                raise InvalidUnitError(measures, "no reference unit for this category")
            return self._units[name]

    def units_measuring(self, measures: str) -> List[Unit]:
        """All registered units of one category, in registration order."""
        with self._lock:
            return [u for u in self._units.values() if u.measures == measures]

    def all(self) -> Mapping[str, Unit]:
        with self._lock:
            return dict(self._units)

    def aliases(self) -> Mapping[str, str]:
        with self._lock:
            return dict(self._aliases)

    def as_namespace(self) -> UnitNamespace:
        return UnitNamespace(self)

    # ------------------------- internals -----------------------------------
    def _canonical(self, sym: str) -> str:
        return self._aliases.get(sym, sym)

    def _get_composite(self, label: str) -> Unit:
        key = " ".join(label.split())
        with self._lock:
            cached = self._units.get(key)
            if cached is not None:
                return cached

        unit = extract_unit_label(key, self)
        with self._lock:
            cached = self._units.setdefault(unit.name, unit.bind(self))
        logger.debug("synthesized derived unit %s (%s)", cached.name, cached.measures)
        return cached

    def _split_prefix(self, sym: str) -> Tuple[Optional[Prefix], Optional[Unit]]:
        # Long form first: "kilometers", "centimeter"
        for p in _PREFIXES_BY_NAME:
            if sym.startswith(p.name):
                base = self._units.get(self._canonical(sym[len(p.name):]))
                if base is not None and sym[len(p.name):] != base.symbol:
                    return p, base
        # Symbol form: "km", "mg", "µs"
        for p in _PREFIXES_BY_SYMBOL:
            if sym.startswith(p.symbol):
                rest = sym[len(p.symbol):]
                base = self._units.get(self._canonical(rest))
                if base is not None and rest == base.symbol:
                    return p, base
        return None, None

    def _try_synthesize_prefixed(self, sym: str) -> Optional[Unit]:
        prefix, base = self._split_prefix(sym)
        if prefix is None or base is None:
            return None

        # Prevent stacked prefixes and prefixes on derived units
        if base.name in self._prefixed or base.derived:
            return None
        if base.name in self._non_prefixable:
            return None

        name = f"{prefix.name}{base.name}"
        existing = self._units.get(name)
        if existing is not None:
            self._aliases.setdefault(sym, name)
            return existing

        symbol = f"{_CANONICAL_PREFIX_SYMBOL[prefix.name]}{base.symbol}" if base.symbol else None
        new_unit = Unit(name, base.measures, base.scale_factor * prefix.factor, symbol=symbol, registry=self)
        self._units[name] = new_unit
        self._prefixed.add(name)
        if symbol:
            self._aliases.setdefault(symbol, name)
        if sym != name:
            self._aliases.setdefault(sym, name)
        logger.debug("synthesized prefixed unit %s from %s", name, base.name)
        return new_unit


class UnitNamespace:
    """Attribute-style access to a registry: ``u.meters``, ``u.cm``, ``u("km")``."""

    _reserved_names: ClassVar[set[str]] = set()

    def __init__(self, reg: "UnitsRegistry") -> None:
        self._reg = reg

    def __contains__(self, spec: str) -> bool:
        return self._reg.has(spec)

    def define(
        self,
        name: str,
        scale: "float|int",
        reference: "Unit|str",
        symbol: "str|None" = None,
        replace: bool = False,
    ) -> Unit:
        """Define ``name`` as ``scale`` times ``reference`` (a unit or unit name)."""
        if name in getattr(UnitNamespace, "_reserved_names", ()):
            raise ValueError(
                f"Cannot define unit '{name}': "
                "name conflicts with UnitNamespace attribute/method."
            )
        ref = self._reg.get(reference) if isinstance(reference, str) else reference
        unit = Unit(name, ref.measures, float(scale) * ref.scale_factor, symbol=symbol)
        return self._reg.register(unit, replace)

    def __call__(self, spec: str) -> Unit:
        return self._reg.get(spec)

    def __getitem__(self, spec: str) -> Unit:
        try:
            return self._reg.get(spec)
        except InvalidUnitError as e:
            raise KeyError(spec) from e

    def __getattr__(self, name: str) -> Unit:
        if name.startswith("__"):
            raise AttributeError(name)
        try:
            return self._reg.get(name)
        except InvalidUnitError as e:
            # Unknown symbol should look like a missing attribute
            raise AttributeError(name) from e

    def __dir__(self) -> list[str]:
        """List all available unit names and aliases for autocomplete."""
        base_dir = set(super().__dir__())
        names = set(self._reg.all().keys()) | set(self._reg.aliases().keys())
        return sorted(base_dir | {n for n in names if n.isidentifier()})


UnitNamespace._reserved_names = set(dir(UnitNamespace))


# ---------------------------------------------------------------------------
# Bootstrap a default registry
# ---------------------------------------------------------------------------

# (name, symbol, scale_factor, singular/other spellings); the first entry of
# each category has scale factor 1 and becomes its reference unit.
_CATALOG: Dict[str, Tuple[Tuple[str, Optional[str], float, Tuple[str, ...]], ...]] = {
    "length": (
        ("meters",         "m",   1.0,       ("meter", "metres", "metre")),
        ("inches",         "in",  0.0254,    ("inch",)),
        ("feet",           "ft",  0.3048,    ("foot",)),
        ("yards",          "yd",  0.9144,    ("yard",)),
        ("miles",          "mi",  1609.344,  ("mile",)),
        ("nautical_miles", "nmi", 1852.0,    ("nautical_mile",)),
    ),
    "mass": (
        ("kilograms",      "kg",  1.0,            ("kilogram",)),
        ("grams",          "g",   1e-3,           ("gram",)),
        ("tonnes",         "t",   1e3,            ("tonne", "metric_tons")),
        ("pounds",         "lb",  0.45359237,     ("pound", "lbs")),
        ("ounces",         "oz",  0.028349523125, ("ounce",)),
    ),
    "time": (
        ("seconds",        "s",   1.0,       ("second", "sec")),
        ("minutes",        "min", 60.0,      ("minute",)),
        ("hours",          "h",   3600.0,    ("hour", "hr")),
        ("days",           "d",   86400.0,   ("day",)),
        ("weeks",          "wk",  604800.0,  ("week",)),
    ),
    "volume": (
        ("liters",         "L",   1.0,               ("liter", "litres", "litre", "l")),
        ("gallons",        "gal", 3.785411784,       ("gallon",)),
        ("quarts",         "qt",  0.946352946,       ("quart",)),
        ("pints",          "pt",  0.473176473,       ("pint",)),
        ("fluid_ounces",   "floz", 0.0295735295625,  ("fluid_ounce",)),
    ),
    "electric current": (
        ("amperes",        "A",   1.0,       ("ampere", "amps", "amp")),
    ),
    "temperature": (
        ("kelvins",        "K",   1.0,       ("kelvin",)),
    ),
    "amount of substance": (
        ("moles",          "mol", 1.0,       ("mole",)),
    ),
}

_NON_PREFIXABLE = (
    "inches", "feet", "yards", "miles", "nautical_miles",
    "kilograms", "tonnes", "pounds", "ounces",
    "minutes", "hours", "days", "weeks",
    "gallons", "quarts", "pints", "fluid_ounces",
)


def _bootstrap_default_registry() -> UnitsRegistry:
    reg = UnitsRegistry()

    for measures, entries in _CATALOG.items():
        for name, symbol, scale, spellings in entries:
            reg.register(Unit(name, measures, scale, symbol=symbol))
            for alias in spellings:
                reg.register_alias(alias, name)

    reg.set_non_prefixable(_NON_PREFIXABLE)
    return reg


# Public, shared default registry
DEFAULT_REGISTRY: UnitsRegistry = _bootstrap_default_registry()


__all__ = [
    "UnitsRegistry",
    "UnitNamespace",
    "DEFAULT_REGISTRY",
    "normalize_symbol",
]
