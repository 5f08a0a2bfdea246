"""
measura.core.quantity
=====================

Defines the `Quantity` class: an immutable pair of a numeric value and a
unit of measurement.

The system supports:
- Arithmetic between quantities that measure the same thing (length, mass, ...),
  carried out on the reference scale so that differing units mix safely
  (12 meters + 5 centimeters).
- Conversion between compatible units, explicitly via `Quantity.convert`
  or through ``to_<unit>`` / ``in_<unit>`` attributes.
- Derived units from multiplication ("meters squared") and division
  ("meters per seconds"), named by label rather than by a full unit algebra.

Examples
--------
>>> from measura import u
>>> 12 * u.meters + 5 * u.cm
Quantity(12.05, 'meters')
>>> (12 * u.meters).in_centimeters == 1200 * u.centimeters
True
>>> 12 * u.meters == 12
True
"""

from __future__ import annotations

import math
import re
from math import isclose
from typing import TYPE_CHECKING, Any, Mapping, Tuple

from measura.core.errors import (
    CategoryMismatchError,
    InvalidExponentError,
    InvalidUnitError,
    UnitMismatchError,
    UnknownTargetUnitError,
    UnsupportedOperationError,
)
from measura.core.unit import Unit, _is_number, _wrap, divide_text, multiply_text

if TYPE_CHECKING:  # pragma: no cover - imported only for type checking
    from measura.units.registry import UnitsRegistry

# Relative tolerance for comparing reference values of same-category quantities.
REL_TOL = 1e-12

_CONVERSION_RE = re.compile(r"^(?:to|in)_(?P<unit>.+)$")


def _resolve_unit(unit: "Unit | str | None", registry: "UnitsRegistry | None") -> Unit:
    if isinstance(unit, Unit):
        return unit.bind(registry) if registry is not None else unit
    if isinstance(unit, str):
        if registry is None:
            from measura.units.registry import DEFAULT_REGISTRY

            registry = DEFAULT_REGISTRY
        return registry.get(unit)
    if unit is None:
        raise TypeError("Quantity requires a unit")
    raise InvalidUnitError(unit, "expected a unit name or Unit")


def _require_number(value: Any, what: str) -> None:
    if not _is_number(value):
        raise TypeError(f"Quantity {what} must be a real number, got {type(value).__name__}")


class Quantity:
    """
    A value paired with a unit of measurement.

    Attributes
    ----------
    value : number
        The user-facing magnitude, in ``unit``'s scale.
    unit : Unit
        The unit of measurement.
    reference_value : number
        ``value`` expressed in the reference unit of the unit's category.
        Arithmetic combines reference values, so precision is carried on the
        reference scale instead of being rescaled at every step.

    Construct from a value and a unit (``Quantity(12, "meters")``) or from a
    unit and a reference value (``Quantity(unit="centimeters",
    reference_value=0.05)``). When both a value and a reference value are
    given the reference value wins.
    """
    __slots__ = ("_value", "_unit", "_reference_value")

    def __init__(
        self,
        value: Any = None,
        unit: "Unit | str | None" = None,
        *,
        reference_value: Any = None,
        registry: "UnitsRegistry | None" = None,
    ) -> None:
        unit = _resolve_unit(unit, registry)
        if reference_value is not None:
            _require_number(reference_value, "reference value")
            # scale 1 keeps the caller's numeric type (12 stays 12, not 12.0)
            value = reference_value if unit.scale_factor == 1 else reference_value / unit.scale_factor
        else:
            _require_number(value, "value")
            reference_value = value * unit.scale_factor

        self._value = value
        self._unit = unit
        self._reference_value = reference_value

    @classmethod
    def from_reference(cls, unit: "Unit | str", reference_value: Any) -> Quantity:
        return cls(unit=unit, reference_value=reference_value)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], registry: "UnitsRegistry | None" = None) -> Quantity:
        """Build a quantity from ``{"unit": ..., "value": ...}`` or ``{"unit": ..., "reference_value": ...}``."""
        return cls(
            data.get("value"),
            data.get("unit"),
            reference_value=data.get("reference_value"),
            registry=registry,
        )

    def as_dict(self) -> dict[str, Any]:
        return {"value": self._value, "unit": self._unit.name, "reference_value": self._reference_value}

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------
    @property
    def value(self) -> Any:
        return self._value

    @property
    def unit(self) -> Unit:
        return self._unit

    @property
    def reference_value(self) -> Any:
        return self._reference_value

    @property
    def measures(self) -> str:
        """What this measures, e.g. "length" (composite for derived units)."""
        return self._unit.measures

    @property
    def units(self) -> str:
        """Name of the unit of measurement, e.g. "meters"."""
        return self._unit.name

    # ------------------------------------------------------------------
    # Addition, subtraction, modulo
    # ------------------------------------------------------------------
    def _combine(self, other: Any, op, verb: str) -> Quantity:
        if _is_number(other):
            # bare numbers are taken to be in our own unit
            return Quantity(op(self._value, other), self._unit)
        if isinstance(other, Quantity):
            if self.measures != other.measures:
                raise CategoryMismatchError(verb, self.measures, other.measures)
            return Quantity.from_reference(self._unit, op(self._reference_value, other._reference_value))
        return NotImplemented

    def __add__(self, other: Any) -> Quantity:
        return self._combine(other, lambda a, b: a + b, "add")

    def __radd__(self, other: Any) -> Quantity:
        if not _is_number(other):
            return NotImplemented
        return Quantity(other + self._value, self._unit)

    def __sub__(self, other: Any) -> Quantity:
        return self._combine(other, lambda a, b: a - b, "subtract")

    def __rsub__(self, other: Any) -> Quantity:
        if not _is_number(other):
            return NotImplemented
        return Quantity(other - self._value, self._unit)

    def __mod__(self, other: Any) -> Quantity:
        return self._combine(other, lambda a, b: a % b, "take the modulo of")

    def __rmod__(self, other: Any) -> Quantity:
        if not _is_number(other):
            return NotImplemented
        return Quantity(other % self._value, self._unit)

    # ------------------------------------------------------------------
    # Multiplication, division, exponentiation
    # ------------------------------------------------------------------
    def __mul__(self, other: Any) -> Quantity:
        if _is_number(other):
            return Quantity(self._value * other, self._unit)
        if not isinstance(other, Quantity):
            return NotImplemented

        if self._unit != other._unit and self.measures == other.measures:
            # meters * centimeters: no sensible label without a real unit algebra
            raise UnitMismatchError(self.units, other.units)

        label = multiply_text(
            _wrap(self.units, self._unit.derived),
            _wrap(other.units, other._unit.derived),
        )
        unit = self._unit.resolve_composite(label, fallback=self._unit * other._unit)
        return Quantity.from_reference(unit, self._reference_value * other._reference_value)

    def __rmul__(self, other: Any) -> Quantity:
        if not _is_number(other):
            return NotImplemented
        return Quantity(other * self._value, self._unit)

    def __truediv__(self, other: Any) -> Any:
        if _is_number(other):
            return Quantity(self._value / other, self._unit)
        if not isinstance(other, Quantity):
            return NotImplemented

        if self.measures == other.measures:
            # units cancel: the ratio is a plain number
            return self._reference_value / other._reference_value

        label = divide_text(
            _wrap(self.units, self._unit.derived),
            _wrap(other.units, other._unit.derived),
        )
        unit = self._unit.resolve_composite(label, fallback=self._unit / other._unit)
        return Quantity.from_reference(unit, self._reference_value / other._reference_value)

    def __pow__(self, power: Any, modulo: Any = None) -> Quantity:
        if modulo is not None:
            raise TypeError("Modulo exponentiation is not supported for Quantity.")
        if not isinstance(power, int) or isinstance(power, bool) or power <= 0:
            raise InvalidExponentError(power)
        if power == 1:
            return self
        return self * self ** (power - 1)

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------
    def compare(self, other: Any) -> int | None:
        """
        Three-way comparison.

        Against a bare number the values are compared directly, ignoring the
        unit. Against a quantity of the same category the reference values are
        compared, so ``1 meters`` and ``100 centimeters`` are equal. Returns
        ``None`` when the two cannot be ordered (different categories, a
        non-numeric operand, or a NaN on either side).
        """
        if _is_number(other):
            a, b = self._value, other
        elif isinstance(other, Quantity) and self.measures == other.measures:
            a, b = self._reference_value, other._reference_value
        else:
            return None
        if a != a or b != b:  # NaN
            return None
        if isinstance(other, Quantity) and isclose(a, b, rel_tol=REL_TOL, abs_tol=0.0):
            return 0
        return (a > b) - (a < b)

    def _ordered(self, other: Any) -> float | None:
        if not (_is_number(other) or isinstance(other, Quantity)):
            return None
        result = self.compare(other)
        if result is None:
            if isinstance(other, Quantity) and self.measures != other.measures:
                raise CategoryMismatchError("compare", self.measures, other.measures)
            # NaN is unordered: every relation against it is False
            return math.nan
        return result

    def __eq__(self, other: object) -> bool:
        if not (_is_number(other) or isinstance(other, Quantity)):
            return NotImplemented
        return self.compare(other) == 0

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __lt__(self, other: Any) -> bool:
        result = self._ordered(other)
        return NotImplemented if result is None else result < 0

    def __le__(self, other: Any) -> bool:
        result = self._ordered(other)
        return NotImplemented if result is None else result <= 0

    def __gt__(self, other: Any) -> bool:
        result = self._ordered(other)
        return NotImplemented if result is None else result > 0

    def __ge__(self, other: Any) -> bool:
        result = self._ordered(other)
        return NotImplemented if result is None else result >= 0

    def eql(self, other: Any) -> bool:
        """Type-aware equality: same unit *and* equal magnitude."""
        return isinstance(other, Quantity) and other.units == self.units and self.compare(other) == 0

    # `__eq__` is tolerant and also matches bare numbers, so no hash
    # can honour it. Use `as_key` instead.
    __hash__ = None  # type: ignore[assignment]

    def as_key(self, precision: int = 12) -> Tuple[str, float]:
        """
        Returns a hashable, discretized key for this quantity.

        Quantities that are "equal" but differ in the last few bits of their
        reference value land on the same key when rounded to ``precision``
        decimal places of the reference value.

        >>> lengths = {(1 * u.meters).as_key(): "one meter"}
        >>> lengths[(100 * u.cm).as_key()]
        'one meter'
        """
        rounded = round(self._reference_value, precision)
        # -0.0 and 0.0 compare equal but print differently
        if rounded == 0:
            rounded = 0.0
        return (self.measures, rounded)

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------
    def convert(self, target: "Unit | str") -> Quantity:
        """
        Convert to another unit measuring the same thing.

        The reference value is carried over unchanged and re-expressed in the
        target unit. For most uses ``q.to_<unit>`` / ``q.in_<unit>`` read
        better, but this is handy for variable units.

        Raises
        ------
        InvalidUnitError
            If ``target`` names a unit the registry does not know.
        IncompatibleConversionError
            If ``target`` measures something else.
        """
        new_unit = self._unit.convert(target)
        if new_unit.name == self.units:
            return self
        return Quantity.from_reference(new_unit, self._reference_value)

    to = convert

    def to_reference(self) -> Quantity:
        """This quantity in the reference unit of its category."""
        return self.convert(self._unit.reference_unit)

    def __getattr__(self, name: str) -> Any:
        # only reached for names that are not real attributes
        if name.startswith("_"):
            raise AttributeError(name)
        m = _CONVERSION_RE.match(name)
        if m:
            target = m.group("unit")
            if not self._unit.knows(target):
                raise UnknownTargetUnitError(target)
            return self.convert(target)
        raise UnsupportedOperationError(name, self)

    def __dir__(self) -> list[str]:
        names = set(super().__dir__())
        for unit in self._unit.siblings():
            if unit.name.isidentifier():
                names.add(f"to_{unit.name}")
                names.add(f"in_{unit.name}")
        return sorted(names)

    # ------------------------------------------------------------------
    # Numeric conveniences
    # ------------------------------------------------------------------
    def __neg__(self) -> Quantity:
        return Quantity.from_reference(self._unit, -self._reference_value)

    def __pos__(self) -> Quantity:
        return self

    def __abs__(self) -> Quantity:
        return -self if self._reference_value < 0 else self

    def __round__(self, ndigits: int | None = None) -> Quantity:
        rounded = round(self._value) if ndigits is None else round(self._value, ndigits)
        return Quantity(rounded, self._unit)

    def __trunc__(self) -> Quantity:
        return Quantity(math.trunc(self._value), self._unit)

    def __floor__(self) -> Quantity:
        return Quantity(math.floor(self._value), self._unit)

    def __ceil__(self) -> Quantity:
        return Quantity(math.ceil(self._value), self._unit)

    def __divmod__(self, other: Any) -> Tuple[Quantity, Quantity]:
        if _is_number(other):
            divisor = other
        elif isinstance(other, Quantity):
            if self.measures != other.measures:
                raise CategoryMismatchError("divmod", self.measures, other.measures)
            divisor = other._value
        else:
            return NotImplemented
        quotient, remainder = divmod(self._value, divisor)
        return Quantity(quotient, self._unit), Quantity(remainder, self._unit)

    def __int__(self) -> int:
        return int(self._value)

    def __float__(self) -> float:
        return float(self._value)

    def __bool__(self) -> bool:
        return not self.is_zero

    @property
    def is_zero(self) -> bool:
        return self._value == 0

    # ------------------------------------------------------------------
    # String forms
    # ------------------------------------------------------------------
    def __str__(self) -> str:
        return self._unit.render(self._value)

    def __repr__(self) -> str:
        return f"Quantity({self._value!r}, {self.units!r})"

    def __format__(self, spec: str) -> str:
        """
        Custom string formatting for Quantity objects.

        Supported specifiers
        --------------------
        "" (empty), or "native"
            The quantity in its current unit (same as ``str``).
        "ref"
            The quantity converted to its category's reference unit.
        anything else
            Applied to the numeric value, e.g. ``f"{q:.2f}"`` → "12.00 meters".
        """
        spec = spec or ""
        if spec.strip().lower() in ("", "native"):
            return str(self)
        if spec.strip().lower() == "ref":
            return str(self.to_reference())
        return f"{format(self._value, spec)} {self.units}"


__all__ = ["Quantity", "REL_TOL"]
