from __future__ import annotations

from dataclasses import dataclass, field, replace
from math import isclose, isfinite
from numbers import Real
from typing import TYPE_CHECKING, Any

from measura.core.errors import IncompatibleConversionError, InvalidUnitError

if TYPE_CHECKING:  # pragma: no cover - imported only for type checking
    from measura.core.quantity import Quantity
    from measura.units.registry import UnitsRegistry


def _is_number(value: object) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _wrap(text: str, derived: bool) -> str:
    # composite operands keep their grouping inside a longer label
    return f"({text})" if derived else text


def multiply_text(first: str, second: str) -> str:
    """'Multiply' two unit (or category) labels into a new description.

    Identical labels become ``"<label> squared"``; anything else is joined as
    ``"<a> * <b>"`` with the operands in sorted order, so that ``a * b`` and
    ``b * a`` produce the same label.
    """
    if first == second:
        return f"{first} squared"
    left, right = sorted((first, second))
    return f"{left} * {right}"


def divide_text(first: str, second: str) -> str:
    return f"{first} per {second}"


def format_number(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.15g}"
    return str(value)


@dataclass(frozen=True, slots=True, eq=False)
class Unit:
    """
    A unit of measurement.

    Attributes
    ----------
    name : str
        Canonical name (e.g. "meters", "grams") or a composite label for
        derived units (e.g. "meters squared", "meters per seconds").
    measures : str
        Measurement category ("length", "mass", ...). Derived units carry a
        composite category such as "length squared".
    scale_factor : float
        Multiplier converting a value in this unit to the reference value of
        its category. Examples: meters=1.0, centimeters=0.01, feet=0.3048.
    symbol : str, optional
        Short symbol such as "m" or "cm".
    derived : bool
        True for units synthesized from other units.
    """

    name: str
    measures: str
    scale_factor: float
    symbol: str | None = None
    derived: bool = False
    factors: tuple = field(default=(), repr=False)
    registry: "UnitsRegistry | None" = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if not self.name or not isinstance(self.name, str):
            raise ValueError("unit name must be a non-empty string")
        if not self.measures or not isinstance(self.measures, str):
            raise ValueError("measures must be a non-empty string")
        if not (_is_number(self.scale_factor) and self.scale_factor > 0 and isfinite(self.scale_factor)):
            raise ValueError("scale_factor must be a positive, finite number")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Unit):
            return NotImplemented
        # scale_factor can pick up FP noise when derived along different paths
        return (
            self.name == other.name
            and self.measures == other.measures
            and isclose(self.scale_factor, other.scale_factor, rel_tol=1e-12, abs_tol=0.0)
        )

    def __hash__(self) -> int:
        return hash((self.name, self.measures))

    def __str__(self) -> str:
        return self.name

    # ------------------------------------------------------------------
    # Registry collaboration
    # ------------------------------------------------------------------
    def _registry(self) -> "UnitsRegistry":
        if self.registry is not None:
            return self.registry
        from measura.units.registry import DEFAULT_REGISTRY

        return DEFAULT_REGISTRY

    def bind(self, registry: "UnitsRegistry") -> Unit:
        """Return a copy of this unit that resolves through ``registry``."""
        if self.registry is registry:
            return self
        return replace(self, registry=registry)

    def _resolve(self, target: "Unit | str") -> Unit:
        if isinstance(target, Unit):
            return target
        if not isinstance(target, str):
            raise InvalidUnitError(target, "expected a unit name or Unit")
        return self._registry().get(target)

    @property
    def reference_unit(self) -> Unit:
        """The defining unit (scale factor 1) of this unit's category."""
        if self.derived:
            op, left, right = self.factors
            if op == "*":
                return left.reference_unit * right.reference_unit
            return left.reference_unit / right.reference_unit
        return self._registry().reference_unit(self.measures)

    def can_convert_to(self, target: "Unit | str") -> bool:
        try:
            resolved = self._resolve(target)
        except InvalidUnitError:
            return False
        return resolved.measures == self.measures

    def convert(self, target: "Unit | str") -> Unit:
        resolved = self._resolve(target)
        if resolved.measures != self.measures:
            raise IncompatibleConversionError(self.measures, resolved.name)
        return resolved

    def render(self, value: Any) -> str:
        return f"{format_number(value)} {self.name}"

    def knows(self, identifier: str) -> bool:
        """Whether this unit's registry can resolve ``identifier``."""
        return self._registry().has(identifier)

    def siblings(self) -> list[Unit]:
        """Registered units measuring the same thing as this one."""
        return self._registry().units_measuring(self.measures)

    def resolve_composite(self, label: str, fallback: Unit | None = None) -> Unit:
        """Resolve (or synthesize) a derived unit such as ``"meters squared"``.

        ``fallback`` is returned when the label's components are unknown to
        the registry, e.g. for units that were never registered.
        """
        try:
            return self._registry().get(label)
        except InvalidUnitError:
            if fallback is None:
                raise
            return fallback

    # ------------------------------------------------------------------
    # Derived units
    # ------------------------------------------------------------------
    def __mul__(self, other: Any) -> Any:
        if _is_number(other):
            return self.__rmul__(other)
        if not isinstance(other, Unit):
            return NotImplemented
        return Unit(
            multiply_text(_wrap(self.name, self.derived), _wrap(other.name, other.derived)),
            multiply_text(_wrap(self.measures, self.derived), _wrap(other.measures, other.derived)),
            self.scale_factor * other.scale_factor,
            derived=True,
            factors=("*", self, other),
            registry=self.registry or other.registry,
        )

    def __truediv__(self, other: Unit) -> Unit:
        if not isinstance(other, Unit):
            return NotImplemented
        return Unit(
            divide_text(_wrap(self.name, self.derived), _wrap(other.name, other.derived)),
            divide_text(_wrap(self.measures, self.derived), _wrap(other.measures, other.derived)),
            self.scale_factor / other.scale_factor,
            derived=True,
            factors=("/", self, other),
            registry=self.registry or other.registry,
        )

    # ------------------------------------------------------------------
    # Numeric-literal integration: 12 * u.meters, 12 @ u.meters, u.meters(12)
    # ------------------------------------------------------------------
    def __rmul__(self, value: Any) -> "Quantity":
        if not _is_number(value):
            return NotImplemented
        from measura.core.quantity import Quantity

        return Quantity(value, self)

    def __rmatmul__(self, value: Any) -> "Quantity":
        return self.__rmul__(value)

    def __call__(self, value: Any) -> "Quantity":
        from measura.core.quantity import Quantity

        return Quantity(value, self)


__all__ = ["Unit", "multiply_text", "divide_text", "format_number"]
