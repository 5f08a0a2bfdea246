"""
measura.core.errors
===================

Exception types raised by quantities and unit registries.

Every error derives from `QuantityError` *and* from the builtin exception that
plain Python code would raise in the same spot (``TypeError`` for operand
mismatches, ``ValueError`` for bad arguments, ``AttributeError`` for unknown
attributes), so callers can catch either.
"""

from __future__ import annotations

from typing import Any


class QuantityError(Exception):
    """Base class for all measura errors."""


class InvalidUnitError(QuantityError, ValueError):
    """A unit identifier could not be resolved by the registry."""

    def __init__(self, identifier: Any, detail: str | None = None) -> None:
        self.identifier = identifier
        message = f"Unknown unit: {identifier!r}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class UnknownTargetUnitError(InvalidUnitError):
    """A ``to_<unit>`` / ``in_<unit>`` request named a unit nobody knows."""

    def __init__(self, identifier: str) -> None:
        super().__init__(identifier)
        self.args = (f"Unknown target unit type: {identifier}",)


class CategoryMismatchError(QuantityError, TypeError):
    """Two quantities measuring different things met in one operation."""

    def __init__(self, operation: str, left: str, right: str) -> None:
        self.operation = operation
        self.left = left
        self.right = right
        super().__init__(f"Cannot {operation} {left} and {right}: measurement categories differ")


class UnitMismatchError(QuantityError, TypeError):
    """Multiplication between quantities whose units are not identical."""

    def __init__(self, left: str, right: str) -> None:
        self.left = left
        self.right = right
        super().__init__(
            f"Cannot multiply {left} with {right}: "
            "products of different units of the same category are not supported"
        )


class IncompatibleConversionError(QuantityError, TypeError):
    """Conversion to a unit outside the source unit's category."""

    def __init__(self, measures: str, target: str) -> None:
        self.measures = measures
        self.target = target
        super().__init__(f"Cannot convert {measures} to {target}")


class InvalidExponentError(QuantityError, ValueError):
    """Quantities can only be raised to positive integer powers."""

    def __init__(self, power: Any) -> None:
        self.power = power
        super().__init__(f"Quantities can only be raised to positive integer powers (given {power!r})")


class UnsupportedOperationError(QuantityError, AttributeError):
    """An attribute or request the quantity does not understand."""

    def __init__(self, name: str, obj: Any) -> None:
        super().__init__(f"Undefined method `{name}` for {obj}:{type(obj).__name__}")
        self.name = name
        self.obj = obj


__all__ = [
    "QuantityError",
    "InvalidUnitError",
    "UnknownTargetUnitError",
    "CategoryMismatchError",
    "UnitMismatchError",
    "IncompatibleConversionError",
    "InvalidExponentError",
    "UnsupportedOperationError",
]
