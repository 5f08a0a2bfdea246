import dataclasses
import math

import pytest

from measura.core.errors import IncompatibleConversionError, InvalidUnitError
from measura.core.quantity import Quantity
from measura.core.unit import Unit, divide_text, format_number, multiply_text
from measura.units.registry import DEFAULT_REGISTRY


# -------------------------------
# Construction / validation
# -------------------------------

def test_unit_fields():
    cm = Unit("centimeters", "length", 0.01, symbol="cm")
    assert cm.name == "centimeters"
    assert cm.measures == "length"
    assert cm.scale_factor == 0.01
    assert cm.symbol == "cm"
    assert not cm.derived
    assert str(cm) == "centimeters"


@pytest.mark.parametrize("name, measures", [("", "length"), ("meters", ""), (None, "length"), ("meters", 3)])
def test_name_and_measures_must_be_non_empty_strings(name, measures):
    with pytest.raises(ValueError):
        Unit(name, measures, 1.0)


@pytest.mark.parametrize("scale", [0, -1, math.inf, math.nan, "1", True, None])
def test_scale_must_be_positive_finite_number(scale):
    with pytest.raises(ValueError):
        Unit("meters", "length", scale)


def test_units_are_immutable():
    m = Unit("meters", "length", 1.0)
    with pytest.raises(dataclasses.FrozenInstanceError):
        m.scale_factor = 2.0


# -------------------------------
# Equality / hashing
# -------------------------------

def test_equality_tolerates_scale_noise():
    a = Unit("meters", "length", 1.0)
    b = Unit("meters", "length", 1.0 + 1e-15)
    assert a == b
    assert hash(a) == hash(b)


def test_inequality():
    m = Unit("meters", "length", 1.0)
    assert m != Unit("meters", "length", 2.0)
    assert m != Unit("metres", "length", 1.0)
    assert m != Unit("meters", "distance", 1.0)
    assert m != "meters"


def test_units_usable_as_dict_keys(reg):
    table = {reg.get("m"): "metric", reg.get("ft"): "imperial"}
    assert table[reg.get("meters")] == "metric"


# -------------------------------
# Registry collaboration
# -------------------------------

def test_bind_returns_copy_for_other_registry(reg):
    m = Unit("meters", "length", 1.0)
    bound = m.bind(reg)
    assert bound is not m
    assert bound.registry is reg
    assert m.registry is None
    assert bound.bind(reg) is bound


def test_unbound_unit_uses_default_registry():
    furlong = Unit("furlongs", "length", 201.168)
    assert furlong.reference_unit is DEFAULT_REGISTRY.get("meters")
    assert furlong.knows("feet")


def test_reference_unit(reg):
    assert reg.get("feet").reference_unit is reg.get("meters")
    assert reg.get("grams").reference_unit is reg.get("kilograms")
    assert reg.get("gal").reference_unit is reg.get("liters")
    assert reg.get("meters").reference_unit is reg.get("meters")


def test_reference_unit_of_derived_unit(reg):
    cm2 = reg.get("cm") * reg.get("cm")
    assert cm2.reference_unit.name == "meters squared"
    assert cm2.reference_unit.scale_factor == 1.0

    kmh = reg.get("km") / reg.get("h")
    assert kmh.reference_unit.name == "meters per seconds"


def test_can_convert_to(reg):
    ft = reg.get("feet")
    assert ft.can_convert_to("meters")
    assert ft.can_convert_to(reg.get("cm"))
    assert not ft.can_convert_to("grams")
    assert not ft.can_convert_to("parsecs")
    assert not ft.can_convert_to(42)


def test_convert_returns_target_unit(reg):
    ft = reg.get("feet")
    assert ft.convert("m") is reg.get("meters")

    with pytest.raises(IncompatibleConversionError):
        ft.convert("seconds")
    with pytest.raises(InvalidUnitError):
        ft.convert(42)


def test_siblings(reg):
    names = [unit.name for unit in reg.get("seconds").siblings()]
    assert names == ["seconds", "minutes", "hours", "days", "weeks"]


def test_resolve_composite_fallback(reg):
    m = reg.get("meters")
    assert m.resolve_composite("meters squared").measures == "length squared"

    with pytest.raises(InvalidUnitError):
        m.resolve_composite("furlongs squared")

    fallback = Unit("furlongs squared", "length squared", 201.168 ** 2)
    assert m.resolve_composite("furlongs squared", fallback=fallback) is fallback


# -------------------------------
# Text helpers
# -------------------------------

def test_multiply_text():
    assert multiply_text("meters", "meters") == "meters squared"
    assert multiply_text("seconds", "meters") == "meters * seconds"
    assert multiply_text("meters", "seconds") == "meters * seconds"


def test_divide_text():
    assert divide_text("meters", "seconds") == "meters per seconds"


def test_render_and_format_number(reg):
    assert reg.get("m").render(12) == "12 meters"
    assert reg.get("m").render(0.1 + 0.2) == "0.3 meters"
    assert format_number(2.0) == "2"
    assert format_number(-7) == "-7"


# -------------------------------
# Derived units
# -------------------------------

def test_unit_product(reg):
    ms = reg.get("m") * reg.get("s")
    assert ms.name == "meters * seconds"
    assert ms.measures == "length * time"
    assert ms.derived
    assert ms.registry is reg


def test_unit_quotient(reg):
    kmh = reg.get("km") / reg.get("h")
    assert kmh.name == "kilometers per hours"
    assert kmh.measures == "length per time"
    assert kmh.scale_factor == pytest.approx(1000 / 3600)


def test_nested_derived_units_are_parenthesized(reg):
    m = reg.get("m")
    cube = (m * m) * m
    assert cube.name == "(meters squared) * meters"
    assert cube.measures == "(length squared) * length"
    assert (m / reg.get("s")) / reg.get("s") == reg.get("(meters per seconds) per seconds")


# -------------------------------
# Numeric literal integration
# -------------------------------

def test_number_times_unit_builds_quantity(reg):
    m = reg.get("meters")
    for q in (12 * m, m * 12, 12 @ m, m(12)):
        assert isinstance(q, Quantity)
        assert q.value == 12
        assert q.unit is m


def test_non_numbers_do_not_build_quantities(reg):
    m = reg.get("meters")
    with pytest.raises(TypeError):
        _ = "x" * m
    with pytest.raises(TypeError):
        _ = True * m
    with pytest.raises(TypeError):
        m("12")
