import pytest

from measura.core.errors import (
    IncompatibleConversionError,
    InvalidUnitError,
    QuantityError,
    UnknownTargetUnitError,
    UnsupportedOperationError,
)
from measura.core.quantity import Quantity


# -------------------------------
# convert / to
# -------------------------------

@pytest.mark.parametrize("value, source, target, expected", [
    (12, "meters", "feet", 12 / 0.3048),
    (12, "meters", "centimeters", 1200),
    (1, "miles", "km", 1.609344),
    (2, "hours", "minutes", 120),
    (1, "weeks", "days", 7),
    (500, "grams", "kilograms", 0.5),
    (1, "gallons", "quarts", 4),
    (3, "mL", "liters", 0.003),
])
def test_convert(reg, value, source, target, expected):
    q = Quantity(value, source, registry=reg)
    converted = q.convert(target)

    assert converted.value == pytest.approx(expected)
    assert converted.reference_value == q.reference_value
    assert converted == q


def test_to_is_convert(u):
    q = 12 * u.m
    assert q.to("feet").eql(q.convert("feet"))
    assert q.to(u.ft).units == "feet"


def test_round_trip_conversion(u):
    q = 12 * u.m
    back = q.convert("feet").convert("meters")
    assert back.units == "meters"
    assert back.value == pytest.approx(12)


def test_converting_to_own_unit_returns_same_object(u):
    q = 12 * u.m
    assert q.convert("m") is q
    assert q.convert("meters") is q


def test_convert_to_unknown_unit(u):
    with pytest.raises(InvalidUnitError):
        (12 * u.m).convert("parsecs")


def test_convert_across_categories(u):
    with pytest.raises(IncompatibleConversionError) as excinfo:
        (12 * u.m).convert("grams")
    err = excinfo.value
    assert str(err) == "Cannot convert length to grams"
    assert isinstance(err, TypeError)
    assert isinstance(err, QuantityError)


def test_convert_derived_quantity(u):
    area = (50 * u.cm) * (50 * u.cm)
    in_m2 = area.convert("meters squared")

    assert in_m2.units == "meters squared"
    assert in_m2.value == pytest.approx(0.25)

    with pytest.raises(IncompatibleConversionError):
        area.convert("meters")


def test_to_reference(u):
    assert (5 * u.ft).to_reference().units == "meters"
    assert (5 * u.ft).to_reference().value == pytest.approx(1.524)
    assert (250 * u.g).to_reference().units == "kilograms"
    assert (2 * u.h).to_reference().value == pytest.approx(7200)

    q = 3 * u.m
    assert q.to_reference() is q


def test_to_reference_of_derived_quantity(u):
    area = (2 * u.cm) * (2 * u.cm)
    ref = area.to_reference()
    assert ref.units == "meters squared"
    assert ref.value == pytest.approx(0.0004)


# -------------------------------
# to_<unit> / in_<unit> attributes
# -------------------------------

def test_dynamic_conversion_attributes(u):
    q = 12 * u.meters

    assert q.to_feet.value == pytest.approx(12 / 0.3048)
    assert q.in_centimeters.value == pytest.approx(1200)
    assert q.in_centimeters == 1200 * u.centimeters
    assert q.in_km.units == "kilometers"
    assert q.to_ft.units == "feet"


def test_unknown_target_unit(u):
    with pytest.raises(UnknownTargetUnitError) as excinfo:
        _ = (12 * u.m).to_parsecs
    assert str(excinfo.value) == "Unknown target unit type: parsecs"
    assert excinfo.value.identifier == "parsecs"
    assert isinstance(excinfo.value, InvalidUnitError)


def test_known_target_in_wrong_category(u):
    with pytest.raises(IncompatibleConversionError):
        _ = (12 * u.m).to_grams


def test_unknown_attribute_is_unsupported(u):
    q = 12 * u.m
    with pytest.raises(UnsupportedOperationError) as excinfo:
        _ = q.frobnicate
    assert str(excinfo.value) == "Undefined method `frobnicate` for 12 meters:Quantity"
    assert isinstance(excinfo.value, AttributeError)
    assert not hasattr(q, "frobnicate")
    assert not hasattr(q, "_private")


def test_dir_lists_conversion_targets(u):
    names = dir(12 * u.m)
    assert "to_feet" in names
    assert "in_nautical_miles" in names
    assert "to_meters" in names
    assert "convert" in names
    assert "to_grams" not in names
