import pytest

from measura.core.errors import InvalidExponentError, QuantityError


def test_power_one_is_identity(u):
    q = 3 * u.m
    assert q ** 1 is q


def test_square_matches_self_product(u):
    q = 2 * u.m
    sq = q ** 2

    assert sq.units == "meters squared"
    assert sq.measures == "length squared"
    assert sq.value == pytest.approx(4)
    assert sq.eql(q * q)


def test_cube_matches_repeated_product(u):
    q = 2 * u.m
    cube = q ** 3

    assert cube.units == "(meters squared) * meters"
    assert cube.measures == "(length squared) * length"
    assert cube.value == pytest.approx(8)
    assert cube.eql(q * q * q)
    assert cube.eql(q * (q * q))


def test_power_keeps_unit_scale(u):
    cube = (2 * u.cm) ** 3
    assert cube.value == pytest.approx(8)
    assert cube.reference_value == pytest.approx(8e-6)


def test_power_of_derived_quantity(u):
    speed = (10 * u.m) / (2 * u.s)
    sq = speed ** 2
    assert sq.units == "(meters per seconds) squared"
    assert sq.value == pytest.approx(25)


@pytest.mark.parametrize("power", [0, -1, -3, 1.5, 2.0, True, "2", None])
def test_only_positive_integer_powers(u, power):
    with pytest.raises(InvalidExponentError) as excinfo:
        _ = (2 * u.m) ** power
    assert isinstance(excinfo.value, ValueError)
    assert isinstance(excinfo.value, QuantityError)
    assert excinfo.value.power is power


def test_three_argument_pow_is_unsupported(u):
    with pytest.raises(TypeError):
        pow(2 * u.m, 2, 3)
