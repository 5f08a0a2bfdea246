# tests/conftest.py
import pytest

from measura.core.unit import Unit
from measura.units.registry import DEFAULT_REGISTRY as _ureg
from measura.units.registry import UnitsRegistry, _bootstrap_default_registry


@pytest.fixture(scope="session")
def ureg():
    return _ureg


@pytest.fixture()
def reg():
    """Fresh, fully-bootstrapped UnitsRegistry for isolation per test."""
    return _bootstrap_default_registry()


@pytest.fixture()
def u(reg):
    """A UnitNamespace over an isolated registry."""
    return reg.as_namespace()


@pytest.fixture()
def widgets():
    """A tiny registry that knows nothing about SI units."""
    small = UnitsRegistry()
    small.register(Unit("widgets", "widgetry", 1.0, symbol="wd"))
    small.register(Unit("dozens", "widgetry", 12.0, symbol="dz"))
    small.register(Unit("gross", "widgetry", 144.0))
    small.register(Unit("crates", "storage", 1.0))
    return small
