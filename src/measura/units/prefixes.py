"""
measura.units.prefixes
======================

SI prefixes used by the registry to synthesize units such as "kilometers"
("km") or "milligrams" ("mg") on first lookup.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Prefix:
    name: str
    symbol: str
    factor: float


PREFIXES: tuple[Prefix, ...] = (
    Prefix("tera",  "T",  1e12),
    Prefix("giga",  "G",  1e9),
    Prefix("mega",  "M",  1e6),
    Prefix("kilo",  "k",  1e3),
    Prefix("hecto", "h",  1e2),
    Prefix("deca",  "da", 1e1),
    Prefix("deci",  "d",  1e-1),
    Prefix("centi", "c",  1e-2),
    Prefix("milli", "m",  1e-3),
    Prefix("micro", "µ",  1e-6),
    Prefix("micro", "u",  1e-6),  # ASCII fallback for µ
    Prefix("nano",  "n",  1e-9),
    Prefix("pico",  "p",  1e-12),
)

__all__ = ["Prefix", "PREFIXES"]
