import re
from functools import lru_cache
from typing import TYPE_CHECKING, List, Tuple, Union

from measura.core.errors import InvalidUnitError

if TYPE_CHECKING:
    from measura.core.unit import Unit
    from measura.units.registry import UnitsRegistry

# --- Plan node types ------------------------------------------------
# ("name", <str>, None)
# ("squared", <plan>, None)
# ("mul", <plan>, <plan>)
# ("per", <plan>, <plan>)
Plan = Tuple[str, Union[str, "Plan"], Union["Plan", None]]

_TOKEN_RE = re.compile(r"\s*(\(|\)|\*|[^\s()*]+)")
_KEYWORDS = frozenset({"per", "squared"})


def _tokenize(text: str) -> List[str]:
    tokens: List[str] = []
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if m is None:  # pragma: no cover - the pattern matches any non-space run
            raise ValueError(f"Unexpected input at {pos}: {text[pos:pos+10]!r}")
        tokens.append(m.group(1))
        pos = m.end()
    return tokens


# ---------------- Parser that builds a PLAN (no registry lookups!) ----------------
class _UnitLabelParser:
    """
    Grammar for derived-unit labels such as ``"meters squared"``,
    ``"(meters squared) * meters"`` or ``"meters per seconds"``:

      expr   := term (('*' | 'per') term)*
      term   := factor 'squared'*
      factor := NAME | '(' expr ')'
    """

    def __init__(self, text: str):
        self.text = text
        self.tokens = _tokenize(text)
        self.i = 0

    def parse(self) -> Plan:
        if not self.tokens:
            raise ValueError("Empty unit label")
        plan = self._parse_expr()
        if self.i != len(self.tokens):
            raise ValueError(f"Unexpected trailing input in {self.text!r}: {self.tokens[self.i]!r}")
        return plan

    def _parse_expr(self) -> Plan:
        left = self._parse_term()
        while self._peek() in ("*", "per"):
            op = "mul" if self._next() == "*" else "per"
            right = self._parse_term()
            left = (op, left, right)
        return left

    def _parse_term(self) -> Plan:
        base = self._parse_factor()
        while self._peek() == "squared":
            self._next()
            base = ("squared", base, None)
        return base

    def _parse_factor(self) -> Plan:
        tok = self._next()
        if tok == "(":
            inner = self._parse_expr()
            if self._next() != ")":
                raise ValueError(f"Expected ')' in {self.text!r}")
            return inner
        if tok is None or tok in _KEYWORDS or tok in ("*", ")"):
            raise ValueError(f"Expected unit name or '(' in {self.text!r}, got {tok!r}")
        return ("name", tok, None)

    # ---- token helpers ----
    def _peek(self):
        return self.tokens[self.i] if self.i < len(self.tokens) else None

    def _next(self):
        tok = self._peek()
        if tok is not None:
            self.i += 1
        return tok


# ---------------- Evaluation of a plan against a given registry ----------------
def _eval_plan(plan: Plan, reg: "UnitsRegistry") -> "Unit":
    kind = plan[0]
    if kind == "name":
        return reg.get(plan[1])  # late binding to the provided registry
    if kind == "squared":
        base = _eval_plan(plan[1], reg)
        return base * base
    if kind == "mul":
        return _eval_plan(plan[1], reg) * _eval_plan(plan[2], reg)
    if kind == "per":
        return _eval_plan(plan[1], reg) / _eval_plan(plan[2], reg)
    raise RuntimeError(f"Invalid plan node: {plan!r}")


# Cache the *compiled plan* only. Safe across registries because there's no bound objects inside.
@lru_cache(maxsize=4096)
def _compile_unit_label(label: str) -> Plan:
    return _UnitLabelParser(label).parse()


def is_composite_label(label: str) -> bool:
    """True when ``label`` looks like a derived-unit label rather than a single name."""
    stripped = label.strip()
    return any(ch in stripped for ch in "*()") or any(ch.isspace() for ch in stripped)


def extract_unit_label(label: str, reg: "UnitsRegistry") -> "Unit":
    """
    Resolve a derived-unit label like ``"(meters squared) * meters"`` into a unit.

    Caching-safety:
      * The compiled syntax plan is cached by ``label`` only (no registry state).
      * Evaluation binds names to units from the *provided* ``reg`` at call time.

    Raises `InvalidUnitError` for malformed labels or unknown component names.
    """
    try:
        plan = _compile_unit_label(label)
    except ValueError as e:
        raise InvalidUnitError(label, str(e)) from None
    return _eval_plan(plan, reg)
