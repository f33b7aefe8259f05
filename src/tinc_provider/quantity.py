"""Kubernetes resource quantity parsing.

Only the grammar is implemented: ``<signed number><suffix>`` where the
suffix is a binary SI suffix (``Ki``..``Ei``), a decimal SI suffix
(``n``, ``u``, ``m``, ``k``, ``M``..``E``) or a decimal exponent
(``e3``, ``E-2``).  Canonicalisation is not needed by the provider so the
raw string is kept alongside the numeric value.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

_QUANTITY_RE = re.compile(
    r"^(?P<number>[+-]?(?:\d+\.?\d*|\.\d+))"
    r"(?P<suffix>Ki|Mi|Gi|Ti|Pi|Ei|[numkMGTPE]|[eE][+-]?\d+)?$"
)

_BINARY = {
    "Ki": Decimal(2) ** 10,
    "Mi": Decimal(2) ** 20,
    "Gi": Decimal(2) ** 30,
    "Ti": Decimal(2) ** 40,
    "Pi": Decimal(2) ** 50,
    "Ei": Decimal(2) ** 60,
}

_DECIMAL = {
    "n": Decimal("1e-9"),
    "u": Decimal("1e-6"),
    "m": Decimal("1e-3"),
    "k": Decimal("1e3"),
    "M": Decimal("1e6"),
    "G": Decimal("1e9"),
    "T": Decimal("1e12"),
    "P": Decimal("1e15"),
    "E": Decimal("1e18"),
}


@dataclass(frozen=True)
class Quantity:
    raw: str
    value: Decimal

    def __str__(self) -> str:
        return self.raw


def parse_quantity(text: str) -> Quantity:
    """Parse ``text`` into a :class:`Quantity`.

    Raises :class:`ValueError` when ``text`` is not a valid quantity.
    """

    match = _QUANTITY_RE.match(text.strip()) if text else None
    if match is None:
        raise ValueError(f"quantities must match the regular expression {_QUANTITY_RE.pattern!r}")

    try:
        number = Decimal(match.group("number"))
    except InvalidOperation as exc:
        raise ValueError(f"unable to parse quantity's numeric part {text!r}") from exc

    suffix = match.group("suffix") or ""
    try:
        if suffix in _BINARY:
            value = number * _BINARY[suffix]
        elif suffix in _DECIMAL:
            value = number * _DECIMAL[suffix]
        elif suffix:
            value = number.scaleb(int(suffix[1:]))
        else:
            value = number
    except ArithmeticError as exc:
        raise ValueError(f"quantity {text!r} is out of range") from exc
    return Quantity(raw=text.strip(), value=value)
