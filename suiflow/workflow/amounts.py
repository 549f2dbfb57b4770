"""Raw vs UI amount parsing.

A string of digits is already in base units. A decimal string is in UI units
and is scaled by the token's decimals. Anything else is rejected.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from suiflow.errors import ValidationError
from suiflow.workflow.config import SUI_DECIMALS

_RAW_RE = re.compile(r"^\d+$")
_UI_RE = re.compile(r"^\d+\.\d+$")


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return ""
    if isinstance(value, float):
        return format(Decimal(str(value)), "f")
    return str(value).strip()


def is_raw_amount(value: Any) -> bool:
    return bool(_RAW_RE.match(_as_text(value)))


def is_ui_amount(value: Any) -> bool:
    return bool(_UI_RE.match(_as_text(value)))


def scale_ui_amount(text: str, decimals: int, field: str = "amount") -> str:
    whole, frac = text.split(".", 1)
    frac = frac.rstrip("0")
    if len(frac) > decimals:
        raise ValidationError(
            f"{field} has more fractional digits than the token supports ({decimals}).",
            field=field,
        )
    raw = int(whole + frac.ljust(decimals, "0"))
    return str(raw)


def parse_amount(value: Any, decimals: Optional[int], field: str = "amount") -> str:
    """Return the amount in base units as a decimal string.

    ``"1000000"`` is returned unchanged; ``"1.5"`` with 6 decimals becomes
    ``"1500000"``; a UI amount with unknown decimals is an error.
    """

    text = _as_text(value)
    if _RAW_RE.match(text):
        return str(int(text))
    if _UI_RE.match(text):
        if decimals is None:
            raise ValidationError(
                f"{field}={text} looks like a UI amount but token decimals are unknown; "
                "pass a raw integer amount instead.",
                field=field,
            )
        return scale_ui_amount(text, decimals, field)
    raise ValidationError(f"{field} must be an integer or decimal string, got {value!r}.", field=field)


def parse_positive_amount(value: Any, decimals: Optional[int], field: str = "amount") -> str:
    raw = parse_amount(value, decimals, field)
    if int(raw) <= 0:
        raise ValidationError(f"{field} must be greater than zero.", field=field)
    return raw


def sui_to_mist(amount_sui: Any) -> str:
    try:
        value = Decimal(str(amount_sui))
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationError(f"amountSui must be numeric, got {amount_sui!r}.", field="amountSui") from exc
    if not value.is_finite() or value <= 0:
        raise ValidationError("amountSui must be greater than zero.", field="amountSui")
    mist = value.scaleb(SUI_DECIMALS)
    if mist != mist.to_integral_value():
        raise ValidationError("amountSui has more than 9 decimal places.", field="amountSui")
    return str(int(mist))
