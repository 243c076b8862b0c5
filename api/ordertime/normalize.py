"""
Field normalization for OrderTime rows

OrderTime reports use different header names depending on how the
tenant set them up ("Qty" vs "Qty On Hand", "Lot/Serial" vs "IMEI"...).
Each output field has an ordered alias list; the first alias with a
usable value wins. Order matters: the frontend relies on it.
"""

import math
from dataclasses import asdict, dataclass
from typing import Any, Optional, Union


Number = Union[int, float]


# ============================================================
# ALIAS TABLES
# ============================================================

ITEM_ALIASES = ['Item', 'SKU', 'Item (SKU)', 'Item Name', 'Product']
SERIAL_ALIASES = ['Lot/Serial', 'LotSerial', 'Serial', 'IMEI', 'Lot / Serial']
EXPIRATION_ALIASES = ['Expiration Date', 'Expiry', 'Expire', 'Expiration']
QTY_ALIASES = ['Qty', 'Quantity', 'On Hand', 'Qty On Hand']
COST_ALIASES = ['Cost', 'Avg Cost', 'Unit Cost']
BIN_ALIASES = ['Bin', 'Location', 'Bin Location', 'Loc']


@dataclass
class NormalizedRow:
    """One inventory row as returned to the frontend"""
    item: str = ''
    serial: str = ''
    expiration: str = ''
    qty: Number = 0
    cost: Optional[Number] = None
    bin: str = ''

    def to_dict(self) -> dict:
        return asdict(self)


# ============================================================
# HELPERS
# ============================================================

def first_value(record: Optional[dict], aliases: list[str], default: Any = '') -> Any:
    """Return the first alias with a truthy value, else default."""
    if not record:
        return default
    for key in aliases:
        value = record.get(key)
        if value:
            return value
    return default


def first_present(record: Optional[dict], aliases: list[str]) -> Any:
    """
    Return the first alias whose value is not None.

    Used for API fields where 0 is a meaningful value (OnHand, Id).
    """
    if not record:
        return None
    for key in aliases:
        value = record.get(key)
        if value is not None:
            return value
    return None


def to_number(value: Any) -> Number:
    """
    Coerce a cell value to a number.

    Commas and spaces are stripped ("1,234" -> 1234). Anything that
    does not parse to a finite number becomes 0, including digit
    separators like "1_000". Never raises.
    """
    if value is None or value == '' or isinstance(value, bool):
        return 0

    if isinstance(value, (int, float)):
        source = value
    else:
        source = str(value).replace(',', '').replace(' ', '')
        if not source or '_' in source:
            return 0

    try:
        number = float(source)
    except (ValueError, OverflowError):
        return 0

    if not math.isfinite(number):
        return 0
    return int(number) if number.is_integer() else number


def _text(value: Any) -> str:
    return value if isinstance(value, str) else str(value)


def normalize_record(record: dict) -> NormalizedRow:
    """Map a report row (CSV or JSON) onto the fixed output shape."""
    cost = first_value(record, COST_ALIASES, default=None)
    if cost is None:
        # A present but falsy cost (0, "") is still a cost
        cost = first_present(record, COST_ALIASES)

    return NormalizedRow(
        item=_text(first_value(record, ITEM_ALIASES)),
        serial=_text(first_value(record, SERIAL_ALIASES)),
        expiration=_text(first_value(record, EXPIRATION_ALIASES)),
        qty=to_number(first_value(record, QTY_ALIASES, default=None)),
        cost=to_number(cost) if cost is not None else None,
        bin=_text(first_value(record, BIN_ALIASES)),
    )


def normalize_records(records: list[dict]) -> list[NormalizedRow]:
    return [normalize_record(r) for r in records]
