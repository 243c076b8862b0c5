"""
Build inventory rows from OrderTime /list entities

InventoryBalance records only carry references. To produce a row we
look up the Item (name, cost), the LotOrSerialNo (serial, expiration)
and the Bin (name) each balance points at.

A reference can show up nested ({"ItemRef": {"Id": 7}}) or flat
({"ItemId": 7}); nested wins. A reference that doesn't resolve just
leaves that entity's fields blank.
"""

import logging
from typing import Any, Optional

from .normalize import NormalizedRow, first_present, first_value, to_number


logger = logging.getLogger(__name__)

# Item cost fields, in order of preference
ITEM_COST_FIELDS = ['LastPurchaseCost', 'AverageCost', 'StandardCost']

BALANCE_QTY_FIELDS = ['OnHand', 'Qty']
ITEM_NAME_FIELDS = ['Name', 'ItemName']
LOT_SERIAL_FIELDS = ['LotOrSerialNumber', 'Serial', 'IMEI']
LOT_EXPIRATION_FIELDS = ['ExpirationDate', 'Expiry']
BIN_NAME_FIELDS = ['Name']


def build_index(records: list[dict]) -> dict:
    """Map entity Id -> record. Records without an Id are skipped."""
    return {r['Id']: r for r in records if r.get('Id') is not None}


def resolve_ref(record: dict, ref_field: str, flat_field: str) -> Any:
    """Return the referenced Id, nested ref first, then the flat field."""
    ref = record.get(ref_field)
    if isinstance(ref, dict) and ref.get('Id') is not None:
        return ref['Id']
    return record.get(flat_field)


def lookup(index: dict, key: Any) -> Optional[dict]:
    if key is None:
        return None
    return index.get(key)


def location_name(balance: dict) -> Optional[str]:
    ref = balance.get('LocationRef')
    if isinstance(ref, dict) and ref.get('Name'):
        return ref['Name']
    return balance.get('LocationName') or None


def first_cost(item: Optional[dict]):
    """First cost field present on the item, or None."""
    value = first_present(item, ITEM_COST_FIELDS)
    if value is None:
        return None
    return to_number(value)


def build_rows(
    balances: list[dict],
    lots_by_id: dict,
    items_by_id: dict,
    bins_by_id: dict,
    qtygt: float = 0,
    bin_prefix: str = None,
    location: str = None,
) -> list[NormalizedRow]:
    """
    Join inventory balances with their lot, item and bin records.

    Args:
        balances: InventoryBalance records
        lots_by_id / items_by_id / bins_by_id: indexes from build_index()
        qtygt: keep only balances with quantity strictly greater than this
        bin_prefix: keep only rows whose bin starts with this (case-sensitive)
        location: keep only balances whose location name matches exactly

    Rows with no resolved bin are kept under bin_prefix, and balances
    without a location name are kept under location.
    """
    rows = []

    for balance in balances:
        qty = to_number(first_present(balance, BALANCE_QTY_FIELDS))
        if qty <= qtygt:
            continue

        lot = lookup(lots_by_id, resolve_ref(balance, 'LotOrSerialRef', 'LotOrSerialId'))
        item = lookup(items_by_id, resolve_ref(balance, 'ItemRef', 'ItemId'))
        bin_ = lookup(bins_by_id, resolve_ref(balance, 'BinRef', 'BinId'))

        row = NormalizedRow(
            item=str(first_value(item, ITEM_NAME_FIELDS)),
            serial=str(first_value(lot, LOT_SERIAL_FIELDS)),
            expiration=str(first_value(lot, LOT_EXPIRATION_FIELDS)),
            qty=qty,
            cost=first_cost(item),
            bin=str(first_value(bin_, BIN_NAME_FIELDS)),
        )

        if bin_prefix and row.bin and not row.bin.startswith(bin_prefix):
            continue

        balance_location = location_name(balance)
        if location and balance_location and balance_location != location:
            continue

        rows.append(row)

    logger.info("Built %d rows from %d balances", len(rows), len(balances))
    return rows


def get_live_inventory(client, qtygt: float = 0, bin_prefix: str = None, location: str = None) -> list[NormalizedRow]:
    """
    Pull balances and their lookup tables from OrderTime and join them.

    Balances are read first; lots, items and bins are then fetched in
    parallel since none depends on another.
    """
    types = client.live.types

    balances = client.list_all(types['inventory'])
    lots, items, bins = client.list_many([types['lot_serial'], types['item'], types['bin']])

    return build_rows(
        balances,
        build_index(lots),
        build_index(items),
        build_index(bins),
        qtygt=qtygt,
        bin_prefix=bin_prefix,
        location=location,
    )
