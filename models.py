import sys
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple

ZERO_AMOUNT = Decimal("0")
# amounts beyond double precision range are rejected
MAX_AMOUNT = Decimal(sys.float_info.max)


class DecodeError(ValueError):
    """ Raised when a submitted receipt body cannot be turned into a Receipt """


@dataclass(frozen=True)
class PurchaseItem:
    short_description: str
    price: Decimal


@dataclass(frozen=True)
class Receipt:
    retailer: str
    purchase_date: Optional[str]
    purchase_time: Optional[str]
    items: Tuple[PurchaseItem, ...]
    total: Decimal


def parse_amount(value, field: str) -> Decimal:
    """ Parses a decimal amount transmitted as a JSON string """
    if value is None:
        return ZERO_AMOUNT
    if not isinstance(value, str):
        raise DecodeError(f"Error: invalid {field} format")
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise DecodeError(f"Error: invalid {field} ({value})")
    if not amount.is_finite() or amount.copy_abs() > MAX_AMOUNT:
        raise DecodeError(f"Error: invalid {field} ({value})")
    if not amount:
        return ZERO_AMOUNT
    return amount


def parse_text(value, field: str, default: Optional[str] = "") -> Optional[str]:
    if value is None:
        return default
    if not isinstance(value, str):
        raise DecodeError(f"Error: invalid {field} format")
    return value


def parse_item(item) -> PurchaseItem:
    """ Converts one element of the items list """
    if not isinstance(item, dict):
        raise DecodeError("Error: invalid receipt item format")
    return PurchaseItem(
        short_description=parse_text(item.get("shortDescription"), "shortDescription"),
        price=parse_amount(item.get("price"), "price"),
    )


def parse_receipt(payload) -> Receipt:
    """
    Builds a Receipt from a decoded JSON document. Only what scoring needs
    is checked: missing fields fall back to empty values, while fields of the
    wrong type or amounts that are not decimal strings raise DecodeError.
    Date and time text is kept as-is; the scoring rules decide whether it parses.
    A JSON null document decodes to the empty receipt.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise DecodeError("Error: receipt must be a JSON object")

    items = payload.get("items")
    if items is None:
        items = []
    if not isinstance(items, list):
        raise DecodeError("Error: invalid receipt items list format")

    return Receipt(
        retailer=parse_text(payload.get("retailer"), "retailer"),
        purchase_date=parse_text(payload.get("purchaseDate"), "purchaseDate", default=None),
        purchase_time=parse_text(payload.get("purchaseTime"), "purchaseTime", default=None),
        items=tuple(parse_item(item) for item in items),
        total=parse_amount(payload.get("total"), "total"),
    )
