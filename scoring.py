import logging
import math
import re
from datetime import datetime
from decimal import Decimal, getcontext, localcontext
from typing import Optional

from models import Receipt

logger = logging.getLogger(__name__)

RECEIPT_DATE_FORMAT = '%Y-%m-%d'
RECEIPT_TIME_FORMAT = '%H:%M'
RECEIPT_DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
RECEIPT_TIME_PATTERN = re.compile(r"[0-9]{1,2}:[0-9]{2}")
RETAILER_NAME_FILTER = r"[^a-zA-Z0-9]+"
POINTS_RETAILER_NAME_ALPHANUM_CHARACTER = 1
POINTS_TOTAL_HAS_NO_CENTS = 50
POINTS_TOTAL_IS_MULTIPLE_OF_QUARTERS = 25
POINTS_ITEMS_COUNT = 5
POINTS_ITEM_DESCRIPTION = Decimal("0.2")
POINTS_ODD_PURCHASE_DAY = 6
POINTS_VALID_PURCHASE_HOUR = 10
REWARD_ITEM_DESCRIPTION_LENGTH_FACTOR = 3
REWARD_HOUR_START = 14
REWARD_HOUR_END = 16
WHOLE_DOLLAR = Decimal("1")
QUARTER_DOLLAR = Decimal("0.25")


class ScoringError(ValueError):
    """ Raised when a receipt cannot be scored """


def score_retailer(retailer_name: str) -> int:
    """ Counts the ASCII letters and digits in the retailer name """
    try:
        name_filter = re.compile(RETAILER_NAME_FILTER)
    except re.error as e:
        raise ScoringError(f"Error: cannot build retailer name filter ({e})")
    return len(name_filter.sub("", retailer_name)) * POINTS_RETAILER_NAME_ALPHANUM_CHARACTER


def exact_context(amount: Decimal):
    """
    Decimal context with enough digits that multiplying or dividing the amount
    by a short constant is never rounded.
    """
    context = getcontext().copy()
    context.prec = max(context.prec, len(amount.as_tuple().digits) + 4)
    return localcontext(context)


def is_multiple_of(amount: Decimal, unit: Decimal) -> bool:
    with exact_context(amount):
        quotient = amount / unit
        return quotient == quotient.to_integral_value()


def score_total(total: Decimal) -> int:
    """ Awards the round-dollar and quarter-multiple bonuses for positive totals """
    points = 0
    if total <= 0:
        return points
    if is_multiple_of(total, WHOLE_DOLLAR):
        points += POINTS_TOTAL_HAS_NO_CENTS
    if is_multiple_of(total, QUARTER_DOLLAR):
        points += POINTS_TOTAL_IS_MULTIPLE_OF_QUARTERS
    return points


def description_length(description: str) -> int:
    """ Length of the trimmed description in UTF-8 bytes """
    return len(description.strip().encode("utf-8"))


def score_items(items) -> int:
    """
    Awards points for every pair of items, plus a price-based bonus for each
    item whose trimmed description length is a multiple of three.
    """
    points = (len(items) // 2) * POINTS_ITEMS_COUNT
    for item in items:
        if description_length(item.short_description) % REWARD_ITEM_DESCRIPTION_LENGTH_FACTOR == 0:
            with exact_context(item.price):
                points += math.ceil(item.price * POINTS_ITEM_DESCRIPTION)
    return points


def parse_date_time(value: Optional[str], fmt: str, pattern) -> Optional[datetime]:
    """ Parses zero-padded date or time text; anything else yields None """
    if value is None:
        return None
    if not pattern.fullmatch(value):
        logger.debug("Ignoring malformed value %r for format %s", value, fmt)
        return None
    try:
        return datetime.strptime(value, fmt)
    except ValueError:
        logger.debug("Ignoring unparsable value %r for format %s", value, fmt)
        return None


def score_purchase_date(date: Optional[str]) -> int:
    """ Awards the odd-day bonus; absent or invalid dates score nothing """
    date_obj = parse_date_time(date, RECEIPT_DATE_FORMAT, RECEIPT_DATE_PATTERN)
    if date_obj is not None and date_obj.day % 2 != 0:
        return POINTS_ODD_PURCHASE_DAY
    return 0


def score_purchase_time(time: Optional[str]) -> int:
    """
    Awards the afternoon bonus for purchases strictly after 14:00 and strictly
    before 16:00. Exactly 14:00 does not qualify.
    """
    time_obj = parse_date_time(time, RECEIPT_TIME_FORMAT, RECEIPT_TIME_PATTERN)
    if time_obj is None:
        return 0
    if time_obj.hour == REWARD_HOUR_START and time_obj.minute == 0:
        return 0
    if REWARD_HOUR_START <= time_obj.hour < REWARD_HOUR_END:
        return POINTS_VALID_PURCHASE_HOUR
    return 0


def calculate_points(receipt: Receipt) -> int:
    """ Calculates points earned from each component of the receipt """
    breakdown = {
        "retailer": score_retailer(receipt.retailer),
        "total": score_total(receipt.total),
        "items": score_items(receipt.items),
        "purchaseDate": score_purchase_date(receipt.purchase_date),
        "purchaseTime": score_purchase_time(receipt.purchase_time),
    }
    logger.debug("Points breakdown: %s", breakdown)
    return sum(breakdown.values())
