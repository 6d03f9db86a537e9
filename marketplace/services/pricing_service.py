"""
Pricing engine.

Public price = business price plus the platform fee, rounded to whole
currency units. At sale time each line is split into what the customer
pays, what the business receives and what the platform keeps.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, ROUND_CEILING
from typing import Union

from marketplace.exceptions import InvalidPriceError

Number = Union[Decimal, int, str]

WHOLE_UNIT = Decimal('1')


@dataclass(frozen=True)
class LineSplit:
    """Money split for one order line."""
    business_payout: Decimal
    platform_fee: Decimal
    total: Decimal


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, float):
        # floats carry binary noise; go through str like the rest of the app
        value = str(value)
    return Decimal(value)


def compute_public_price(business_price: Number, fee_percentage: Number) -> Decimal:
    """
    Compute what the buyer pays per unit.

    Raises:
        InvalidPriceError: business price is not positive or the fee is negative
    """
    price = _to_decimal(business_price)
    fee = _to_decimal(fee_percentage)

    if price <= 0:
        raise InvalidPriceError()
    if fee < 0:
        raise InvalidPriceError('Platform fee percentage cannot be negative')

    public_price = price + price * fee / Decimal('100')
    rounded = public_price.quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)
    if rounded < price:
        # fractional prices with a small fee must not round below the business price
        rounded = public_price.quantize(WHOLE_UNIT, rounding=ROUND_CEILING)
    return rounded


def compute_line_split(unit_business_price: Number, unit_public_price: Number, quantity: int) -> LineSplit:
    """Split a line into business payout and platform fee. Exact, no rounding."""
    total = _to_decimal(unit_public_price) * quantity
    business_payout = _to_decimal(unit_business_price) * quantity
    return LineSplit(
        business_payout=business_payout,
        platform_fee=total - business_payout,
        total=total,
    )
