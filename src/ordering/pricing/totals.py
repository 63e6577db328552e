"""Order total computation.

Line amounts and sums are carried as exact ``Decimal`` values. Only the final
``total_amount`` is rounded (two places, half-up), so rounding never
accumulates across lines.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from protean.exceptions import ValidationError

CENTS = Decimal("0.01")
HUNDRED = Decimal(100)


@dataclass(frozen=True)
class LineInput:
    unit_price: float
    quantity: int
    discount_percent: float = 0.0


@dataclass(frozen=True)
class LineTotals:
    unit_price: Decimal
    quantity: int
    discount_percent: Decimal
    subtotal: Decimal
    item_discount_amount: Decimal
    after_item_discount: Decimal


@dataclass(frozen=True)
class OrderTotals:
    lines: tuple[LineTotals, ...]
    order_discount_percent: Decimal
    subtotal: Decimal
    total_after_item_discounts: Decimal
    order_discount_amount: Decimal
    total_amount: Decimal

    @property
    def total_savings(self) -> Decimal:
        return self.subtotal - self.total_amount

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)


def _to_decimal(value) -> Decimal:
    # str() first so floats like 0.1 keep their printed value
    return Decimal(str(value))


def _check_percent(value, field: str) -> Decimal:
    percent = _to_decimal(value)
    if percent < 0 or percent > HUNDRED:
        raise ValidationError({field: [f"Discount must be between 0 and 100, got {value}"]})
    return percent


def compute_line(line: LineInput) -> LineTotals:
    if isinstance(line.quantity, bool) or not isinstance(line.quantity, int):
        raise ValidationError({"quantity": [f"Quantity must be a whole number, got {line.quantity!r}"]})
    if line.quantity < 1:
        raise ValidationError({"quantity": ["Quantity must be at least 1"]})

    unit_price = _to_decimal(line.unit_price)
    if unit_price < 0:
        raise ValidationError({"unit_price": ["Unit price cannot be negative"]})

    discount_percent = _check_percent(line.discount_percent, "discount_percent")

    subtotal = unit_price * line.quantity
    item_discount_amount = subtotal * discount_percent / HUNDRED
    return LineTotals(
        unit_price=unit_price,
        quantity=line.quantity,
        discount_percent=discount_percent,
        subtotal=subtotal,
        item_discount_amount=item_discount_amount,
        after_item_discount=subtotal - item_discount_amount,
    )


def compute_totals(lines, order_discount_percent: float = 0.0) -> OrderTotals:
    """Compose per-line results into order-level totals."""
    if not lines:
        raise ValidationError({"lines": ["Order must have at least one line"]})

    order_percent = _check_percent(order_discount_percent, "order_discount_percent")
    line_totals = tuple(compute_line(line) for line in lines)

    subtotal = sum((lt.subtotal for lt in line_totals), Decimal(0))
    after_items = sum((lt.after_item_discount for lt in line_totals), Decimal(0))
    order_discount_amount = after_items * order_percent / HUNDRED
    total_amount = (after_items - order_discount_amount).quantize(CENTS, rounding=ROUND_HALF_UP)

    return OrderTotals(
        lines=line_totals,
        order_discount_percent=order_percent,
        subtotal=subtotal,
        total_after_item_discounts=after_items,
        order_discount_amount=order_discount_amount,
        total_amount=total_amount,
    )
