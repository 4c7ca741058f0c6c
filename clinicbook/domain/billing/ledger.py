"""
Invoice ledger arithmetic.

Pure functions shared by the billing service and its tests. Amounts are
``Decimal`` values in currency units with two decimal places.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional

from ...config import INVOICE_NUMBER_PREFIX
from ...models_invoice import PaymentStatus
from ...shared.validators import CENT

ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """Coerce a stored or computed amount to a cent-precision Decimal"""
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(CENT)


def line_total(amount, quantity: int) -> Decimal:
    return to_money(to_money(amount) * quantity)


def compute_total(items: Iterable) -> Decimal:
    """
    Sum of amount × quantity over invoice items.

    Accepts anything exposing ``amount`` and ``quantity`` (ORM rows or
    request schemas). An empty collection totals zero.
    """
    return sum((line_total(item.amount, item.quantity) for item in items), ZERO)


def remaining_balance(total_amount, paid_amount) -> Decimal:
    return to_money(total_amount) - to_money(paid_amount)


def derive_payment_status(paid_amount, total_amount) -> PaymentStatus:
    """
    Payment status implied by the amounts.

    Nothing paid is PENDING, paid in full is PAID, anything in between is
    PARTIALLY_PAID. CANCELLED is never derived; it is set explicitly.
    """
    paid = to_money(paid_amount)
    if paid == ZERO:
        return PaymentStatus.PENDING
    if paid >= to_money(total_amount):
        return PaymentStatus.PAID
    return PaymentStatus.PARTIALLY_PAID


def generate_invoice_number(
    now: Optional[datetime] = None,
    token: Optional[str] = None,
    prefix: str = INVOICE_NUMBER_PREFIX,
) -> str:
    """
    Generate a unique invoice number, e.g. ``INV-20261019143005-9F2C41AB``.

    The UTC timestamp keeps numbers roughly sortable and the random token
    makes collisions between concurrent requests practically impossible.
    """
    now = now or datetime.now(timezone.utc)
    token = token or uuid.uuid4().hex[:8].upper()
    return f"{prefix}-{now.strftime('%Y%m%d%H%M%S')}-{token}"
