# apps/billing/calculations.py
"""
Invoice arithmetic.

Everything is computed with exact Decimals; only the reported figures are
rounded (half-up, 2 places). ``total`` is rounded from the exact taxable
amount plus the exact tax, never from already-rounded parts.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

# GST is fixed by law for consultations; not configurable per clinic
GST_RATE = Decimal('0.18')

CENT = Decimal('0.01')
ZERO = Decimal('0')
HUNDRED = Decimal('100')


def money(value):
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value, name='value'):
    if value is None or value == '':
        return ZERO
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"{name} must be a number")
    if not result.is_finite():
        raise ValueError(f"{name} must be a number")
    return result


def _line_charge(item):
    if isinstance(item, dict):
        return to_decimal(item.get('unit_charge'), 'unit_charge')
    return to_decimal(item, 'unit_charge')


def compute_invoice_totals(line_items=(), consultation_fee=0, lab_charges=0,
                           medicine_charges=0, discount_percent=0):
    """
    Compute the figures printed on an invoice.

    ``line_items`` may be numbers or dicts carrying ``unit_charge``.
    Raises ValueError for negative charges or a discount outside 0-100.
    """
    charges = {
        'consultation_fee': to_decimal(consultation_fee, 'consultation_fee'),
        'lab_charges': to_decimal(lab_charges, 'lab_charges'),
        'medicine_charges': to_decimal(medicine_charges, 'medicine_charges'),
    }
    item_charges = [_line_charge(item) for item in line_items or ()]
    discount = to_decimal(discount_percent, 'discount_percent')

    for name, value in charges.items():
        if value < ZERO:
            raise ValueError(f"{name} cannot be negative")
    if any(charge < ZERO for charge in item_charges):
        raise ValueError("unit_charge cannot be negative")
    if not ZERO <= discount <= HUNDRED:
        raise ValueError("discount_percent must be between 0 and 100")

    subtotal = sum(item_charges, ZERO) + sum(charges.values(), ZERO)
    discount_amount = subtotal * discount / HUNDRED
    taxable_amount = subtotal - discount_amount
    tax = taxable_amount * GST_RATE
    total = taxable_amount + tax

    return {
        'subtotal': money(subtotal),
        'discount_amount': money(discount_amount),
        'taxable_amount': money(taxable_amount),
        'tax': money(tax),
        'total': money(total),
    }
