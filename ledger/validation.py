from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from errors import InvalidInput

MAX_MONEY = Decimal('9999999999.99')
MAX_ID = 2 ** 63 - 1
CENTS = Decimal('0.01')


def require_text(value, field, max_length):
    """Return value stripped; reject missing, blank or over-long strings."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f'{field} is required.')
    value = value.strip()
    if len(value) > max_length:
        raise InvalidInput(f'{field} must be at most {max_length} characters.')
    return value


def parse_money(value, field, allow_zero):
    """Parse a monetary amount into a Decimal with at most two decimal places.

    Out-of-range or over-precise values are rejected rather than rounded.
    """
    if value is None or isinstance(value, bool):
        raise InvalidInput(f'{field} must be a number.')
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidInput(f'{field} must be a number.')
    if not amount.is_finite():
        raise InvalidInput(f'{field} must be a number.')
    if amount < 0 or (amount == 0 and not allow_zero):
        bound = 'zero or more' if allow_zero else 'greater than zero'
        raise InvalidInput(f'{field} must be {bound}.')
    if amount > MAX_MONEY:
        raise InvalidInput(f'{field} is too large.')
    if amount != amount.quantize(CENTS):
        raise InvalidInput(f'{field} may have at most two decimal places.')
    # '-0' passes the sign check; store it as plain zero
    return amount.quantize(CENTS).copy_abs()


def parse_date(value, field='expense_date'):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip(), '%Y-%m-%d').date()
    except (TypeError, ValueError):
        raise InvalidInput(f'{field} must be a date in YYYY-MM-DD format.')


def parse_id(value, field):
    if isinstance(value, (bool, float)):
        raise InvalidInput(f'{field} must be an integer.')
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise InvalidInput(f'{field} must be an integer.')
    if not 1 <= value <= MAX_ID:
        raise InvalidInput(f'{field} is out of range.')
    return value
