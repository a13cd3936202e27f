# core/utils/utils.py
from datetime import datetime


def format_patient_code(pk):
    """PID-0001 style display code"""
    return f'PID-{int(pk):04d}'


def parse_prefixed_id(value, prefix):
    """
    Accept both raw ids and display codes ('PID-0007', 'INV-12').
    Returns None when the value is not a positive integer.
    """
    text = str(value).strip().upper()
    if text.startswith(prefix.upper()):
        text = text[len(prefix):]
    try:
        number = int(text)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def next_sequence_number(last_code, separator='-'):
    """Return the integer following the numeric suffix of ``last_code``"""
    if not last_code:
        return 1
    return int(last_code.split(separator)[-1]) + 1


def month_prefix(prefix, when=None):
    when = when or datetime.now()
    return f"{prefix}-{when.strftime('%Y%m')}-"
