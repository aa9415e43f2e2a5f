"""
Token Amount Module

Fixed-width unsigned token quantities. Amounts are plain Python ints kept
inside [0, 2**bits - 1]; every increment and decrement is checked so that
nothing ever wraps silently. NEVER uses float for token values.
"""

from typing import Any

from .errors import AmountOverflow, InvalidAmount

# Width of the unsigned integer that backs a balance
AMOUNT_BITS = 128


def max_amount_for_bits(bits: int) -> int:
    """Largest amount representable with an unsigned integer of `bits` width"""
    if bits <= 0:
        raise ValueError(f"Amount width must be positive, got {bits}")
    return (1 << bits) - 1


MAX_AMOUNT = max_amount_for_bits(AMOUNT_BITS)


def validate_amount(value: Any, max_amount: int = MAX_AMOUNT) -> int:
    """
    Validate a token amount supplied by a caller

    Args:
        value: Candidate amount
        max_amount: Upper bound of the ledger's amount type

    Returns:
        The value, unchanged

    Raises:
        InvalidAmount: If value is not an int or lies outside [0, max_amount]
    """
    # bool is an int subclass but never a meaningful quantity
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmount(f"Amount must be an integer, got {type(value).__name__}")

    if value < 0:
        raise InvalidAmount(f"Amount cannot be negative: {value}")

    if value > max_amount:
        raise InvalidAmount(f"Amount {value} exceeds maximum {max_amount}")

    return value


def checked_add(current: int, increment: int, max_amount: int = MAX_AMOUNT) -> int:
    """Add two amounts, raising AmountOverflow instead of wrapping"""
    total = current + increment
    if total > max_amount:
        raise AmountOverflow(current, increment, max_amount)
    return total


def checked_sub(current: int, decrement: int) -> int:
    """
    Subtract two amounts

    Callers compare before subtracting so they can raise the precise
    domain error; this guard only catches a missed comparison.
    """
    if decrement > current:
        raise ValueError(f"Amount underflow: {current} - {decrement}")
    return current - decrement


def amount_to_string(value: int) -> str:
    """Serialize an amount for storage (JSON numbers lose precision past 2**53)"""
    return str(value)


def amount_from_string(raw: str) -> int:
    """Deserialize an amount written by amount_to_string"""
    return int(raw)
