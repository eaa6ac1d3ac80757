"""
Transaction money derivation and ID formatting.
Fees are percentages of the base amount; derived legs are rounded half-up to whole units.
"""
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, NamedTuple, Optional, Union

Number = Union[Decimal, int, float, str, None]

TRANSACTION_ID_PREFIX = "Ozi"
SEQUENCE_WIDTH = 3


class DerivedAmounts(NamedTuple):
    pos_amt: Decimal
    cust_amt: Decimal
    profit: Decimal


def to_decimal(value: Number) -> Decimal:
    """Coerce form input to Decimal, falling back to zero."""
    if value is None or value == "":
        return Decimal("0")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")


def round_amount(value: Decimal) -> Decimal:
    return value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def derive_amounts(amount: Number, pos_fee: Number, cust_fee: Number) -> DerivedAmounts:
    """
    pos_amt = round(A * P / 100), cust_amt = round(A * C / 100),
    profit = cust_amt - pos_amt.
    """
    base = to_decimal(amount)
    pos_amt = round_amount(base * to_decimal(pos_fee) / Decimal("100"))
    cust_amt = round_amount(base * to_decimal(cust_fee) / Decimal("100"))
    return DerivedAmounts(pos_amt=pos_amt, cust_amt=cust_amt, profit=cust_amt - pos_amt)


def transaction_id_prefix(target: Union[date, datetime]) -> str:
    return f"{TRANSACTION_ID_PREFIX}-{target.year}-{target.month:02d}-"


def parse_sequence(transaction_id: str, prefix: str) -> Optional[int]:
    if not transaction_id.startswith(prefix):
        return None
    suffix = transaction_id[len(prefix):]
    if not suffix.isdigit():
        return None
    return int(suffix)


def next_transaction_id(target: Union[date, datetime], existing_ids: Iterable[str]) -> str:
    """Next ID in the year-month bucket of ``target`` given the IDs already used there."""
    prefix = transaction_id_prefix(target)
    max_seq = 0
    for existing in existing_ids:
        seq = parse_sequence(existing, prefix)
        if seq is not None and seq > max_seq:
            max_seq = seq
    return f"{prefix}{max_seq + 1:0{SEQUENCE_WIDTH}d}"
