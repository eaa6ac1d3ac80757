"""
Monthly dashboard figures computed from the month's visible transactions.
"""
import calendar
from decimal import Decimal
from typing import Any, Dict, List

from ozifin.models import Transaction

RECENT_COUNT = 5


def _money(value) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


def monthly_summary(transactions: List[Transaction], year: int, month: int) -> Dict[str, Any]:
    """
    Totals, average profit and a per-day series covering every day of the month.
    ``transactions`` is expected newest first; the first five are the recent list.
    """
    total_volume = sum((_money(t.amount) for t in transactions), Decimal("0"))
    total_profit = sum((_money(t.profit) for t in transactions), Decimal("0"))
    count = len(transactions)
    avg_profit = total_profit / count if count else Decimal("0")

    days = calendar.monthrange(year, month)[1]
    volume = [Decimal("0")] * days
    profit = [Decimal("0")] * days
    for t in transactions:
        day = t.timestamp.day - 1
        volume[day] += _money(t.amount)
        profit[day] += _money(t.profit)

    return {
        "month": month,
        "year": year,
        "stats": {
            "total_volume": float(total_volume),
            "total_profit": float(total_profit),
            "transaction_count": count,
            "avg_profit": float(avg_profit),
        },
        "recent": transactions[:RECENT_COUNT],
        "chart": {
            "labels": [str(day) for day in range(1, days + 1)],
            "volume": [float(v) for v in volume],
            "profit": [float(p) for p in profit],
        },
    }
