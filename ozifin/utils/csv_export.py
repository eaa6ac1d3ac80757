"""
CSV export of the transaction list.
UTF-8 BOM so spreadsheet apps pick the encoding; money as plain numbers.
"""
import csv
import unicodedata
from decimal import Decimal
from io import StringIO
from typing import Iterable

from ozifin.models import Transaction

UTF8_BOM = "﻿"

HEADERS = ["ID", "Date", "Sale", "Agency", "Customer", "Bank", "Type", "Amount", "Profit", "Status"]


def plain_number(value) -> str:
    """1000000.00 -> '1000000', 1234.50 -> '1234.5'"""
    if value is None:
        return "0"
    number = Decimal(str(value))
    if number == number.to_integral_value():
        return str(int(number))
    return format(number.normalize(), "f")


def flat_text(value) -> str:
    """Replace control characters with spaces so each row stays on one line"""
    if not value:
        return ""
    return "".join(" " if unicodedata.category(ch) == "Cc" else ch for ch in str(value))


def transactions_to_csv(transactions: Iterable[Transaction]) -> str:
    output = StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(HEADERS)
    for t in transactions:
        writer.writerow([
            t.id,
            t.timestamp.strftime("%d/%m/%Y") if t.timestamp else "",
            flat_text(t.sale),
            flat_text(t.agency),
            flat_text(t.customer),
            flat_text(t.bank),
            t.type,
            plain_number(t.amount),
            plain_number(t.profit),
            t.status,
        ])
    return UTF8_BOM + output.getvalue()
