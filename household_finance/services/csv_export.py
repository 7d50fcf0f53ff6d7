import csv
import re
import uuid
from io import StringIO
from typing import Dict, Iterable

from ..models.category import Category
from ..models.expense import Expense
from .aggregation import UNCATEGORIZED_NAME


CSV_HEADER = ["Date", "Name", "Category", "Amount", "Payment Method", "Description"]

_FORMULA_TRIGGERS = ("=", "+", "-", "@", "\t", "\r")
_DANGEROUS_PATTERNS = [
    r"^cmd\s*",
    r"^powershell\s*",
    r"^http[s]?://",
]


def sanitize_csv_value(value: str) -> str:
    """Prefix values a spreadsheet would evaluate as formulas with a tab."""
    if not value or value.strip() == "":
        return ""
    value = value.strip()
    if value.startswith(_FORMULA_TRIGGERS):
        return "\t" + value
    for pattern in _DANGEROUS_PATTERNS:
        if re.match(pattern, value, re.IGNORECASE):
            return "\t" + value
    return value


def expenses_to_csv(expenses: Iterable[Expense], categories: Dict[uuid.UUID, Category]) -> str:
    """Render expenses as CSV, resolving category names through ``categories`` (id -> Category)."""
    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_HEADER)
    for expense in expenses:
        category = categories.get(expense.category_id)
        writer.writerow(
            [
                expense.expense_date.isoformat(),
                sanitize_csv_value(expense.name),
                sanitize_csv_value(category.name if category is not None else UNCATEGORIZED_NAME),
                f"{expense.amount:.2f}",
                sanitize_csv_value(expense.payment_method),
                sanitize_csv_value(expense.description or ""),
            ]
        )
    return buffer.getvalue()
