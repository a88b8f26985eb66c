"""Month arithmetic shared by the aggregation endpoints and the balance generator.

Months travel over the API as ``YYYY-MM`` strings and are handled internally
as the ``date`` of their first day.
"""
import calendar
from datetime import date
from typing import List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from gestao_financeira.core.timezone_utils import today_in_brazil

MESES = (
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
)
MESES_ABREV = tuple(m[:3] for m in MESES)


def parse_month(value: str) -> date:
    """Parse ``YYYY-MM`` into the first day of that month.

    Raises ValueError for anything else (``2025-13``, ``2025/01``, ``''``).
    """
    try:
        year_s, month_s = value.strip().split("-")
        year, month = int(year_s), int(month_s)
        return date(year, month, 1)
    except (AttributeError, TypeError, ValueError):
        raise ValueError(f"mês inválido: {value!r} (use AAAA-MM)")


def format_month(first_day: date) -> str:
    return first_day.strftime("%Y-%m")


def month_start(d: date) -> date:
    return d.replace(day=1)


def month_end(d: date) -> date:
    return d.replace(day=calendar.monthrange(d.year, d.month)[1])


def month_range(d: date) -> Tuple[date, date]:
    """Inclusive (first day, last day) of the month containing ``d``."""
    return month_start(d), month_end(d)


def year_range(d: date) -> Tuple[date, date]:
    return date(d.year, 1, 1), date(d.year, 12, 31)


def add_months(d: date, n: int) -> date:
    return d + relativedelta(months=n)


def current_month(today: Optional[date] = None) -> date:
    return month_start(today or today_in_brazil())


def month_label(d: date) -> str:
    """'novembro 2025'"""
    return f"{MESES[d.month - 1]} {d.year}"


def month_short_label(d: date) -> str:
    """'nov'"""
    return MESES_ABREV[d.month - 1]


def last_months(n: int, today: Optional[date] = None) -> List[date]:
    """First days of the last ``n`` months, oldest first, ending at the current month."""
    current = current_month(today)
    return [add_months(current, -i) for i in range(n - 1, -1, -1)]


def month_options(n: int, today: Optional[date] = None) -> List[dict]:
    """Select options newest first, as the month pickers list them."""
    return [
        {"value": format_month(d), "label": month_label(d)}
        for d in reversed(last_months(n, today))
    ]
