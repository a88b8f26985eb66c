from datetime import date, datetime, timezone, timedelta
try:
    from zoneinfo import ZoneInfo
    BRAZIL_TZ = ZoneInfo("America/Sao_Paulo")
except Exception:
    # tzdata missing (e.g. slim Windows installs): fixed -03:00 offset
    BRAZIL_TZ = timezone(timedelta(hours=-3))


def now_in_brazil() -> datetime:
    return datetime.now(BRAZIL_TZ)


def today_in_brazil() -> date:
    """Calendar day in America/Sao_Paulo.

    Business dates (due dates, "current month") are local dates; using the
    server's UTC day would flip the month three hours early.
    """
    return now_in_brazil().date()


def days_overdue(due: date, today: date = None) -> int:
    """Whole days since `due`, never negative."""
    today = today or today_in_brazil()
    delta = (today - due).days
    return delta if delta > 0 else 0
