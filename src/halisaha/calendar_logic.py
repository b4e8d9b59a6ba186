from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from dateutil.relativedelta import relativedelta

from .models import Subscription

DATE_FORMAT = "%d.%m.%y"

# Öffnungszeiten 14:00 bis 01:00, letzter Slot heißt "00.00"
TIME_SLOTS = [f"{h:02d}.00" for h in range(14, 24)] + ["00.00"]

ROLLING_DAYS = 28


def format_date_string(d: date) -> str:
    """date -> 'DD.MM.YY' (Format der Dokumente im Store)."""
    return d.strftime(DATE_FORMAT)


def parse_date_string(s: str) -> date:
    """'DD.MM.YY' -> date. Wirft ValueError bei falschem Format."""
    return datetime.strptime(s.strip(), DATE_FORMAT).date()


def is_valid_time_slot(label: str) -> bool:
    return label in TIME_SLOTS


def store_weekday(d: date) -> int:
    # Python: Montag=0, Store: Sonntag=0
    return (d.weekday() + 1) % 7


def store_month(d: date) -> int:
    return d.month - 1


def rolling_dates(start: Optional[date] = None, days: int = ROLLING_DAYS) -> List[date]:
    """`days` aufeinanderfolgende Kalendertage ab `start` (Standard: heute)."""
    if days < 1:
        raise ValueError(f"days must be positive, got {days}")
    start = start or date.today()
    return [start + timedelta(days=i) for i in range(days)]


def month_dates(month_index: int, year: Optional[int] = None) -> List[date]:
    """Alle Tage des Monats `month_index` (0=Januar) im Jahr `year` (Standard: aktuelles Jahr)."""
    if not 0 <= month_index <= 11:
        raise ValueError(f"month index must be 0..11, got {month_index}")
    year = year or date.today().year
    first = date(year, month_index + 1, 1)
    last = first + relativedelta(months=1, days=-1)
    return [first + timedelta(days=i) for i in range((last - first).days + 1)]


def subscription_applies(sub: Subscription, d: date) -> bool:
    if not sub.active:
        return False
    if store_weekday(d) not in sub.days_of_week:
        return False
    return not sub.months or store_month(d) in sub.months


def subscriptions_for_day(subscriptions: Iterable[Subscription], d: date) -> List[Subscription]:
    return [s for s in subscriptions if subscription_applies(s, d)]


def matching_dates(sub: Subscription, dates: Iterable[date]) -> List[date]:
    """Alle Tage aus `dates`, an denen die Abo-Regel greift."""
    return [d for d in dates if subscription_applies(sub, d)]
