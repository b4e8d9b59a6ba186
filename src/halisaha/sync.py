from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional
import logging

from .calendar_logic import (
    ROLLING_DAYS, format_date_string, month_dates, rolling_dates, subscriptions_for_day,
)
from .models import Appointment, Subscription, STATUS_BOOKED


@dataclass
class SyncResult:
    created: int = 0
    skipped: int = 0
    per_date: Dict[str, int] = field(default_factory=dict)


def _appointment_for(sub: Subscription, date_string: str) -> Appointment:
    return Appointment(
        pitch_id=sub.pitch_id,
        date_string=date_string,
        time_slot=sub.time_slot,
        customer_name=sub.customer_name,
        phone_number=sub.customer_phone,
        deposit='0',
        is_subscription=True,
        status=STATUS_BOOKED,
    )


def sync_subscriptions(db, subscriptions: List[Subscription], dates: Iterable[date]) -> SyncResult:
    """
    Überträgt die aktiven Abo-Regeln als Termine in den Kalender.

    Tag für Tag werden die passenden Abos gesucht; pro Tag wird einmal der
    Bestand gelesen und ein Termin nur angelegt, wenn Platz+Slot noch frei
    sind. Ein zweiter Lauf über denselben Zeitraum legt nichts mehr an.
    Fehler des Stores brechen den Lauf ab, bereits angelegte Termine bleiben.
    """
    result = SyncResult()
    dates = list(dates)
    logging.info(f"Sync gestartet: {len(subscriptions)} Abos, {len(dates)} Tage")
    try:
        for d in dates:
            day_subs = subscriptions_for_day(subscriptions, d)
            if not day_subs:
                continue
            date_str = format_date_string(d)
            existing = db.list_appointments(date_str)
            booked = {(a.pitch_id, a.time_slot) for a in existing}
            for sub in day_subs:
                key = (sub.pitch_id, sub.time_slot)
                if key in booked:
                    result.skipped += 1
                    continue
                db.create_appointment(_appointment_for(sub, date_str))
                booked.add(key)
                result.created += 1
                result.per_date[date_str] = result.per_date.get(date_str, 0) + 1
                logging.debug(f"Abo-Termin angelegt: {date_str} {sub.time_slot} {sub.pitch_id} {sub.customer_name}")
    except Exception as e:
        logging.error(f"Sync abgebrochen nach {result.created} neuen Terminen: {e}")
        raise
    logging.info(f"Sync fertig: {result.created} neu, {result.skipped} schon belegt")
    return result


def sync_rolling(db, subscriptions: List[Subscription], start: Optional[date] = None,
                 days: int = ROLLING_DAYS) -> SyncResult:
    return sync_subscriptions(db, subscriptions, rolling_dates(start, days))


def sync_month(db, subscriptions: List[Subscription], month_index: int,
               year: Optional[int] = None) -> SyncResult:
    return sync_subscriptions(db, subscriptions, month_dates(month_index, year))
