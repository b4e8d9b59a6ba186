from collections import Counter
from datetime import date
from typing import Dict, List, Optional, Sequence

from halisaha.calendar_logic import TIME_SLOTS, format_date_string, parse_date_string
from halisaha.models import PITCHES, STATUS_BOOKED, Appointment

DEFAULT_HOURLY_PRICE = 1500


def _app_date(app: Appointment) -> Optional[date]:
    try:
        return parse_date_string(app.date_string)
    except ValueError:
        return None


def appointments_in_month(appointments: List[Appointment], month_index: int, year: int) -> List[Appointment]:
    """Filtert die komplette Terminliste auf einen Monat (0=Januar)."""
    out = []
    for app in appointments:
        d = _app_date(app)
        if d is not None and d.year == year and d.month == month_index + 1:
            out.append(app)
    return out


def daily_occupancy(appointments: List[Appointment], day: date,
                    pitches: Sequence[str] = tuple(PITCHES),
                    slots: Sequence[str] = TIME_SLOTS) -> Dict[str, int]:
    """
    Belegung eines Tages:
      capacity     : Plätze x Slots
      booked       : belegte Slots
      empty        : freie Slots
      subscription : davon aus Abos
    Stornierte Termine zählen nicht.
    """
    date_str = format_date_string(day)
    todays = [a for a in appointments
              if a.status == STATUS_BOOKED and a.date_string == date_str
              and a.pitch_id in pitches and a.time_slot in slots]
    capacity = len(pitches) * len(slots)
    booked = len({(a.pitch_id, a.time_slot) for a in todays})
    return {
        'capacity': capacity,
        'booked': booked,
        'empty': capacity - booked,
        'subscription': sum(1 for a in todays if a.is_subscription),
    }


def summarize_bookings(appointments: List[Appointment], day: date,
                       hourly_price: int = DEFAULT_HOURLY_PRICE,
                       pitches: Sequence[str] = tuple(PITCHES)) -> Dict[str, int]:
    occ = daily_occupancy(appointments, day, pitches)
    total = sum(1 for a in appointments if a.status == STATUS_BOOKED)
    return {
        'total_bookings': total,
        'subscription_count': occ['subscription'],
        'booked_slots': occ['booked'],
        'empty_slots': occ['empty'],
        'revenue': total * hourly_price,
    }


def busiest_slots(appointments: List[Appointment], top: int = 3) -> List[tuple]:
    counts = Counter(a.time_slot for a in appointments if a.status == STATUS_BOOKED)
    return sorted(counts.items(), key=lambda kv: (-kv[1], TIME_SLOTS.index(kv[0]) if kv[0] in TIME_SLOTS else 99))[:top]


def count_by_weekday(appointments: List[Appointment]) -> Dict[int, int]:
    """0=Montag … 6=Sonntag"""
    counts = {i: 0 for i in range(7)}
    for app in appointments:
        if app.status != STATUS_BOOKED:
            continue
        d = _app_date(app)
        if d is not None:
            counts[d.weekday()] += 1
    return counts
