from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from .calendar_logic import is_valid_time_slot, parse_date_string
from .models import PITCHES, Customer, Subscription


class ValidationError(Exception):
    """Fehler vor jedem Schreibzugriff; es wurde nichts verändert."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class MissingFieldError(ValidationError):
    pass


class InvalidValueError(ValidationError):
    pass


class NotFoundError(ValidationError):
    pass


class DuplicateCustomerError(ValidationError):
    def __init__(self, existing: Customer, field: str):
        super().__init__(f"customer with same {field} exists: {existing.name}", field)
        self.existing = existing


class SubscriptionConflictError(ValidationError):
    def __init__(self, existing: Subscription):
        super().__init__(
            f"slot {existing.pitch_id} {existing.time_slot} is held by {existing.customer_name}",
            'days_of_week'
        )
        self.existing = existing


class SlotTakenError(ValidationError):
    def __init__(self, existing):
        super().__init__(
            f"{existing.pitch_id} {existing.date_string} {existing.time_slot} already booked",
            'time_slot'
        )
        self.existing = existing


class EmptySubscriptionError(ValidationError):
    """Abo ohne Wochentage: wird als Löschwunsch behandelt (Rückfrage beim Benutzer)."""

    def __init__(self, subscription: Subscription):
        super().__init__("subscription has no weekdays left", 'days_of_week')
        self.subscription = subscription


@dataclass
class DuplicateCustomer:
    customer: Customer
    field: str          # 'phone' oder 'name'


_TR_I = str.maketrans({'İ': 'i', 'I': 'i', 'ı': 'i'})


def normalize_name(name: str) -> str:
    # i/ı/İ/I zusammenlegen, sonst landen "YILMAZ" und "yılmaz" getrennt
    return ' '.join(name.translate(_TR_I).casefold().split())


def months_overlap(a: Sequence[int], b: Sequence[int]) -> bool:
    """Leere Monatsliste = allgemeines Abo, überlappt mit allem."""
    if not a or not b:
        return True
    return bool(set(a) & set(b))


def find_subscription_conflict(pitch_id: str, time_slot: str, days_of_week: Iterable[int],
                               months: Iterable[int], subscriptions: Iterable[Subscription],
                               exclude_id: Optional[str] = None) -> Optional[Subscription]:
    days = set(days_of_week)
    months = list(months)
    for s in subscriptions:
        if exclude_id is not None and s.id == exclude_id:
            continue
        if s.pitch_id != pitch_id or s.time_slot != time_slot or not s.active:
            continue
        if not days & set(s.days_of_week):
            continue
        if months_overlap(months, s.months):
            return s
    return None


def check_subscription(sub: Subscription, subscriptions: Iterable[Subscription]):
    conflict = find_subscription_conflict(
        sub.pitch_id, sub.time_slot, sub.days_of_week, sub.months, subscriptions, exclude_id=sub.id
    )
    if conflict is not None:
        raise SubscriptionConflictError(conflict)


def find_duplicate_customer(name: str, phone: str, customers: Iterable[Customer],
                            exclude_id: Optional[str] = None) -> Optional[DuplicateCustomer]:
    """
    Sucht einen anderen Kunden mit gleicher Telefonnummer (exakt) oder
    gleichem Namen (ohne Groß-/Kleinschreibung, Leerzeichen getrimmt).
    Ein Telefon-Treffer geht vor einem Namens-Treffer.
    """
    phone = phone.strip()
    key = normalize_name(name)
    name_hit = None
    for c in customers:
        if exclude_id is not None and c.id == exclude_id:
            continue
        if phone and c.phone.strip() == phone:
            return DuplicateCustomer(c, 'phone')
        if name_hit is None and key and normalize_name(c.name) == key:
            name_hit = DuplicateCustomer(c, 'name')
    return name_hit


def check_customer(name: str, phone: str, customers: Iterable[Customer],
                   exclude_id: Optional[str] = None):
    if not name.strip():
        raise MissingFieldError("name is required", 'name')
    if not phone.strip():
        raise MissingFieldError("phone is required", 'phone')
    dup = find_duplicate_customer(name, phone, customers, exclude_id)
    if dup is not None:
        raise DuplicateCustomerError(dup.customer, dup.field)


def check_slot_fields(pitch_id: str, time_slot: str):
    if pitch_id not in PITCHES:
        raise InvalidValueError(f"unknown pitch: {pitch_id}", 'pitch_id')
    if not is_valid_time_slot(time_slot):
        raise InvalidValueError(f"invalid time slot: {time_slot}", 'time_slot')


def check_appointment_fields(app):
    if not app.customer_name.strip():
        raise MissingFieldError("customer name is required", 'customer_name')
    check_slot_fields(app.pitch_id, app.time_slot)
    try:
        parse_date_string(app.date_string)
    except ValueError:
        raise InvalidValueError(f"invalid date: {app.date_string}", 'date_string')


def filter_customers(customers: Iterable[Customer], query: str) -> List[Customer]:
    """Suche im Kundenstamm: Teilstring im Namen (ohne Groß-/Kleinschreibung) oder in der Nummer."""
    key = normalize_name(query)
    if not key:
        return list(customers)
    raw = query.strip()
    return [c for c in customers if key in normalize_name(c.name) or raw in c.phone]
