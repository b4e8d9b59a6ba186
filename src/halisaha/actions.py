"""
Die Bearbeitungs-Abläufe der Oberfläche (Termine, Kunden, Abos).

Jede Aktion prüft zuerst, schreibt dann. Validierungsfehler kommen als
ValidationError-Unterklassen, Fehler des Stores (sqlite3.Error) werden
unverändert weitergereicht. `user_message` übersetzt beides in den Text
für die Meldung an den Benutzer.
"""
import logging
import sqlite3
from datetime import date
from typing import Optional

from .calendar_logic import parse_date_string
from .models import STATUS_CANCELLED, Appointment, Customer, Subscription
from .validation import (
    DuplicateCustomerError, EmptySubscriptionError, InvalidValueError, MissingFieldError,
    NotFoundError, SlotTakenError, SubscriptionConflictError, ValidationError,
    check_appointment_fields, check_customer, check_slot_fields, check_subscription,
)


def _slot_holder(db, pitch_id: str, date_string: str, time_slot: str,
                 exclude_id: Optional[str] = None) -> Optional[Appointment]:
    for app in db.list_appointments(date_string):
        if app.id == exclude_id or app.status == STATUS_CANCELLED:
            continue
        if app.pitch_id == pitch_id and app.time_slot == time_slot:
            return app
    return None


# Termine
def book_appointment(db, app: Appointment) -> str:
    app.customer_name = app.customer_name.strip()
    app.phone_number = app.phone_number.strip()
    app.deposit = app.deposit.strip()
    check_appointment_fields(app)
    holder = _slot_holder(db, app.pitch_id, app.date_string, app.time_slot)
    if holder is not None:
        raise SlotTakenError(holder)
    app_id = db.create_appointment(app)
    logging.info(f"Termin angelegt: {app.date_string} {app.time_slot} {app.pitch_id} ({app.customer_name})")
    return app_id


def edit_appointment(db, appointment_id: str, **changes) -> Appointment:
    current = db.get_appointment(appointment_id)
    if current is None:
        raise NotFoundError(f"appointment {appointment_id} not found", 'id')
    for key, value in changes.items():
        setattr(current, key, value.strip() if isinstance(value, str) else value)
    check_appointment_fields(current)
    if {'pitch_id', 'date_string', 'time_slot'} & set(changes):
        holder = _slot_holder(db, current.pitch_id, current.date_string, current.time_slot,
                              exclude_id=appointment_id)
        if holder is not None:
            raise SlotTakenError(holder)
    db.update_appointment(appointment_id, **{k: getattr(current, k) for k in changes})
    return current


def cancel_appointment(db, appointment_id: str):
    db.delete_appointment(appointment_id)
    logging.info(f"Termin gelöscht: {appointment_id}")


# Kunden
def save_customer(db, name: str, phone: str, customer_id: Optional[str] = None) -> str:
    check_customer(name, phone, db.list_customers(), exclude_id=customer_id)
    name, phone = name.strip(), phone.strip()
    if customer_id:
        db.update_customer(customer_id, name=name, phone=phone)
        return customer_id
    return db.create_customer(Customer(name=name, phone=phone))


def delete_customer(db, customer_id: str):
    db.delete_customer(customer_id)


# Abos
def save_subscription(db, sub: Subscription) -> str:
    if not sub.customer_name.strip():
        raise MissingFieldError("customer is required", 'customer_name')
    check_slot_fields(sub.pitch_id, sub.time_slot)
    if not sub.days_of_week:
        raise EmptySubscriptionError(sub)
    if any(not 0 <= d <= 6 for d in sub.days_of_week):
        raise InvalidValueError(f"invalid weekdays: {sub.days_of_week}", 'days_of_week')
    if any(not 0 <= m <= 11 for m in sub.months):
        raise InvalidValueError(f"invalid months: {sub.months}", 'months')
    check_subscription(sub, db.list_subscriptions())
    if sub.id:
        db.update_subscription(
            sub.id,
            pitch_id=sub.pitch_id, time_slot=sub.time_slot,
            days_of_week=sub.days_of_week, months=sub.months, active=sub.active,
            customer_id=sub.customer_id, customer_name=sub.customer_name,
            customer_phone=sub.customer_phone, deposit_amount=sub.deposit_amount,
            deposit_date=sub.deposit_date,
        )
        return sub.id
    return db.create_subscription(sub)


def cancel_subscription(db, subscription_id: str, from_date: Optional[date] = None) -> int:
    """
    Löscht ein Abo samt den daraus erzeugten Terminen ab `from_date` (Standard: heute).
    Bricht beim ersten Store-Fehler ab; schon gelöschte Termine bleiben gelöscht.
    """
    sub = db.get_subscription(subscription_id)
    if sub is None:
        raise NotFoundError(f"subscription {subscription_id} not found", 'id')
    from_date = from_date or date.today()
    removed = 0
    for app in db.list_all_appointments():
        if not app.is_subscription:
            continue
        if (app.pitch_id, app.time_slot, app.phone_number) != (sub.pitch_id, sub.time_slot, sub.customer_phone):
            continue
        try:
            day = parse_date_string(app.date_string)
        except ValueError:
            logging.warning(f"Termin {app.id} mit ungültigem Datum übersprungen: {app.date_string}")
            continue
        if day >= from_date:
            db.delete_appointment(app.id)
            removed += 1
    db.delete_subscription(subscription_id)
    logging.info(f"Abo {subscription_id} gelöscht, {removed} Termine entfernt")
    return removed


def user_message(exc: Exception) -> str:
    """Meldungstext für den Benutzer."""
    if isinstance(exc, DuplicateCustomerError):
        if exc.field == 'phone':
            return f"Bu telefon numarası zaten {exc.existing.name} adına kayıtlı."
        return f"{exc.existing.name} isimli müşteri zaten kayıtlı."
    if isinstance(exc, SubscriptionConflictError):
        return f"Bu saat zaten {exc.existing.customer_name} adına abone olarak kayıtlı."
    if isinstance(exc, SlotTakenError):
        return f"Bu saat dolu: {exc.existing.customer_name}."
    if isinstance(exc, EmptySubscriptionError):
        return "Hiç gün seçilmedi. Abonelik silinsin mi?"
    if isinstance(exc, InvalidValueError):
        return "Geçersiz değer girildi, lütfen kontrol ediniz."
    if isinstance(exc, NotFoundError):
        return "Kayıt bulunamadı. Liste yenilenmiş olabilir."
    if isinstance(exc, MissingFieldError):
        return "Lütfen zorunlu alanları doldurunuz."
    if isinstance(exc, ValidationError):
        return str(exc)
    if isinstance(exc, sqlite3.Error):
        return "İşlem sırasında bir hata oluştu."
    return f"Beklenmeyen hata: {exc}"
