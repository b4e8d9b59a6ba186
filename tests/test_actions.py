from datetime import date
import sqlite3
import pytest

from halisaha.data import Database
from halisaha.models import Appointment, Subscription
from halisaha.sync import sync_rolling
from halisaha.actions import (
    book_appointment, edit_appointment, cancel_appointment, save_customer, delete_customer,
    save_subscription, cancel_subscription, user_message,
)
from halisaha.validation import (
    DuplicateCustomerError, EmptySubscriptionError, InvalidValueError, MissingFieldError,
    NotFoundError, SlotTakenError, SubscriptionConflictError,
)


@pytest.fixture
def db(tmp_path):
    db = Database(str(tmp_path / 'actions.db'))
    yield db
    db.close()


def make_sub(days, months=(), slot='18.00', name='Ahmet', phone='5551234567'):
    return Subscription(pitch_id='barnebau', time_slot=slot, customer_id='c1',
                        customer_name=name, customer_phone=phone,
                        days_of_week=list(days), months=list(months))


def test_book_appointment_rejects_taken_slot(db):
    book_appointment(db, Appointment(pitch_id='barnebau', date_string='20.06.25', time_slot='20.00',
                                     customer_name=' Ahmet ', phone_number='555'))
    with pytest.raises(SlotTakenError) as exc:
        book_appointment(db, Appointment(pitch_id='barnebau', date_string='20.06.25',
                                         time_slot='20.00', customer_name='Mehmet'))
    assert exc.value.existing.customer_name == 'Ahmet'
    # anderer Platz ist frei
    book_appointment(db, Appointment(pitch_id='noucamp', date_string='20.06.25',
                                     time_slot='20.00', customer_name='Mehmet'))
    assert len(db.list_appointments('20.06.25')) == 2


@pytest.mark.parametrize("kwargs,error", [
    (dict(pitch_id='barnebau', date_string='20.06.25', time_slot='20.00', customer_name='  '), MissingFieldError),
    (dict(pitch_id='wembley', date_string='20.06.25', time_slot='20.00', customer_name='Ali'), InvalidValueError),
    (dict(pitch_id='barnebau', date_string='20.06.25', time_slot='20:00', customer_name='Ali'), InvalidValueError),
    (dict(pitch_id='barnebau', date_string='2025-06-20', time_slot='20.00', customer_name='Ali'), InvalidValueError),
])
def test_book_appointment_validation(db, kwargs, error):
    with pytest.raises(error):
        book_appointment(db, Appointment(**kwargs))
    assert db.list_all_appointments() == []


def test_edit_and_cancel_appointment(db):
    a1 = book_appointment(db, Appointment(pitch_id='barnebau', date_string='20.06.25',
                                          time_slot='20.00', customer_name='Ahmet'))
    book_appointment(db, Appointment(pitch_id='barnebau', date_string='20.06.25',
                                     time_slot='21.00', customer_name='Mehmet'))
    updated = edit_appointment(db, a1, deposit='500')
    assert updated.deposit == '500'
    assert db.get_appointment(a1).deposit == '500'
    with pytest.raises(SlotTakenError):
        edit_appointment(db, a1, time_slot='21.00')
    cancel_appointment(db, a1)
    assert db.get_appointment(a1) is None


def test_save_customer_guards_duplicates(db):
    cid = save_customer(db, ' Ahmet Yılmaz ', '5551234567')
    with pytest.raises(DuplicateCustomerError) as exc:
        save_customer(db, 'Ali Veli', '5551234567')
    assert exc.value.field == 'phone'
    assert exc.value.existing.name == 'Ahmet Yılmaz'
    with pytest.raises(DuplicateCustomerError):
        save_customer(db, 'ahmet yılmaz', '5550000000')
    # eigener Datensatz darf umbenannt werden
    save_customer(db, 'Ahmet Yılmaz Jr.', '5551234567', customer_id=cid)
    assert [c.name for c in db.list_customers()] == ['Ahmet Yılmaz Jr.']
    delete_customer(db, cid)
    assert db.list_customers() == []


def test_save_subscription_conflict_and_update(db):
    sid = save_subscription(db, make_sub({2}))
    with pytest.raises(SubscriptionConflictError):
        save_subscription(db, make_sub({2}, months={5}, name='Mehmet'))
    other = save_subscription(db, make_sub({3}, name='Mehmet'))
    assert other != sid

    # Bearbeiten prüft nicht gegen sich selbst
    sub = db.get_subscription(sid)
    sub.days_of_week = [2, 4]
    assert save_subscription(db, sub) == sid
    assert db.get_subscription(sid).days_of_week == [2, 4]

    sub.days_of_week = [3]
    with pytest.raises(SubscriptionConflictError):
        save_subscription(db, sub)


def test_emptied_subscription_is_delete_request(db):
    sid = save_subscription(db, make_sub({2}))
    sub = db.get_subscription(sid)
    sub.days_of_week = []
    with pytest.raises(EmptySubscriptionError):
        save_subscription(db, sub)
    # nichts geändert
    assert db.get_subscription(sid).days_of_week == [2]


def test_cancel_subscription_removes_future_appointments(db):
    sid = save_subscription(db, make_sub({1}))
    sub = db.get_subscription(sid)
    sync_rolling(db, [sub], start=date(2025, 6, 2), days=21)   # drei Montage
    book_appointment(db, Appointment(pitch_id='barnebau', date_string='10.06.25',
                                     time_slot='18.00', customer_name='Einzel'))
    removed = cancel_subscription(db, sid, from_date=date(2025, 6, 9))
    assert removed == 2
    remaining = sorted((a.date_string, a.customer_name) for a in db.list_all_appointments())
    assert remaining == [('02.06.25', 'Ahmet'), ('10.06.25', 'Einzel')]
    assert db.get_subscription(sid) is None


def test_user_messages():
    sub = make_sub({2}, name='Mehmet')
    assert 'Mehmet' in user_message(SubscriptionConflictError(sub))
    assert user_message(EmptySubscriptionError(sub)).endswith('?')
    assert user_message(sqlite3.OperationalError('locked')) == 'İşlem sırasında bir hata oluştu.'


def test_cancelled_appointment_does_not_block_slot(db):
    old_id = db.create_appointment(Appointment(pitch_id='barnebau', date_string='20.06.25',
                                               time_slot='20.00', customer_name='Iptal',
                                               status='cancelled'))
    new_id = book_appointment(db, Appointment(pitch_id='barnebau', date_string='20.06.25',
                                              time_slot='20.00', customer_name='Ahmet'))
    assert new_id != old_id
    # Umbuchen auf einen stornierten Slot ist ebenfalls erlaubt
    other = book_appointment(db, Appointment(pitch_id='noucamp', date_string='20.06.25',
                                             time_slot='20.00', customer_name='Mehmet'))
    db.update_appointment(new_id, status='cancelled')
    edit_appointment(db, other, pitch_id='barnebau')
    assert db.get_appointment(other).pitch_id == 'barnebau'


def test_subscription_can_move_to_free_slot_but_not_onto_taken_one(db):
    sid = save_subscription(db, make_sub({2}))
    save_subscription(db, make_sub({2}, slot='21.00', name='Mehmet'))

    sub = db.get_subscription(sid)
    sub.pitch_id = 'noucamp'
    sub.time_slot = '20.00'
    assert save_subscription(db, sub) == sid
    moved = db.get_subscription(sid)
    assert (moved.pitch_id, moved.time_slot) == ('noucamp', '20.00')

    moved.pitch_id = 'barnebau'
    moved.time_slot = '21.00'
    with pytest.raises(SubscriptionConflictError) as exc:
        save_subscription(db, moved)
    assert exc.value.existing.customer_name == 'Mehmet'
    stored = db.get_subscription(sid)
    assert (stored.pitch_id, stored.time_slot) == ('noucamp', '20.00')


def test_missing_records_raise_not_found(db):
    with pytest.raises(NotFoundError):
        edit_appointment(db, 'nope', deposit='100')
    with pytest.raises(NotFoundError):
        cancel_subscription(db, 'nope')


def test_save_subscription_rejects_bad_weekday(db):
    with pytest.raises(InvalidValueError):
        save_subscription(db, make_sub({7}))
    assert db.list_subscriptions() == []


@pytest.mark.parametrize("error,expected", [
    (MissingFieldError("name is required", 'name'), "Lütfen zorunlu alanları doldurunuz."),
    (InvalidValueError("unknown pitch: wembley", 'pitch_id'), "Geçersiz değer girildi, lütfen kontrol ediniz."),
    (NotFoundError("subscription x not found", 'id'), "Kayıt bulunamadı. Liste yenilenmiş olabilir."),
])
def test_user_message_per_error_kind(error, expected):
    assert user_message(error) == expected
