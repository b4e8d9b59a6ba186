import os
import sqlite3
import uuid
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional
from halisaha.models import Appointment, Customer, Subscription
import logging

APPOINTMENT_COLUMNS = {
    'pitch_id', 'date_string', 'time_slot', 'customer_name', 'phone_number',
    'deposit', 'is_subscription', 'status',
}
CUSTOMER_COLUMNS = {'name', 'phone', 'is_subscriber', 'deposit_amount', 'deposit_date'}
SUBSCRIPTION_COLUMNS = {
    'pitch_id', 'time_slot', 'customer_id', 'customer_name', 'customer_phone',
    'days_of_week', 'months', 'active', 'deposit_amount', 'deposit_date',
}


def _new_id() -> str:
    return uuid.uuid4().hex


def _join_ints(values) -> str:
    return ','.join(str(v) for v in sorted(set(values)))


def _split_ints(text: Optional[str]) -> List[int]:
    if not text:
        return []
    return [int(x) for x in text.split(',') if x.strip()]


def normalize_subscription_row(row: Mapping[str, Any]) -> Subscription:
    """
    Baut ein Subscription-Objekt aus einer Tabellenzeile.
    Alte Datensätze haben nur `day_of_week` bzw. `month` (Einzelwert);
    die werden hier in die Mengen-Form überführt.
    """
    days = _split_ints(row['days_of_week'])
    if not days and row['day_of_week'] is not None:
        days = [int(row['day_of_week'])]
    months = _split_ints(row['months'])
    if not months and row['month'] is not None:
        months = [int(row['month'])]
    sub = Subscription(
        pitch_id=row['pitch_id'],
        time_slot=row['time_slot'],
        customer_id=row['customer_id'] or '',
        customer_name=row['customer_name'],
        customer_phone=row['customer_phone'] or '',
        days_of_week=days,
        months=months,
        active=bool(row['active']),
        deposit_amount=row['deposit_amount'],
        deposit_date=row['deposit_date'],
    )
    sub.id = row['id']
    return sub


def _encode(column: str, value: Any) -> Any:
    if column in ('days_of_week', 'months'):
        return _join_ints(value or [])
    if column in ('is_subscription', 'is_subscriber', 'active'):
        return int(bool(value))
    return value


class Database:
    def __init__(self, db_path: str = None):
        try:
            self.db_path = db_path or os.path.join(os.path.expanduser("~"), ".halisaha", "halisaha.db")
            if self.db_path != ':memory:':
                os.makedirs(os.path.dirname(os.path.abspath(self.db_path)), exist_ok=True)
            self.conn = sqlite3.connect(self.db_path)
            self.conn.row_factory = sqlite3.Row
            self._ensure_tables()
        except Exception as e:
            logging.error(f"Database connection error: {e}")
            raise

    def _ensure_tables(self):
        cur = self.conn.cursor()
        cur.execute("""
        CREATE TABLE IF NOT EXISTS appointments (
          id TEXT PRIMARY KEY,
          pitch_id TEXT NOT NULL,
          date_string TEXT NOT NULL,
          time_slot TEXT NOT NULL,
          customer_name TEXT NOT NULL,
          phone_number TEXT NOT NULL DEFAULT '',
          deposit TEXT NOT NULL DEFAULT '',
          is_subscription INTEGER NOT NULL DEFAULT 0,
          status TEXT NOT NULL DEFAULT 'booked',
          created_at TEXT
        )""")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_appointments_date ON appointments(date_string)")

        cur.execute("""
        CREATE TABLE IF NOT EXISTS customers (
          id TEXT PRIMARY KEY,
          name TEXT NOT NULL,
          phone TEXT NOT NULL,
          is_subscriber INTEGER NOT NULL DEFAULT 0,
          deposit_amount TEXT,
          deposit_date TEXT
        )""")

        cur.execute("""
        CREATE TABLE IF NOT EXISTS subscriptions (
          id TEXT PRIMARY KEY,
          pitch_id TEXT NOT NULL,
          time_slot TEXT NOT NULL,
          customer_id TEXT,
          customer_name TEXT NOT NULL,
          customer_phone TEXT,
          days_of_week TEXT,
          months TEXT,
          active INTEGER NOT NULL DEFAULT 1,
          deposit_amount TEXT,
          deposit_date TEXT
        )""")
        # Altbestand: Einzelwert-Spalten aus der ersten Version
        cur.execute("PRAGMA table_info(subscriptions)")
        cols = [row['name'] for row in cur.fetchall()]
        if 'day_of_week' not in cols:
            cur.execute("ALTER TABLE subscriptions ADD COLUMN day_of_week INTEGER")
        if 'month' not in cols:
            cur.execute("ALTER TABLE subscriptions ADD COLUMN month INTEGER")

        self.conn.commit()

    def _update(self, table: str, allowed: set, doc_id: str, partial: Dict[str, Any]):
        unknown = set(partial) - allowed
        if unknown:
            raise ValueError(f"Unknown fields for {table}: {', '.join(sorted(unknown))}")
        if not partial:
            return
        cols = sorted(partial)
        assignments = ', '.join(f"{c}=?" for c in cols)
        params = [_encode(c, partial[c]) for c in cols] + [doc_id]
        try:
            self.conn.execute(f"UPDATE {table} SET {assignments} WHERE id=?", params)
            self.conn.commit()
        except sqlite3.Error as e:
            logging.error(f"Error updating {table} id={doc_id}: {e}")
            raise

    def _delete(self, table: str, doc_id: str):
        try:
            self.conn.execute(f"DELETE FROM {table} WHERE id=?", (doc_id,))
            self.conn.commit()
        except sqlite3.Error as e:
            logging.error(f"Error deleting from {table} id={doc_id}: {e}")
            raise

    # Export/Import
    def export_to_sql(self, filename: str):
        """Dump aller Tabellen als SQL-Statements"""
        with open(filename, 'w', encoding='utf-8') as f:
            for line in self.conn.iterdump():
                f.write(f"{line}\n")

    def import_from_sql(self, filename: str):
        """Vorhandene Tabellen löschen, Dump einlesen und ausführen"""
        with open(filename, 'r', encoding='utf-8') as f:
            script = f.read()
        cur = self.conn.cursor()
        for tbl in ('appointments', 'customers', 'subscriptions'):
            cur.execute(f"DROP TABLE IF EXISTS {tbl}")
        self.conn.commit()
        self.conn.executescript(script)
        self.conn.commit()

    # Appointment-Methoden
    @staticmethod
    def _row_to_appointment(row) -> Appointment:
        app = Appointment(
            pitch_id=row['pitch_id'],
            date_string=row['date_string'],
            time_slot=row['time_slot'],
            customer_name=row['customer_name'],
            phone_number=row['phone_number'],
            deposit=row['deposit'],
            is_subscription=bool(row['is_subscription']),
            status=row['status'],
        )
        app.id = row['id']
        app.created_at = datetime.fromisoformat(row['created_at']) if row['created_at'] else None
        return app

    def list_appointments(self, date_string: str) -> List[Appointment]:
        """Alle Termine eines Tages (DD.MM.YY), nach Slot sortiert."""
        cur = self.conn.cursor()
        cur.execute(
            "SELECT * FROM appointments WHERE date_string=? ORDER BY time_slot",
            (date_string,)
        )
        return [self._row_to_appointment(r) for r in cur.fetchall()]

    def list_all_appointments(self) -> List[Appointment]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM appointments")
        return [self._row_to_appointment(r) for r in cur.fetchall()]

    def get_appointment(self, appointment_id: str) -> Optional[Appointment]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM appointments WHERE id=?", (appointment_id,))
        row = cur.fetchone()
        return self._row_to_appointment(row) if row else None

    def create_appointment(self, app: Appointment) -> str:
        app.id = _new_id()
        app.created_at = datetime.now()
        try:
            self.conn.execute(
                "INSERT INTO appointments (id, pitch_id, date_string, time_slot, customer_name, "
                "phone_number, deposit, is_subscription, status, created_at) VALUES (?,?,?,?,?,?,?,?,?,?)",
                (app.id, app.pitch_id, app.date_string, app.time_slot, app.customer_name,
                 app.phone_number, app.deposit, int(app.is_subscription), app.status,
                 app.created_at.isoformat())
            )
            self.conn.commit()
        except sqlite3.Error as e:
            logging.error(f"Error creating appointment {app.date_string} {app.time_slot}: {e}")
            raise
        return app.id

    def update_appointment(self, appointment_id: str, **partial):
        self._update('appointments', APPOINTMENT_COLUMNS, appointment_id, partial)

    def delete_appointment(self, appointment_id: str):
        self._delete('appointments', appointment_id)

    # Customer-Methoden
    def list_customers(self) -> List[Customer]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM customers ORDER BY name")
        out = []
        for row in cur.fetchall():
            c = Customer(row['name'], row['phone'], bool(row['is_subscriber']),
                         row['deposit_amount'], row['deposit_date'])
            c.id = row['id']
            out.append(c)
        return out

    def create_customer(self, c: Customer) -> str:
        c.id = _new_id()
        try:
            self.conn.execute(
                "INSERT INTO customers (id, name, phone, is_subscriber, deposit_amount, deposit_date) "
                "VALUES (?,?,?,?,?,?)",
                (c.id, c.name, c.phone, int(c.is_subscriber), c.deposit_amount, c.deposit_date)
            )
            self.conn.commit()
        except sqlite3.Error as e:
            logging.error(f"Error creating customer {c.name}: {e}")
            raise
        return c.id

    def update_customer(self, customer_id: str, **partial):
        self._update('customers', CUSTOMER_COLUMNS, customer_id, partial)

    def delete_customer(self, customer_id: str):
        self._delete('customers', customer_id)

    # Subscription-Methoden
    def list_subscriptions(self) -> List[Subscription]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM subscriptions")
        return [normalize_subscription_row(r) for r in cur.fetchall()]

    def get_subscription(self, subscription_id: str) -> Optional[Subscription]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM subscriptions WHERE id=?", (subscription_id,))
        row = cur.fetchone()
        return normalize_subscription_row(row) if row else None

    def create_subscription(self, sub: Subscription) -> str:
        sub.id = _new_id()
        try:
            self.conn.execute(
                "INSERT INTO subscriptions (id, pitch_id, time_slot, customer_id, customer_name, "
                "customer_phone, days_of_week, months, active, deposit_amount, deposit_date) "
                "VALUES (?,?,?,?,?,?,?,?,?,?,?)",
                (sub.id, sub.pitch_id, sub.time_slot, sub.customer_id, sub.customer_name,
                 sub.customer_phone, _join_ints(sub.days_of_week), _join_ints(sub.months),
                 int(sub.active), sub.deposit_amount, sub.deposit_date)
            )
            self.conn.commit()
        except sqlite3.Error as e:
            logging.error(f"Error creating subscription {sub.pitch_id} {sub.time_slot}: {e}")
            raise
        return sub.id

    def update_subscription(self, subscription_id: str, **partial):
        self._update('subscriptions', SUBSCRIPTION_COLUMNS, subscription_id, partial)
        if 'days_of_week' in partial or 'months' in partial:
            # Neue Mengen-Form ersetzt die alten Einzelwerte
            self.conn.execute(
                "UPDATE subscriptions SET day_of_week=NULL, month=NULL WHERE id=?",
                (subscription_id,)
            )
            self.conn.commit()

    def delete_subscription(self, subscription_id: str):
        self._delete('subscriptions', subscription_id)

    def close(self):
        """Schließe die Datenbankverbindung sauber"""
        if self.conn:
            self.conn.close()
            self.conn = None
