# src/halisaha/models.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

PITCHES = {
    'barnebau': 'Barnebau',
    'noucamp': 'Nou Camp',
}

STATUS_BOOKED = 'booked'
STATUS_CANCELLED = 'cancelled'


@dataclass
class Appointment:
    """Eine konkrete Buchung: ein Platz, eine Stunde, ein Kalendertag."""
    id: Optional[str] = field(default=None, init=False)    # Dokument-ID im Store
    pitch_id: str
    date_string: str              # DD.MM.YY
    time_slot: str                # HH.00
    customer_name: str
    phone_number: str = ''
    deposit: str = ''             # Kapora
    is_subscription: bool = False
    status: str = STATUS_BOOKED
    created_at: Optional[datetime] = field(default=None, init=False)


@dataclass
class Subscription:
    """Wiederkehrende Regel: Kunde belegt Platz/Stunde an diesen Wochentagen."""
    id: Optional[str] = field(default=None, init=False)
    pitch_id: str
    time_slot: str
    customer_id: str
    customer_name: str
    customer_phone: str
    days_of_week: List[int]       # 0=Sonntag … 6=Samstag
    months: List[int] = field(default_factory=list)   # 0=Januar … 11; leer = alle Monate
    active: bool = True
    deposit_amount: Optional[str] = None
    deposit_date: Optional[str] = None

    @property
    def is_general(self) -> bool:
        return not self.months


@dataclass
class Customer:
    id: Optional[str] = field(default=None, init=False)
    name: str
    phone: str
    is_subscriber: bool = False
    deposit_amount: Optional[str] = None
    deposit_date: Optional[str] = None
