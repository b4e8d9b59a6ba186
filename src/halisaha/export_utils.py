import csv
import re
from typing import Dict, List, Optional
from urllib.parse import quote

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from halisaha.models import PITCHES, Appointment

CSV_FIELDS = ['date_string', 'time_slot', 'pitch', 'customer_name', 'phone_number', 'deposit', 'is_subscription']

_REPORT_LABELS = [
    ('total_bookings', 'Toplam Rezervasyon'),
    ('revenue', 'Toplam Gelir (TL)'),
    ('subscription_count', 'Aktif Aboneler'),
    ('booked_slots', 'Dolu Saat'),
    ('empty_slots', 'Bos Saat'),
]


def whatsapp_link(phone: str, name: Optional[str] = None) -> str:
    """wa.me-Link mit türkischer Vorwahl; ohne Nummer leerer String."""
    digits = re.sub(r'\D', '', phone or '')
    if not digits:
        return ''
    url = f"https://wa.me/90{digits}"
    if name:
        message = f"Merhaba {name}, halı saha randevunuz ile ilgili yazıyorum."
        url += f"?text={quote(message)}"
    return url


def export_appointments_csv(appointments: List[Appointment], filename: str) -> int:
    with open(filename, 'w', newline='', encoding='utf-8') as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for app in appointments:
            writer.writerow({
                'date_string': app.date_string,
                'time_slot': app.time_slot,
                'pitch': PITCHES.get(app.pitch_id, app.pitch_id),
                'customer_name': app.customer_name,
                'phone_number': app.phone_number,
                'deposit': app.deposit,
                'is_subscription': int(app.is_subscription),
            })
    return len(appointments)


def export_report_pdf(summary: Dict[str, int], filename: str, chart: Optional[str] = None,
                      title: str = 'Raporlar & Analiz', period: Optional[str] = None):
    c = canvas.Canvas(filename, pagesize=A4)
    w, h = A4
    y = h - 50
    c.setFont('Helvetica-Bold', 14)
    c.drawString(50, y, title)
    y -= 30
    c.setFont('Helvetica', 10)
    if period:
        c.drawString(50, y, f"Donem: {period}")
        y -= 20
    for key, label in _REPORT_LABELS:
        if key in summary:
            c.drawString(50, y, f"{label}: {summary[key]}")
            y -= 20
    if chart:
        size = 250
        c.drawImage(chart, (w - size) / 2, y - size - 10, width=size, height=size)
    c.save()
    return filename
