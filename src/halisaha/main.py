# src/halisaha/main.py

import logging
from datetime import date

from .actions import cancel_subscription, save_customer, save_subscription, user_message
from .calendar_logic import TIME_SLOTS
from .config import load_config
from .data import Database
from .models import PITCHES, Subscription
from .statistics import summarize_bookings
from .sync import sync_month, sync_rolling
from .validation import filter_customers

DAY_LABELS = {1: 'Pzt', 2: 'Sal', 3: 'Çar', 4: 'Per', 5: 'Cum', 6: 'Cmt', 0: 'Paz'}


def _ask_ints(prompt: str) -> list:
    text = input(prompt)
    return [int(x) for x in text.split(",") if x.strip().isdigit()]


def input_customer(db: Database):
    print("\n👤  Yeni müşteri:")
    name = input("  İsim: ")
    phone = input("  Telefon: ")
    save_customer(db, name, phone)
    print("Müşteri eklendi.")


def input_subscription(db: Database):
    print("\n🔁  Yeni abonelik:")
    all_customers = db.list_customers()
    if not all_customers:
        print("Önce müşteri ekleyin.")
        return
    customers = filter_customers(all_customers, input("  Müşteri ara (isim/telefon) [boş=hepsi]: "))
    if not customers:
        print("Müşteri bulunamadı.")
        return
    for i, c in enumerate(customers):
        print(f"  [{i}] {c.name} ({c.phone})")
    customer = customers[int(input("  Müşteri numarası: "))]
    pitch = input(f"  Saha ({'/'.join(PITCHES)}): ").strip()
    slot = input(f"  Saat ({TIME_SLOTS[0]} … {TIME_SLOTS[-1]}): ").strip()
    days = _ask_ints("  Günler (0=Paz … 6=Cmt), virgülle: ")
    months = _ask_ints("  Aylar (0=Ocak … 11=Aralık) [boş=genel]: ")
    sub = Subscription(pitch_id=pitch, time_slot=slot, customer_id=customer.id,
                       customer_name=customer.name, customer_phone=customer.phone,
                       days_of_week=days, months=months)
    save_subscription(db, sub)
    print("Abonelik başarıyla eklendi.")


def list_subscriptions(db: Database):
    for sub in db.list_subscriptions():
        days = ' '.join(DAY_LABELS[d] for d in sorted(sub.days_of_week))
        months = 'genel' if sub.is_general else ','.join(str(m + 1) for m in sub.months)
        print(f"  {sub.id[:8]}  {PITCHES.get(sub.pitch_id, sub.pitch_id):9} {sub.time_slot}  {days:24} {months:10} {sub.customer_name}")


def remove_subscription(db: Database):
    prefix = input("  Abonelik ID (ilk harfler): ").strip()
    matches = [s for s in db.list_subscriptions() if prefix and s.id.startswith(prefix)]
    if len(matches) != 1:
        print("Abonelik bulunamadı.")
        return
    removed = cancel_subscription(db, matches[0].id)
    print(f"Abonelik silindi, {removed} randevu kaldırıldı.")


def run_sync(db: Database, cfg: dict):
    subs = db.list_subscriptions()
    if not subs:
        print("Sync işlemi için kayıtlı abone bulunamadı.")
        return
    mode = input("  [1] Önümüzdeki günler, [2] Takvim ayı: ")
    if mode == "2":
        month = int(input("  Ay (1-12): ")) - 1
        result = sync_month(db, subs, month)
    else:
        result = sync_rolling(db, subs, days=cfg['sync_days'])
    print(f"{result.created} adet abone randevusu oluşturuldu.")


def show_report(db: Database, cfg: dict):
    stats = summarize_bookings(db.list_all_appointments(), date.today(), cfg['hourly_price'], cfg['pitches'])
    for key, value in stats.items():
        print(f"  {key}: {value}")


def run_wizard():
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    cfg = load_config()
    db = Database(cfg.get('db_path'))
    actions = {
        "1": ("Müşteri ekle", lambda: input_customer(db)),
        "2": ("Abone ekle", lambda: input_subscription(db)),
        "3": ("Aboneleri listele", lambda: list_subscriptions(db)),
        "4": ("Abonelik sil", lambda: remove_subscription(db)),
        "5": ("Aboneleri aktar (sync)", lambda: run_sync(db, cfg)),
        "6": ("Rapor", lambda: show_report(db, cfg)),
    }
    print("⚽ Halı Saha Yönetimi ⚽")
    try:
        while True:
            print()
            for key, (label, _) in actions.items():
                print(f"  [{key}] {label}")
            choice = input("Seçim (q=çıkış): ").strip().lower()
            if choice == "q":
                break
            if choice not in actions:
                continue
            try:
                actions[choice][1]()
            except (ValueError, IndexError) as e:
                print(f"Geçersiz giriş: {e}")
            except Exception as e:
                logging.error(f"Aktion {choice} fehlgeschlagen: {e}")
                print(user_message(e))
    finally:
        db.close()


if __name__ == "__main__":
    run_wizard()
