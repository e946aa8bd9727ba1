"""Seeds pickup windows, a starter menu and inventory for the coming week.

Run with `python -m bakery.seed`. Safe to run repeatedly: existing rows are left alone.
"""
import os
import time
from datetime import date, time as dtime, timedelta
from typing import Optional
from decimal import Decimal
from sqlalchemy import inspect, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from bakery.domain.models import Inventory, MenuItem, PickupWindow, Profile
from bakery.infrastructure.db import SessionLocal, engine

MAX_ATTEMPTS = 30
SLEEP_SECONDS = 2
DAYS_AHEAD = 7
DEFAULT_DAILY_CAP = 20

PICKUP_WINDOWS = [
    {"label": "Morning (9am - 12pm)", "start_time": dtime(9, 0), "end_time": dtime(12, 0)},
    {"label": "Afternoon (12pm - 3pm)", "start_time": dtime(12, 0), "end_time": dtime(15, 0)},
    {"label": "Evening (3pm - 6pm)", "start_time": dtime(15, 0), "end_time": dtime(18, 0)},
]

MENU_ITEMS = [
    {"slug": "brigadeiro-box", "name": "Brigadeiro Box (12)", "base_price": Decimal("24.00"), "category": "sweets",
     "dietary_tags": ["gluten-free"]},
    {"slug": "pao-de-queijo", "name": "Pão de Queijo (6)", "base_price": Decimal("9.50"), "category": "savory",
     "dietary_tags": ["gluten-free", "vegetarian"]},
    {"slug": "tres-leches-slice", "name": "Tres Leches Slice", "base_price": Decimal("7.25"), "category": "cakes",
     "dietary_tags": ["vegetarian"]},
    {"slug": "carrot-cake", "name": "Carrot Cake with Chocolate", "base_price": Decimal("32.00"), "category": "cakes",
     "dietary_tags": ["vegetarian"]},
]

def wait_for_tables(table: str = "menu_items") -> bool:
    for attempt in range(1, MAX_ATTEMPTS + 1):
        try:
            if inspect(engine).has_table(table):
                return True
        except OperationalError:
            pass
        if attempt == 1:
            print(f"Waiting for table '{table}' to exist...")
        time.sleep(SLEEP_SECONDS)
    return False

def seed(db: Session, start: Optional[date] = None, days: int = DAYS_AHEAD) -> dict:
    counts = {"pickup_windows": 0, "menu_items": 0, "inventory": 0, "profiles": 0}

    existing_windows = set(db.execute(select(PickupWindow.label)).scalars())
    for window in PICKUP_WINDOWS:
        if window["label"] not in existing_windows:
            db.add(PickupWindow(**window))
            counts["pickup_windows"] += 1

    existing_slugs = set(db.execute(select(MenuItem.slug)).scalars())
    for item in MENU_ITEMS:
        if item["slug"] not in existing_slugs:
            db.add(MenuItem(**item))
            counts["menu_items"] += 1
    db.flush()

    start = start or date.today()
    scheduled = set(db.execute(select(Inventory.menu_item_id, Inventory.pickup_date)).tuples())
    item_ids = list(db.execute(select(MenuItem.id).where(MenuItem.active.is_(True))).scalars())
    for offset in range(days):
        day = start + timedelta(days=offset)
        for item_id in item_ids:
            if (item_id, day) not in scheduled:
                db.add(Inventory(menu_item_id=item_id, pickup_date=day, daily_cap=DEFAULT_DAILY_CAP, reserved_quantity=0))
                counts["inventory"] += 1

    admin_email = os.getenv("SEED_ADMIN_EMAIL")
    if admin_email and db.execute(select(Profile.id).where(Profile.email == admin_email)).first() is None:
        db.add(Profile(email=admin_email, is_admin=True))
        counts["profiles"] += 1

    db.commit()
    return counts

def main():
    if not wait_for_tables():
        print("Tables not found after waiting; run migrations first.")
        return
    with SessionLocal() as db:
        counts = seed(db)
    for table, count in counts.items():
        print(f"Inserted {count} rows into {table}")

if __name__ == "__main__":
    main()
