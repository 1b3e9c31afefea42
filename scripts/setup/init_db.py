# scripts/setup/init_db.py
"""
Initialize database: creates all tables.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py [--seed-demo]

--seed-demo adds two users and one approved, fully paid vehicle so
scripts/test/simulate_transfer.py has something to move.
"""

import argparse
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from datetime import datetime
from sqlalchemy import inspect, text
from taxtron.database import create_tables, engine, SessionLocal
from taxtron.config import settings
from taxtron.models.user import User
from taxtron.models.inspection import Inspection, STATUS_APPROVED

DEMO_OWNER = dict(id="demo-owner", cnic="35202-1234567-8", full_name="Ali Raza",
                  email="ali@example.com", wallet_address="0x" + "a" * 40)
DEMO_RECIPIENT = dict(id="demo-recipient", cnic="11111-2222222-3", full_name="Sara Khan",
                      email="sara@example.com", wallet_address="0x" + "b" * 40)
DEMO_VEHICLE = dict(inspection_id="INS-DEMO-1", engine_number="ENG-DEMO-1", chassis_number="ABC123",
                    make="Toyota", model="Corolla", manufacturing_year=2020, registration_year=2021,
                    vehicle_type="Car", fuel_type="Petrol", engine_capacity=1300, color="White",
                    registration_number="LEA-20-1234")


def seed_demo():
    db = SessionLocal()
    try:
        now = datetime.utcnow()
        for data in (DEMO_OWNER, DEMO_RECIPIENT):
            if not db.query(User).filter(User.id == data["id"]).first():
                db.add(User(**data, is_verified=True, created_at=now, updated_at=now))
        if not db.query(Inspection).filter(Inspection.inspection_id == DEMO_VEHICLE["inspection_id"]).first():
            db.add(Inspection(**DEMO_VEHICLE, user_id=DEMO_OWNER["id"], status=STATUS_APPROVED,
                              is_paid=True, tax_paid=True, inspection_date=now,
                              created_at=now, updated_at=now))
        db.commit()
    finally:
        db.close()
    print(f"🌱 Demo data ready: owner={DEMO_OWNER['id']} recipient CNIC={DEMO_RECIPIENT['cnic']} "
          f"chassis={DEMO_VEHICLE['chassis_number']}")


def main():
    parser = argparse.ArgumentParser(description="Create TaxTron transfer tables")
    parser.add_argument("--seed-demo", action="store_true")
    args = parser.parse_args()

    print("🗄️  TaxTron DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    # Test connection
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except Exception as e:
        print(f"❌ Cannot connect to database: {e}")
        print("\nMake sure PostgreSQL is running:")
        print("  docker-compose up -d db")
        print("  # or: sudo systemctl start postgresql")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables()
    print("✅ All tables created")

    tables = sorted(inspect(engine).get_table_names())
    print(f"\n📊 Tables in database ({len(tables)} total):")
    for t in tables:
        print(f"   ✓ {t}")

    if args.seed_demo:
        seed_demo()

    print("\n🎉 Database ready! You can now start the backend:")
    print(f"   uvicorn taxtron.main:app --host 0.0.0.0 --port {settings.API_PORT} --reload")


if __name__ == "__main__":
    main()
