# tests/conftest.py
"""Shared fixtures: in-memory SQLite database, users, an approved vehicle, auth headers."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["LOG_TO_FILE"] = "false"

import pytest
from datetime import datetime, timedelta
from taxtron.database import Base, engine, SessionLocal
from taxtron.dependencies.auth import create_access_token
from taxtron.models.user import User
from taxtron.models.inspection import Inspection, STATUS_APPROVED
import taxtron.models  # noqa


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(cnic, full_name="Test User", **overrides):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            id=overrides.pop("id", f"user-{n}"),
            cnic=cnic,
            full_name=full_name,
            email=overrides.pop("email", f"user{n}@example.com"),
            wallet_address=overrides.pop("wallet_address", "0x" + f"{n:040x}"),
            created_at=datetime.utcnow(),
            **overrides,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_vehicle(db):
    counter = {"n": 0}

    def _make(owner, chassis_number=None, **overrides):
        counter["n"] += 1
        n = counter["n"]
        fields = dict(
            inspection_id=f"INS-{n}",
            user_id=owner.id,
            engine_number=f"ENG-{n}",
            chassis_number=chassis_number or f"CHS-{n}",
            make="Toyota",
            model="Corolla",
            manufacturing_year=2020,
            registration_year=2021,
            vehicle_type="Car",
            fuel_type="Petrol",
            engine_capacity=1300,
            color="White",
            status=STATUS_APPROVED,
            registration_number=f"LEA-{n}",
            is_paid=True,
            tax_paid=True,
            inspection_date=datetime.utcnow() - timedelta(days=365),
            created_at=datetime.utcnow() - timedelta(days=366),
        )
        fields.update(overrides)
        vehicle = Inspection(**fields)
        db.add(vehicle)
        db.commit()
        return vehicle

    return _make


@pytest.fixture
def owner(make_user):
    return make_user("35202-1234567-8", full_name="Owner A")


@pytest.fixture
def recipient(make_user):
    return make_user("11111-2222222-3", full_name="Recipient B")


@pytest.fixture
def vehicle(make_vehicle, owner):
    return make_vehicle(owner, chassis_number="ABC123")


def auth_header(user_id):
    return {"Authorization": f"Bearer {create_access_token({'userId': user_id})}"}


def admin_header(admin_id="admin-1"):
    return {"Authorization": f"Bearer {create_access_token({'id': admin_id, 'role': 'admin'})}"}
