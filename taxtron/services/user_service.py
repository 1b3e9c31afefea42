# taxtron/services/user_service.py
"""User lookup helpers. The transfer workflow never mutates users."""

from typing import Optional

from sqlalchemy.orm import Session
from taxtron.models.user import User


def get_user(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_cnic(db: Session, cnic: str) -> Optional[User]:
    """`cnic` must already be in canonical DDDDD-DDDDDDD-D form."""
    return db.query(User).filter(User.cnic == cnic).first()
