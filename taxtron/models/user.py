# taxtron/models/user.py
"""
Users table: vehicle owners and transfer recipients.
Read-only to the transfer workflow: looked up by id or CNIC, never mutated.
"""

import uuid

from sqlalchemy import Column, String, DateTime, Boolean
from taxtron.database import Base


def _new_user_id():
    return uuid.uuid4().hex


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_user_id)
    cnic = Column(String(15), unique=True, nullable=False, index=True)   # DDDDD-DDDDDDD-D
    full_name = Column(String(200), nullable=False)
    father_name = Column(String(200))
    phone_number = Column(String(20))
    email = Column(String(255), unique=True, nullable=False)
    wallet_address = Column(String(42), unique=True, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)

    def __repr__(self):
        return f"<User {self.id} cnic={self.cnic}>"
