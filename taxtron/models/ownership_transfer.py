# taxtron/models/ownership_transfer.py
"""
Ownership transfer requests, one row per transfer, driven through the
status state machine below by transfer_service.

from_owner / to_owner are OwnerSnapshot values copied from the users table
when the transfer is created. They are never re-synced with later profile edits.
"""

import secrets
import string
import time
from dataclasses import dataclass
from datetime import datetime
from typing import NewType

from sqlalchemy import Column, Integer, String, DateTime, Text, Index, text
from sqlalchemy.orm import composite
from taxtron.database import Base

UserId = NewType("UserId", str)
VehicleId = NewType("VehicleId", str)
TransferId = NewType("TransferId", str)

PENDING_ADMIN_APPROVAL = "pending_admin_approval"
APPROVED = "approved"
COMPLETED = "completed"
REJECTED = "rejected"
CANCELLED = "cancelled"

ACTIVE_STATUSES = (PENDING_ADMIN_APPROVAL, APPROVED)
TERMINAL_STATUSES = (COMPLETED, REJECTED, CANCELLED)

# status -> statuses it may move to
TRANSITIONS = {
    PENDING_ADMIN_APPROVAL: (APPROVED, REJECTED, CANCELLED),
    APPROVED: (COMPLETED, CANCELLED),
    COMPLETED: (),
    REJECTED: (),
    CANCELLED: (),
}


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, ())


def source_statuses(target: str) -> tuple:
    """Statuses from which `target` is reachable in one step."""
    return tuple(s for s, targets in TRANSITIONS.items() if target in targets)


_BASE36 = string.digits + string.ascii_lowercase


def generate_transfer_id() -> TransferId:
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return TransferId(f"TRF-{int(time.time() * 1000)}-{suffix}")


@dataclass(frozen=True)
class OwnerSnapshot:
    """Point-in-time copy of a user's identity, embedded in a transfer."""
    user_id: str
    full_name: str
    cnic: str
    wallet_address: str
    email: str

    def __composite_values__(self):
        return self.user_id, self.full_name, self.cnic, self.wallet_address, self.email

    @classmethod
    def from_user(cls, user) -> "OwnerSnapshot":
        return cls(
            user_id=user.id,
            full_name=user.full_name,
            cnic=user.cnic,
            wallet_address=user.wallet_address,
            email=user.email,
        )


class OwnershipTransfer(Base):
    __tablename__ = "ownership_transfers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    transfer_id = Column(String(40), unique=True, nullable=False, index=True, default=generate_transfer_id)
    vehicle_id = Column(String(64), nullable=False, index=True)      # inspections.inspection_id
    chassis_number = Column(String(100), nullable=False, index=True)

    from_owner_user_id = Column(String(36), nullable=False, index=True)
    from_owner_full_name = Column(String(200), nullable=False)
    from_owner_cnic = Column(String(15), nullable=False)
    from_owner_wallet_address = Column(String(42), nullable=False)
    from_owner_email = Column(String(255), nullable=False)
    from_owner = composite(
        OwnerSnapshot, from_owner_user_id, from_owner_full_name,
        from_owner_cnic, from_owner_wallet_address, from_owner_email,
    )

    to_owner_user_id = Column(String(36), nullable=False, index=True)
    to_owner_full_name = Column(String(200), nullable=False)
    to_owner_cnic = Column(String(15), nullable=False)
    to_owner_wallet_address = Column(String(42), nullable=False)
    to_owner_email = Column(String(255), nullable=False)
    to_owner = composite(
        OwnerSnapshot, to_owner_user_id, to_owner_full_name,
        to_owner_cnic, to_owner_wallet_address, to_owner_email,
    )

    transfer_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    transfer_fee = Column(Integer, nullable=False, default=5000)     # PKR
    status = Column(String(30), nullable=False, default=PENDING_ADMIN_APPROVAL, index=True)
    blockchain_tx_hash = Column(String(100), default="")
    transfer_deed = Column(Text, default="")                         # base64 PDF
    rejection_reason = Column(Text, default="")
    admin_notes = Column(Text)
    reviewed_by = Column(String(64))                                 # admin id
    reviewed_at = Column(DateTime)
    initiated_by = Column(String(36), nullable=False)
    completed_at = Column(DateTime)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        # At most one live transfer per vehicle
        Index(
            "uq_ownership_transfers_active_vehicle",
            "vehicle_id",
            unique=True,
            postgresql_where=text("status IN ('pending_admin_approval', 'approved')"),
            sqlite_where=text("status IN ('pending_admin_approval', 'approved')"),
        ),
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def __repr__(self):
        return f"<OwnershipTransfer {self.transfer_id} vehicle={self.vehicle_id} status={self.status}>"
