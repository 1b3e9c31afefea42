# taxtron/models/ownership_history.py
"""
Per-vehicle ownership ledger.
One OwnershipHistory row per vehicle, holding an ordered list of entries.
The open entry (end_date NULL, is_current_owner true) is the current owner.
Appended to by history_service when a transfer completes.
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from taxtron.database import Base

TRANSFER_TYPE_REGISTRATION = "registration"
TRANSFER_TYPE_TRANSFER = "transfer"


class OwnershipHistory(Base):
    __tablename__ = "ownership_histories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(String(64), unique=True, nullable=False, index=True)
    chassis_number = Column(String(100), nullable=False, index=True)
    total_transfers = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    entries = relationship(
        "OwnershipHistoryEntry",
        back_populates="history",
        order_by="OwnershipHistoryEntry.position",
        cascade="all, delete-orphan",
    )

    @property
    def current_entry(self):
        for entry in reversed(self.entries):
            if entry.is_current_owner and entry.end_date is None:
                return entry
        return None

    def __repr__(self):
        return f"<OwnershipHistory {self.vehicle_id} transfers={self.total_transfers}>"


class OwnershipHistoryEntry(Base):
    __tablename__ = "ownership_history_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    history_id = Column(Integer, ForeignKey("ownership_histories.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    owner_id = Column(String(36), nullable=False, index=True)
    owner_name = Column(String(200), nullable=False)
    cnic = Column(String(15), nullable=False)
    wallet_address = Column(String(42), nullable=False)
    email = Column(String(255), nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime)                      # NULL = current owner
    transfer_type = Column(String(20), nullable=False)   # registration | transfer
    transfer_id = Column(String(40))
    is_current_owner = Column(Boolean, default=False, nullable=False)

    history = relationship("OwnershipHistory", back_populates="entries")

    __table_args__ = (
        UniqueConstraint("history_id", "transfer_id", name="uq_history_entry_transfer"),
    )

    def __repr__(self):
        return f"<OwnershipHistoryEntry owner={self.owner_id} current={self.is_current_owner}>"
