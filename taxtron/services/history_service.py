# taxtron/services/history_service.py
"""
Ownership history ledger maintenance.

record_transfer() appends a completed transfer to the vehicle's ledger:
  - creates the ledger on first use, seeded with the previous owner's
    registration entry
  - closes the open entry at transfer_date
  - appends the new owner's open entry and recomputes total_transfers
rebuild_history() replays every completed transfer of one vehicle into a
fresh ledger; scripts/setup/repair_history.py uses it to fill gaps.
Both only flush; the caller commits, so an append shares the transaction
that completes the transfer. Appending one transfer twice is a no-op.
"""

from typing import Optional

from sqlalchemy.orm import Session
from taxtron.exceptions import NotFoundError, ValidationError
from taxtron.models.inspection import Inspection
from taxtron.models.ownership_history import (
    OwnershipHistory,
    OwnershipHistoryEntry,
    TRANSFER_TYPE_REGISTRATION,
    TRANSFER_TYPE_TRANSFER,
)
from taxtron.models.ownership_transfer import OwnershipTransfer, COMPLETED
from taxtron.services import vehicle_service
from taxtron.utils.logger import get_logger

logger = get_logger(__name__)


def _entry_from_snapshot(snapshot, position, start_date, transfer_type, transfer_id=None):
    return OwnershipHistoryEntry(
        position=position,
        owner_id=snapshot.user_id,
        owner_name=snapshot.full_name,
        cnic=snapshot.cnic,
        wallet_address=snapshot.wallet_address,
        email=snapshot.email,
        start_date=start_date,
        end_date=None,
        transfer_type=transfer_type,
        transfer_id=transfer_id,
        is_current_owner=True,
    )


def _create_history(db: Session, transfer: OwnershipTransfer, vehicle: Optional[Inspection]) -> OwnershipHistory:
    history = OwnershipHistory(vehicle_id=transfer.vehicle_id, chassis_number=transfer.chassis_number)
    registered_at = None
    if vehicle is not None:
        registered_at = vehicle.inspection_date or vehicle.created_at
    history.entries.append(_entry_from_snapshot(
        transfer.from_owner,
        position=0,
        start_date=registered_at or transfer.transfer_date,
        transfer_type=TRANSFER_TYPE_REGISTRATION,
    ))
    db.add(history)
    logger.info(f"[HISTORY] Ledger created for vehicle {transfer.vehicle_id} (owner {transfer.from_owner.user_id})")
    return history


def record_transfer(db: Session, transfer: OwnershipTransfer, vehicle: Optional[Inspection] = None) -> OwnershipHistory:
    """Append `transfer` to its vehicle's ledger. Idempotent per transfer_id."""
    history = get_history_record(db, vehicle_id=transfer.vehicle_id)
    if history is None:
        history = _create_history(db, transfer, vehicle)
    elif any(e.transfer_id == transfer.transfer_id for e in history.entries):
        logger.info(f"[HISTORY] Transfer {transfer.transfer_id} already recorded, skipped")
        return history

    for entry in history.entries:
        if entry.is_current_owner or entry.end_date is None:
            entry.end_date = transfer.transfer_date
            entry.is_current_owner = False

    next_position = max((e.position for e in history.entries), default=-1) + 1
    history.entries.append(_entry_from_snapshot(
        transfer.to_owner,
        position=next_position,
        start_date=transfer.transfer_date,
        transfer_type=TRANSFER_TYPE_TRANSFER,
        transfer_id=transfer.transfer_id,
    ))
    history.total_transfers = sum(1 for e in history.entries if e.transfer_type == TRANSFER_TYPE_TRANSFER)

    db.flush()
    logger.info(
        f"[HISTORY] Vehicle {transfer.vehicle_id}: owner -> {transfer.to_owner.user_id} "
        f"(total transfers {history.total_transfers})"
    )
    return history


def rebuild_history(db: Session, vehicle_id: str, vehicle: Optional[Inspection] = None) -> Optional[OwnershipHistory]:
    """
    Drop the vehicle's ledger and replay its completed transfers, oldest first.
    Returns the new ledger, or None if the vehicle has no completed transfers.
    Only flushes; the caller commits or rolls back.
    """
    existing = get_history_record(db, vehicle_id=vehicle_id)
    if existing is not None:
        db.delete(existing)
        db.flush()

    transfers = (
        db.query(OwnershipTransfer)
        .filter(OwnershipTransfer.vehicle_id == vehicle_id, OwnershipTransfer.status == COMPLETED)
        .order_by(OwnershipTransfer.completed_at.asc(), OwnershipTransfer.id.asc())
        .all()
    )
    history = None
    for transfer in transfers:
        history = record_transfer(db, transfer, vehicle)

    logger.info(f"[HISTORY] Ledger rebuilt for vehicle {vehicle_id} from {len(transfers)} completed transfer(s)")
    return history


def get_history_record(db: Session, vehicle_id: str = None, chassis_number: str = None) -> Optional[OwnershipHistory]:
    q = db.query(OwnershipHistory)
    if vehicle_id is not None:
        q = q.filter(OwnershipHistory.vehicle_id == vehicle_id)
    elif chassis_number is not None:
        q = q.filter(OwnershipHistory.chassis_number == chassis_number)
    else:
        raise ValidationError("Vehicle ID or chassis number is required")
    return q.first()


def get_history(db: Session, vehicle_id: str = None, chassis_number: str = None):
    """
    Ledger joined with the vehicle's current descriptive details.
    Returns (history, vehicle_details or None). Raises NotFoundError.
    """
    history = get_history_record(db, vehicle_id=vehicle_id, chassis_number=chassis_number)
    if history is None:
        if chassis_number is not None and vehicle_id is None:
            raise NotFoundError("No ownership history found for this chassis number")
        raise NotFoundError("Ownership history not found")

    if vehicle_id is not None:
        vehicle = vehicle_service.get_vehicle(db, vehicle_id)
    else:
        vehicle = vehicle_service.get_vehicle_by_chassis(db, chassis_number, approved_only=True)

    details = vehicle_service.vehicle_details(vehicle) if vehicle is not None else None
    return history, details
