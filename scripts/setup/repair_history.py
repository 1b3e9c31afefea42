# scripts/setup/repair_history.py
"""
Backfill ownership history for completed transfers missing from the ledger
(records written before history appends shared the completion transaction).

A gap can sit anywhere in the chain, so each affected vehicle gets its whole
ledger rebuilt from its completed transfers in completion order. The rebuild
is only committed when the ledger's current owner matches the vehicle's
owner; otherwise it is rolled back and the vehicle is reported.
Safe to run repeatedly.
Usage: python scripts/setup/repair_history.py [--dry-run]
"""

import argparse
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from sqlalchemy import select
from taxtron.database import SessionLocal
from taxtron.models.ownership_history import OwnershipHistoryEntry
from taxtron.models.ownership_transfer import OwnershipTransfer, COMPLETED
from taxtron.services import history_service, vehicle_service
from taxtron.utils.logger import get_logger

logger = get_logger(__name__)


def find_unrecorded(db):
    recorded = select(OwnershipHistoryEntry.transfer_id).where(OwnershipHistoryEntry.transfer_id.isnot(None))
    return (
        db.query(OwnershipTransfer)
        .filter(OwnershipTransfer.status == COMPLETED, ~OwnershipTransfer.transfer_id.in_(recorded))
        .order_by(OwnershipTransfer.completed_at.asc())
        .all()
    )


def repair_vehicle(db, vehicle_id) -> bool:
    """Rebuild one vehicle's ledger. Commits and returns True only if it ends on the vehicle's owner."""
    vehicle = vehicle_service.get_vehicle(db, vehicle_id)
    if vehicle is None:
        logger.warning(f"[REPAIR] Vehicle {vehicle_id} not found, ledger left untouched")
        return False

    owner_id = vehicle.user_id
    history = history_service.rebuild_history(db, vehicle_id, vehicle)
    current = history.current_entry if history is not None else None
    ledger_owner = current.owner_id if current is not None else None
    if ledger_owner != owner_id:
        db.rollback()
        logger.warning(
            f"[REPAIR] Vehicle {vehicle_id}: rebuilt ledger ends on {ledger_owner} "
            f"but vehicle owner is {owner_id}, rolled back"
        )
        return False

    db.commit()
    logger.info(f"[REPAIR] Vehicle {vehicle_id}: ledger rebuilt ({history.total_transfers} transfers)")
    return True


def repair(db):
    """Returns (repaired_vehicle_ids, refused_vehicle_ids)."""
    vehicle_ids = []
    for transfer in find_unrecorded(db):
        if transfer.vehicle_id not in vehicle_ids:
            vehicle_ids.append(transfer.vehicle_id)

    repaired, refused = [], []
    for vehicle_id in vehicle_ids:
        (repaired if repair_vehicle(db, vehicle_id) else refused).append(vehicle_id)
    return repaired, refused


def main():
    parser = argparse.ArgumentParser(description="Repair ownership history ledger")
    parser.add_argument("--dry-run", action="store_true")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        missing = find_unrecorded(db)
        print(f"🔎 {len(missing)} completed transfer(s) missing from history")
        for transfer in missing:
            print(f"   • {transfer.transfer_id} vehicle={transfer.vehicle_id} -> {transfer.to_owner.user_id}")
        if args.dry_run or not missing:
            return

        repaired, refused = repair(db)
        for vehicle_id in repaired:
            print(f"✅ {vehicle_id}: ledger rebuilt")
        for vehicle_id in refused:
            print(f"⚠️  {vehicle_id}: ledger does not end on the vehicle's owner, needs manual review")
    finally:
        db.close()


if __name__ == "__main__":
    main()
