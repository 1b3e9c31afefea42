# taxtron/services/transfer_service.py
"""
Ownership transfer workflow.

State machine (OwnershipTransfer.status):
  pending_admin_approval --approve--> approved
  pending_admin_approval --reject---> rejected    (terminal)
  pending_admin_approval --cancel---> cancelled   (terminal)
  approved               --cancel---> cancelled   (terminal)
  approved               --complete-> completed   (terminal)

Each write loads the transfer filtered by the legal source statuses of the
target, so a transfer in any other state is reported as "not found or
already processed". Domain rule violations raise taxtron.exceptions errors;
anything else propagates to the global handler in main.py.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from taxtron.config import settings
from taxtron.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidOperationError,
    NotFoundError,
    PaymentRequiredError,
    ValidationError,
)
from taxtron.models.inspection import Inspection
from taxtron.models.ownership_transfer import (
    ACTIVE_STATUSES,
    APPROVED,
    CANCELLED,
    COMPLETED,
    PENDING_ADMIN_APPROVAL,
    REJECTED,
    OwnerSnapshot,
    OwnershipTransfer,
    TransferId,
    UserId,
    VehicleId,
    source_statuses,
)
from taxtron.services import history_service, user_service, vehicle_service
from taxtron.utils.cnic import normalize_cnic
from taxtron.utils.logger import get_logger

logger = get_logger(__name__)

ALREADY_PROCESSED = "Transfer not found or already processed"


@dataclass
class VehicleSearchResult:
    vehicle: Inspection
    existing_transfer: Optional[OwnershipTransfer] = None


def _find_active_transfer(db: Session, vehicle_id: str) -> Optional[OwnershipTransfer]:
    return db.query(OwnershipTransfer).filter(
        OwnershipTransfer.vehicle_id == vehicle_id,
        OwnershipTransfer.status.in_(ACTIVE_STATUSES),
    ).first()


def _load_for_transition(db: Session, transfer_id: str, target: str) -> OwnershipTransfer:
    transfer = (
        db.query(OwnershipTransfer)
        .filter(
            OwnershipTransfer.transfer_id == transfer_id,
            OwnershipTransfer.status.in_(source_statuses(target)),
        )
        .with_for_update()
        .first()
    )
    if not transfer:
        raise NotFoundError(ALREADY_PROCESSED)
    return transfer


def _require_paid(vehicle: Inspection):
    if not vehicle.is_paid:
        raise PaymentRequiredError("Registration fee must be paid before transfer")
    if not vehicle.tax_paid:
        raise PaymentRequiredError("Annual tax must be paid before transfer")


def _commit(db: Session):
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


# ── Read-only steps ─────────────────────────────────────────────────────────

def search_vehicle(db: Session, chassis_number: str, user_id: UserId) -> VehicleSearchResult:
    """Find the caller's approved, fully paid vehicle by chassis number."""
    vehicle = vehicle_service.get_vehicle_by_chassis(db, chassis_number, approved_only=True)
    if not vehicle:
        raise NotFoundError("Vehicle not found or not approved for transfer")
    if vehicle.user_id != user_id:
        raise ForbiddenError("You are not the owner of this vehicle")
    _require_paid(vehicle)

    # A live transfer is reported, not treated as an error
    return VehicleSearchResult(vehicle, _find_active_transfer(db, vehicle.inspection_id))


def search_recipient(db: Session, cnic: str, user_id: UserId):
    normalized = normalize_cnic(cnic)
    user = user_service.get_user_by_cnic(db, normalized)
    if not user:
        raise NotFoundError("User not found with this CNIC")
    if user.id == user_id:
        raise InvalidOperationError("Cannot transfer vehicle to yourself")
    return user


def get_transfer_status(db: Session, transfer_id: TransferId, user_id: UserId):
    """A transfer as seen by one of its two parties. Returns (transfer, vehicle or None)."""
    transfer = db.query(OwnershipTransfer).filter(
        OwnershipTransfer.transfer_id == transfer_id,
        or_(
            OwnershipTransfer.from_owner_user_id == user_id,
            OwnershipTransfer.to_owner_user_id == user_id,
        ),
    ).first()
    if not transfer:
        raise NotFoundError("Transfer not found or you are not authorized to view this transfer")
    vehicle = vehicle_service.get_vehicle(db, transfer.vehicle_id, approved_only=True)
    return transfer, vehicle


def _with_vehicle(db: Session, transfers, by_chassis: bool):
    """Pair each transfer with a vehicle summary, falling back to placeholders."""
    result = []
    for transfer in transfers:
        try:
            if by_chassis:
                vehicle = vehicle_service.get_vehicle_by_chassis(db, transfer.chassis_number, approved_only=True)
            else:
                vehicle = vehicle_service.get_vehicle(db, transfer.vehicle_id, approved_only=True)
        except Exception as e:
            logger.warning(f"[TRANSFER] Vehicle lookup failed for {transfer.transfer_id}: {e}")
            vehicle = None

        if vehicle is not None:
            summary = vehicle_service.vehicle_summary(vehicle)
        else:
            summary = vehicle_service.unknown_vehicle_summary(transfer.chassis_number)
        result.append((transfer, summary))
    return result


def list_for_user(db: Session, user_id: UserId):
    transfers = (
        db.query(OwnershipTransfer)
        .filter(or_(
            OwnershipTransfer.from_owner_user_id == user_id,
            OwnershipTransfer.to_owner_user_id == user_id,
        ))
        .order_by(OwnershipTransfer.created_at.desc(), OwnershipTransfer.id.desc())
        .all()
    )
    return _with_vehicle(db, transfers, by_chassis=True)


def list_pending_for_admin(db: Session):
    transfers = (
        db.query(OwnershipTransfer)
        .filter(OwnershipTransfer.status == PENDING_ADMIN_APPROVAL)
        .order_by(OwnershipTransfer.created_at.desc(), OwnershipTransfer.id.desc())
        .all()
    )
    return _with_vehicle(db, transfers, by_chassis=False)


# ── State transitions ───────────────────────────────────────────────────────

def initiate(
    db: Session,
    vehicle_id: VehicleId,
    recipient_cnic: str,
    initiator_id: UserId,
    transfer_fee: Optional[int] = None,
):
    """Create a transfer in pending_admin_approval. Returns (transfer, vehicle)."""
    if not vehicle_id or not recipient_cnic:
        raise ValidationError("Vehicle ID and recipient CNIC are required")

    initiator = user_service.get_user(db, initiator_id)
    if not initiator:
        raise NotFoundError("User not found")

    vehicle = vehicle_service.get_owned_approved_vehicle(db, vehicle_id, initiator_id, for_update=True)
    if not vehicle:
        raise NotFoundError("Vehicle not found or you are not the owner")
    _require_paid(vehicle)

    recipient = user_service.get_user_by_cnic(db, normalize_cnic(recipient_cnic))
    if not recipient:
        raise NotFoundError("Recipient not found")
    if recipient.id == initiator.id:
        raise InvalidOperationError("Cannot transfer vehicle to yourself")

    if _find_active_transfer(db, vehicle_id):
        raise ConflictError("Vehicle is already in transfer process")

    now = datetime.utcnow()
    transfer = OwnershipTransfer(
        vehicle_id=vehicle.inspection_id,
        chassis_number=vehicle.chassis_number,
        from_owner=OwnerSnapshot.from_user(initiator),
        to_owner=OwnerSnapshot.from_user(recipient),
        transfer_date=now,
        transfer_fee=transfer_fee or settings.DEFAULT_TRANSFER_FEE,
        status=PENDING_ADMIN_APPROVAL,
        initiated_by=initiator.id,
        created_at=now,
        updated_at=now,
    )
    db.add(transfer)
    try:
        db.commit()
    except IntegrityError:
        # Lost the race against a concurrent initiate for the same vehicle
        db.rollback()
        logger.warning(f"[TRANSFER] Duplicate live transfer rejected for vehicle {vehicle_id}")
        raise ConflictError("Vehicle is already in transfer process")
    db.refresh(transfer)

    logger.info(
        f"[TRANSFER] {transfer.transfer_id} initiated: vehicle={vehicle_id} "
        f"{initiator.id} -> {recipient.id} fee={transfer.transfer_fee}"
    )
    return transfer, vehicle


def cancel(db: Session, transfer_id: TransferId, user_id: UserId) -> OwnershipTransfer:
    transfer = _load_for_transition(db, transfer_id, CANCELLED)
    if transfer.initiated_by != user_id:
        db.rollback()
        raise ForbiddenError("You are not authorized to cancel this transfer")

    transfer.status = CANCELLED
    transfer.updated_at = datetime.utcnow()
    _commit(db)
    logger.info(f"[TRANSFER] {transfer_id} cancelled by {user_id}")
    return transfer


def admin_approve(db: Session, transfer_id: TransferId, admin_id: str = None, admin_notes: str = None):
    transfer = _load_for_transition(db, transfer_id, APPROVED)

    now = datetime.utcnow()
    transfer.status = APPROVED
    transfer.reviewed_by = admin_id
    transfer.reviewed_at = now
    transfer.updated_at = now
    if admin_notes:
        transfer.admin_notes = admin_notes
    _commit(db)
    logger.info(f"[TRANSFER] {transfer_id} approved by admin {admin_id}")
    return transfer


def admin_reject(db: Session, transfer_id: TransferId, rejection_reason: Optional[str], admin_id: str = None):
    if not rejection_reason or not rejection_reason.strip():
        raise ValidationError("Rejection reason is required")

    transfer = _load_for_transition(db, transfer_id, REJECTED)

    now = datetime.utcnow()
    transfer.status = REJECTED
    transfer.rejection_reason = rejection_reason.strip()
    transfer.reviewed_by = admin_id
    transfer.reviewed_at = now
    transfer.updated_at = now
    _commit(db)
    logger.info(f"[TRANSFER] {transfer_id} rejected by admin {admin_id}: {transfer.rejection_reason}")
    return transfer


def complete(
    db: Session,
    transfer_id: TransferId,
    user_id: UserId,
    blockchain_tx_hash: Optional[str] = None,
    transfer_deed: Optional[str] = None,
) -> OwnershipTransfer:
    """
    Finish an approved transfer. Transfer status, vehicle owner and the
    history ledger are written in one transaction: all or nothing.
    """
    transfer = _load_for_transition(db, transfer_id, COMPLETED)
    if transfer.initiated_by != user_id:
        db.rollback()
        raise ForbiddenError("You are not authorized to complete this transfer")

    vehicle = (
        db.query(Inspection)
        .filter(Inspection.inspection_id == transfer.vehicle_id)
        .with_for_update()
        .first()
    )
    if not vehicle:
        db.rollback()
        raise NotFoundError("Vehicle not found")

    try:
        now = datetime.utcnow()
        vehicle.user_id = transfer.to_owner.user_id
        vehicle.updated_at = now

        transfer.status = COMPLETED
        transfer.blockchain_tx_hash = blockchain_tx_hash or ""
        transfer.transfer_deed = transfer_deed or ""
        transfer.completed_at = now
        transfer.updated_at = now

        history_service.record_transfer(db, transfer, vehicle)
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"[TRANSFER] Completing {transfer_id} failed, rolled back", exc_info=True)
        raise

    logger.info(f"[TRANSFER] {transfer_id} completed: vehicle {transfer.vehicle_id} now owned by {vehicle.user_id}")
    return transfer
