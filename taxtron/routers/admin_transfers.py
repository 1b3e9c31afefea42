# taxtron/routers/admin_transfers.py
"""Admin review of ownership transfers: pending queue, approve and reject. Admin token required."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from taxtron.database import get_db
from taxtron.dependencies.auth import get_current_admin_id
from taxtron.schemas.ownership_transfer import AdminApproveRequest, AdminRejectRequest, TransferOut
from taxtron.services import transfer_service
from taxtron.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("/admin/pending-transfers", summary="Transfers awaiting admin approval")
def pending_transfers(admin_id: str = Depends(get_current_admin_id), db: Session = Depends(get_db)):
    transfers = transfer_service.list_pending_for_admin(db)
    logger.debug(f"Admin {admin_id} fetched {len(transfers)} pending transfers")
    return {
        "success": True,
        "transfers": [
            {**TransferOut.model_validate(t).model_dump(mode="json", by_alias=True), "vehicle": v}
            for t, v in transfers
        ],
    }


@router.post("/admin/approve/{transfer_id}", summary="Approve a pending transfer")
def approve_transfer(transfer_id: str, body: Optional[AdminApproveRequest] = None,
                     admin_id: str = Depends(get_current_admin_id), db: Session = Depends(get_db)):
    body = body or AdminApproveRequest()
    transfer = transfer_service.admin_approve(db, transfer_id, admin_id=admin_id, admin_notes=body.admin_notes)
    return {
        "success": True,
        "message": "Transfer approved successfully",
        "transfer": {
            "transferId": transfer.transfer_id,
            "status": transfer.status,
            "approvedAt": transfer.reviewed_at,
        },
    }


@router.post("/admin/reject/{transfer_id}", summary="Reject a pending transfer (reason required)")
def reject_transfer(transfer_id: str, body: Optional[AdminRejectRequest] = None,
                    admin_id: str = Depends(get_current_admin_id), db: Session = Depends(get_db)):
    reason = body.rejection_reason if body else None
    transfer = transfer_service.admin_reject(db, transfer_id, reason, admin_id=admin_id)
    return {
        "success": True,
        "message": "Transfer rejected successfully",
        "transfer": {
            "transferId": transfer.transfer_id,
            "status": transfer.status,
            "rejectedAt": transfer.reviewed_at,
            "rejectionReason": transfer.rejection_reason,
        },
    }
