# taxtron/routers/ownership_transfer.py
"""
Ownership transfer endpoints for vehicle owners and recipients.
All routes require a user bearer token except /search-history (public).
Admin review lives in admin_transfers.py under the same prefix.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from taxtron.database import get_db
from taxtron.dependencies.auth import get_current_user_id
from taxtron.schemas.ownership_history import HistoryEntryOut, OwnershipHistoryOut
from taxtron.schemas.ownership_transfer import (
    CompleteTransferRequest,
    InitiateTransferRequest,
    OwnerSnapshotOut,
    RecipientOut,
    TransferOut,
)
from taxtron.services import history_service, transfer_service, vehicle_service

router = APIRouter()


def history_response(history, vehicle_details) -> dict:
    return {
        "success": True,
        "history": OwnershipHistoryOut(
            vehicle_id=history.vehicle_id,
            chassis_number=history.chassis_number,
            vehicle_details=vehicle_details,
            ownership_history=[HistoryEntryOut.model_validate(e) for e in history.entries],
            total_transfers=history.total_transfers,
        ),
    }


@router.get("/search-vehicle/{chassis_number}", summary="Find own vehicle eligible for transfer")
def search_vehicle(chassis_number: str, user_id: str = Depends(get_current_user_id),
                   db: Session = Depends(get_db)):
    result = transfer_service.search_vehicle(db, chassis_number, user_id)
    vehicle = result.vehicle
    owner = vehicle.owner

    response = {
        "success": True,
        "vehicle": {
            **vehicle_service.vehicle_summary(vehicle),
            "currentOwner": {
                "name": owner.full_name,
                "cnic": owner.cnic,
                "email": owner.email,
                "walletAddress": owner.wallet_address,
            },
        },
    }

    existing = result.existing_transfer
    if existing:
        response["existingTransfer"] = {
            "transferId": existing.transfer_id,
            "status": existing.status,
            "fromOwner": OwnerSnapshotOut.model_validate(existing.from_owner),
            "toOwner": OwnerSnapshotOut.model_validate(existing.to_owner),
            "transferFee": existing.transfer_fee,
            "createdAt": existing.created_at,
            "initiatedBy": existing.initiated_by == user_id,
        }
    return response


@router.get("/search-user/{cnic}", summary="Find transfer recipient by CNIC")
def search_user(cnic: str, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    user = transfer_service.search_recipient(db, cnic, user_id)
    return {
        "success": True,
        "user": RecipientOut(
            user_id=user.id,
            full_name=user.full_name,
            cnic=user.cnic,
            email=user.email,
            wallet_address=user.wallet_address,
        ),
    }


@router.post("/initiate", summary="Start an ownership transfer")
def initiate_transfer(body: InitiateTransferRequest, user_id: str = Depends(get_current_user_id),
                      db: Session = Depends(get_db)):
    transfer, vehicle = transfer_service.initiate(
        db, body.vehicle_id, body.recipient_cnic, user_id, transfer_fee=body.transfer_fee,
    )
    return {
        "success": True,
        "message": "Transfer initiated successfully",
        "transferId": transfer.transfer_id,
        "transfer": {
            "transferId": transfer.transfer_id,
            "vehicle": {
                "make": vehicle.make,
                "model": vehicle.model,
                "chassisNumber": vehicle.chassis_number,
                "registrationNumber": vehicle.registration_number,
            },
            "fromOwner": OwnerSnapshotOut.model_validate(transfer.from_owner),
            "toOwner": OwnerSnapshotOut.model_validate(transfer.to_owner),
            "transferFee": transfer.transfer_fee,
            "status": transfer.status,
        },
    }


@router.post("/cancel/{transfer_id}", summary="Cancel a pending or approved transfer")
def cancel_transfer(transfer_id: str, user_id: str = Depends(get_current_user_id),
                    db: Session = Depends(get_db)):
    transfer = transfer_service.cancel(db, transfer_id, user_id)
    return {
        "success": True,
        "message": "Transfer cancelled successfully",
        "transfer": {
            "transferId": transfer.transfer_id,
            "status": transfer.status,
            "cancelledAt": transfer.updated_at,
        },
    }


@router.post("/complete/{transfer_id}", summary="Complete an approved transfer")
def complete_transfer(transfer_id: str, body: Optional[CompleteTransferRequest] = None,
                      user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    body = body or CompleteTransferRequest()
    transfer = transfer_service.complete(
        db, transfer_id, user_id,
        blockchain_tx_hash=body.blockchain_tx_hash,
        transfer_deed=body.transfer_deed,
    )
    return {
        "success": True,
        "message": "Transfer completed successfully",
        "transfer": {
            "transferId": transfer.transfer_id,
            "status": transfer.status,
            "completedAt": transfer.completed_at,
        },
    }


@router.get("/history/{vehicle_id}", summary="Ownership history of a vehicle")
def get_history(vehicle_id: str, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    history, details = history_service.get_history(db, vehicle_id=vehicle_id)
    return history_response(history, details)


@router.get("/search-history/{chassis_number}", summary="Public ownership history lookup by chassis")
def search_history(chassis_number: str, db: Session = Depends(get_db)):
    history, details = history_service.get_history(db, chassis_number=chassis_number)
    return history_response(history, details)


@router.get("/transfer-status/{transfer_id}", summary="Status of one of my transfers")
def transfer_status(transfer_id: str, user_id: str = Depends(get_current_user_id),
                    db: Session = Depends(get_db)):
    transfer, vehicle = transfer_service.get_transfer_status(db, transfer_id, user_id)
    response = {
        "success": True,
        "transfer": {
            "transferId": transfer.transfer_id,
            "status": transfer.status,
            "fromOwner": OwnerSnapshotOut.model_validate(transfer.from_owner),
            "toOwner": OwnerSnapshotOut.model_validate(transfer.to_owner),
            "transferFee": transfer.transfer_fee,
            "createdAt": transfer.created_at,
            "completedAt": transfer.completed_at,
            "initiatedBy": transfer.initiated_by == user_id,
        },
    }
    if vehicle:
        response["vehicle"] = vehicle_service.vehicle_summary(vehicle)
    return response


@router.get("/my-transfers", summary="Transfers I sent or received")
def my_transfers(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    transfers = transfer_service.list_for_user(db, user_id)
    return {
        "success": True,
        "transfers": [
            {**TransferOut.model_validate(t).model_dump(mode="json", by_alias=True), "vehicle": v}
            for t, v in transfers
        ],
    }
