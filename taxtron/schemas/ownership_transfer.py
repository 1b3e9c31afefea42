# taxtron/schemas/ownership_transfer.py
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Optional


class CamelModel(BaseModel):
    """snake_case in Python, camelCase on the wire."""

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class InitiateTransferRequest(CamelModel):
    vehicle_id: Optional[str] = None
    recipient_cnic: Optional[str] = None
    transfer_fee: Optional[int] = Field(None, ge=0)   # PKR; missing or 0 means the 5000 default


class CompleteTransferRequest(CamelModel):
    blockchain_tx_hash: Optional[str] = None
    transfer_deed: Optional[str] = None               # base64 PDF


class AdminApproveRequest(CamelModel):
    admin_notes: Optional[str] = None


class AdminRejectRequest(CamelModel):
    rejection_reason: Optional[str] = None


class OwnerSnapshotOut(CamelModel):
    user_id: str
    full_name: str
    cnic: str
    wallet_address: str
    email: str


class TransferOut(CamelModel):
    transfer_id: str
    vehicle_id: str
    chassis_number: str
    from_owner: OwnerSnapshotOut
    to_owner: OwnerSnapshotOut
    transfer_date: datetime
    transfer_fee: int
    status: str
    blockchain_tx_hash: Optional[str] = ""
    transfer_deed: Optional[str] = ""
    rejection_reason: Optional[str] = ""
    admin_notes: Optional[str] = None
    initiated_by: str
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class RecipientOut(CamelModel):
    user_id: str
    full_name: str
    cnic: str
    email: str
    wallet_address: str
