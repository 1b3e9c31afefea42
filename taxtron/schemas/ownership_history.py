# taxtron/schemas/ownership_history.py
from datetime import datetime
from typing import Optional

from taxtron.schemas.ownership_transfer import CamelModel


class HistoryEntryOut(CamelModel):
    owner_id: str
    owner_name: str
    cnic: str
    wallet_address: str
    email: str
    start_date: datetime
    end_date: Optional[datetime] = None
    transfer_type: str            # registration | transfer
    transfer_id: Optional[str] = None
    is_current_owner: bool


class OwnershipHistoryOut(CamelModel):
    vehicle_id: str
    chassis_number: str
    vehicle_details: Optional[dict] = None
    ownership_history: list[HistoryEntryOut]
    total_transfers: int
