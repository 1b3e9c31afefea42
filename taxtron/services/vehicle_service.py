# taxtron/services/vehicle_service.py
"""
Vehicle (inspection) lookup helpers and the descriptive projections the
transfer endpoints return. Used by transfer_service and history_service.
"""

from typing import Optional

from sqlalchemy.orm import Session
from taxtron.models.inspection import Inspection, STATUS_APPROVED
from taxtron.utils.vehicle_type import classify_vehicle_type
from taxtron.utils.logger import get_logger

logger = get_logger(__name__)

UNKNOWN = "Unknown"


def get_vehicle(db: Session, vehicle_id: str, approved_only: bool = False) -> Optional[Inspection]:
    """Find a vehicle by inspection id. Returns None if not found."""
    q = db.query(Inspection).filter(Inspection.inspection_id == vehicle_id)
    if approved_only:
        q = q.filter(Inspection.status == STATUS_APPROVED)
    return q.first()


def get_vehicle_by_chassis(db: Session, chassis_number: str, approved_only: bool = False) -> Optional[Inspection]:
    q = db.query(Inspection).filter(Inspection.chassis_number == chassis_number)
    if approved_only:
        q = q.filter(Inspection.status == STATUS_APPROVED)
    return q.first()


def get_owned_approved_vehicle(db: Session, vehicle_id: str, user_id: str, for_update: bool = False):
    q = db.query(Inspection).filter(
        Inspection.inspection_id == vehicle_id,
        Inspection.user_id == user_id,
        Inspection.status == STATUS_APPROVED,
    )
    if for_update:
        q = q.with_for_update()
    return q.first()


def vehicle_summary(vehicle: Inspection) -> dict:
    """Fields shown alongside a transfer."""
    return {
        "inspectionId": vehicle.inspection_id,
        "chassisNumber": vehicle.chassis_number,
        "make": vehicle.make,
        "model": vehicle.model,
        "year": vehicle.manufacturing_year,
        "vehicleType": vehicle.vehicle_type,
        "engineNumber": vehicle.engine_number,
        "engineCapacity": vehicle.engine_capacity,
        "color": vehicle.color,
        "fuelType": vehicle.fuel_type,
        "registrationNumber": vehicle.registration_number,
    }


def unknown_vehicle_summary(chassis_number: str) -> dict:
    """Placeholder when the vehicle behind a transfer can't be loaded."""
    return {
        "make": UNKNOWN,
        "model": UNKNOWN,
        "year": UNKNOWN,
        "chassisNumber": chassis_number,
        "engineNumber": UNKNOWN,
        "color": UNKNOWN,
    }


def vehicle_details(vehicle: Inspection) -> dict:
    """Full descriptive block for the ownership history view."""
    return {
        "make": vehicle.make,
        "model": vehicle.model,
        "year": vehicle.manufacturing_year or vehicle.registration_year,
        "chassisNumber": vehicle.chassis_number,
        "engineNumber": vehicle.engine_number,
        "color": vehicle.color,
        "variant": vehicle.variant,
        "vehicleType": classify_vehicle_type(vehicle.vehicle_type, vehicle.make, vehicle.model),
        "fuelType": vehicle.fuel_type,
        "engineCapacity": vehicle.engine_capacity,
        "manufacturingYear": vehicle.manufacturing_year,
        "registrationYear": vehicle.registration_year,
    }
