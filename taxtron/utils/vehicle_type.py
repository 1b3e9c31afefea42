# taxtron/utils/vehicle_type.py
"""
Read-time vehicle category guess for records stored as "Other".
Keyword match on make/model; motorcycle keywords win over car makes.
"""

from typing import Optional

MOTORCYCLE_MAKES = ("yamaha", "honda", "suzuki", "kawasaki", "bajaj", "tvs")
MOTORCYCLE_MODELS = ("r15", "cbr", "ninja", "pulsar", "apache", "scooter")
CAR_MAKES = ("toyota", "honda", "suzuki", "hyundai", "kia", "nissan", "ford", "chevrolet", "skoda")


def classify_vehicle_type(vehicle_type: Optional[str], make: Optional[str], model: Optional[str]) -> Optional[str]:
    if vehicle_type != "Other":
        return vehicle_type

    make = (make or "").lower()
    model = (model or "").lower()

    if any(k in make for k in MOTORCYCLE_MAKES) or any(k in model for k in MOTORCYCLE_MODELS):
        return "Motorcycle"
    if any(k in make for k in CAR_MAKES):
        return "Car"
    return vehicle_type
