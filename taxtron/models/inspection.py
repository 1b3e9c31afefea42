# taxtron/models/inspection.py
"""
Inspections table: the vehicle's primary record once approved.
inspection_id is the vehicle id used throughout the transfer workflow;
user_id is the current owner and changes once per completed transfer.
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from taxtron.database import Base

STATUS_PENDING = "Pending"
STATUS_APPROVED = "Approved"
STATUS_REJECTED = "Rejected"

VEHICLE_TYPES = ("Car", "Motorcycle", "Truck", "Bus", "Van", "SUV", "Other")


class Inspection(Base):
    __tablename__ = "inspections"

    id = Column(Integer, primary_key=True, autoincrement=True)
    inspection_id = Column(String(64), unique=True, nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    # Vehicle details
    engine_number = Column(String(100), unique=True, nullable=False)
    chassis_number = Column(String(100), unique=True, nullable=False, index=True)
    make = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    variant = Column(String(100))
    manufacturing_year = Column(Integer)
    registration_year = Column(Integer)
    vehicle_type = Column(String(20), nullable=False, default="Other")
    fuel_type = Column(String(20))
    engine_capacity = Column(Integer)
    color = Column(String(50))

    status = Column(String(20), nullable=False, default=STATUS_PENDING, index=True)
    registration_number = Column(String(50))
    is_paid = Column(Boolean, default=False, nullable=False)     # registration fee
    tax_paid = Column(Boolean, default=False, nullable=False)    # annual tax
    inspection_date = Column(DateTime)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)

    owner = relationship("User")

    def __repr__(self):
        return f"<Inspection {self.inspection_id} chassis={self.chassis_number} status={self.status}>"
