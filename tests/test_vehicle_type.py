# tests/test_vehicle_type.py
"""Unit tests for the make/model vehicle type guess."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from taxtron.utils.vehicle_type import classify_vehicle_type


class TestClassifyVehicleType:
    def test_known_type_kept(self):
        assert classify_vehicle_type("Truck", "Yamaha", "R15") == "Truck"

    def test_motorcycle_by_make(self):
        assert classify_vehicle_type("Other", "Kawasaki", "Z900") == "Motorcycle"

    def test_motorcycle_by_model(self):
        assert classify_vehicle_type("Other", "Unique", "Pulsar 150") == "Motorcycle"

    def test_car_by_make(self):
        assert classify_vehicle_type("Other", "Toyota", "Corolla") == "Car"

    def test_shared_make_resolves_to_motorcycle(self):
        # honda/suzuki appear in both lists; the motorcycle check runs first
        assert classify_vehicle_type("Other", "Honda", "Civic") == "Motorcycle"

    def test_unmatched_stays_other(self):
        assert classify_vehicle_type("Other", "Tesla", "Model 3") == "Other"

    def test_missing_make_and_model(self):
        assert classify_vehicle_type("Other", None, None) == "Other"
