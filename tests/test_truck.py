#!/usr/bin/env python3
"""Tests for Truck class."""
from datetime import date

import pytest

from fleetmaint import Truck, ValidationError


def make_truck(**overrides):
    fields = dict(
        id="t1",
        plate_number="ab-101",
        brand="Volvo",
        model="FH16",
        year=2019,
        mileage=120000,
        registration_date=date(2019, 4, 2),
    )
    fields.update(overrides)
    return Truck(**fields)


class TestTruck:
    """Tests for Truck class."""

    def test_plate_number_uppercased(self):
        assert make_truck().plate_number == "AB-101"

    def test_defaults(self):
        truck = make_truck()
        assert truck.registration_mileage == 0
        assert truck.status == "available"

    def test_name_with_year(self):
        assert make_truck().name == "2019 Volvo FH16 [AB-101]"

    def test_name_without_year(self):
        assert make_truck(year=None).name == "Volvo FH16 [AB-101]"

    def test_is_active(self):
        assert make_truck(status="in_use").is_active
        assert not make_truck(status="inactive").is_active


class TestTruckValidation:
    def test_valid(self):
        make_truck().validate()

    def test_negative_mileage(self):
        with pytest.raises(ValidationError, match="mileage"):
            make_truck(mileage=-1).validate()

    def test_negative_registration_mileage(self):
        with pytest.raises(ValidationError, match="registration mileage"):
            make_truck(registration_mileage=-10).validate()

    def test_unknown_status(self):
        with pytest.raises(ValidationError, match="status"):
            make_truck(status="parked").validate()
