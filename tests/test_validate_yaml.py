#!/usr/bin/env python3
"""Tests for validate_yaml schema validation."""

from pathlib import Path

import pytest

from fleetmaint import ValidationError
from fleetmaint.schema import load_schema, validate_rule_payload
from validate_yaml import main, validate_fleet_file

VALID = """
trucks:
  - id: t-1
    plateNumber: AB-101
    mileage: 120000
    registrationDate: '2019-04-02'

rules:
  - id: r-oil
    name: Engine oil
    category: oil_change
    intervalType: mileage
    intervalMileage: 20000
"""


class TestLoadSchema:
    """Tests for load_schema function."""

    def test_returns_dict(self):
        assert isinstance(load_schema(), dict)

    def test_has_expected_structure(self):
        schema = load_schema()
        assert "trucks" in schema["properties"]
        assert "rules" in schema["properties"]
        assert {"truck", "rule", "record", "settings"} <= set(schema["$defs"])


class TestValidateFleetFile:
    """Tests for validate_fleet_file function."""

    def test_valid_minimal_returns_no_errors(self, tmp_path):
        path = tmp_path / "valid.yaml"
        path.write_text(VALID)
        assert validate_fleet_file(path, load_schema()) == []

    def test_example_file_is_valid(self):
        path = Path(__file__).parent.parent / "fleet.example.yaml"
        assert validate_fleet_file(path, load_schema()) == []

    def test_unquoted_dates_are_valid(self, tmp_path):
        path = tmp_path / "valid.yaml"
        path.write_text(VALID.replace("'2019-04-02'", "2019-04-02"))
        assert validate_fleet_file(path, load_schema()) == []

    def test_missing_required_truck_field_returns_errors(self, tmp_path):
        path = tmp_path / "invalid.yaml"
        path.write_text(VALID.replace("    plateNumber: AB-101\n", ""))
        errors = validate_fleet_file(path, load_schema())
        assert errors[0].startswith("Schema validation error")
        assert "plateNumber" in errors[0]
        assert "at path: trucks.0" in errors[1]

    def test_both_rule_requires_interval_days(self, tmp_path):
        path = tmp_path / "invalid.yaml"
        path.write_text(VALID.replace("intervalType: mileage", "intervalType: both"))
        errors = validate_fleet_file(path, load_schema())
        assert any("intervalDays" in e for e in errors)

    def test_invalid_yaml_returns_parse_error(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("trucks: [\n  - unclosed")
        errors = validate_fleet_file(path, load_schema())
        assert len(errors) == 1
        assert errors[0].startswith("YAML parse error")

    def test_nonexistent_file_returns_errors(self, tmp_path):
        errors = validate_fleet_file(tmp_path / "missing.yaml", load_schema())
        assert len(errors) == 1
        assert errors[0].startswith("Error:")


class TestValidateRulePayload:
    """Tests for API rule payload validation."""

    def test_valid(self):
        validate_rule_payload({
            "name": "Brakes",
            "category": "brakes",
            "intervalType": "time",
            "intervalDays": 90,
            "priority": "critical",
        })

    def test_time_requires_interval_days(self):
        with pytest.raises(ValidationError, match="intervalDays"):
            validate_rule_payload({"name": "Brakes", "category": "brakes", "intervalType": "time"})

    def test_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            validate_rule_payload({
                "name": "Oil",
                "category": "oil",
                "intervalType": "mileage",
                "intervalMileage": 10000,
                "color": "red",
            })

    def test_rejects_zero_interval(self):
        with pytest.raises(ValidationError):
            validate_rule_payload({
                "name": "Oil", "category": "oil", "intervalType": "mileage", "intervalMileage": 0,
            })


class TestMain:
    def test_reports_ok_and_fail(self, tmp_path, capsys):
        good = tmp_path / "good.yaml"
        good.write_text(VALID)
        bad = tmp_path / "bad.yaml"
        bad.write_text("rules: []\n")

        assert main([str(good)]) == 0
        assert main([str(good), str(bad)]) == 1
        out = capsys.readouterr().out
        assert "OK: good.yaml" in out
        assert "FAIL: bad.yaml" in out
