#!/usr/bin/env python3
"""Tests for the sentinel CLI: formatting helpers and commands."""
import pytest
from datetime import date

from mecsentinel import (
    Category,
    DEFAULT_INTERVALS,
    HistoryEntry,
    MaintenanceItem,
    MaintenanceRule,
    Status,
    load_vehicle,
)
from sentinel import (
    format_days,
    format_interval,
    format_km,
    format_last_done,
    main,
    make_rules_table,
    make_status_table,
)


def make_item(last_service=None):
    return MaintenanceItem(
        category=Category.OIL,
        name="Engine oil",
        status=Status.NORMAL,
        days_remaining=105,
        km_remaining=5000,
        next_date=date(2025, 7, 15),
        next_km=50000,
        interval=DEFAULT_INTERVALS[Category.OIL],
        description=Category.OIL.description,
        last_service=last_service,
    )


@pytest.fixture
def vehicle_file(tmp_path):
    path = tmp_path / "onix.yaml"
    assert main([str(path), "create", "--model", "Onix", "--year", "2019", "--km", "45000", "--usage", "city"]) == 0
    return path


class TestFormatting:
    """Tests for formatting helpers."""

    def test_format_km(self):
        assert format_km(50000) == "50,000"
        assert format_km(0) == "0"
        assert format_km(None) == "-"

    def test_format_days(self):
        assert format_days(105) == "3mo 15d"
        assert format_days(14) == "14d"
        assert format_days(0) == "0d"

    def test_format_interval(self):
        assert format_interval(6, 10000) == "6 mo / 10,000 km"
        assert format_interval(36, 0) == "36 mo"

    def test_format_last_done(self):
        assert format_last_done(make_item()) == "-"
        entry = HistoryEntry(Category.OIL, date="2025-01-15", km=40000)
        assert format_last_done(make_item(entry)) == "2025-01-15 @ 40,000 km"
        assert format_last_done(make_item(HistoryEntry(Category.OIL, km=40000))) == "40,000 km"


class TestTables:
    """Tests for table builders."""

    def test_status_table_row(self):
        rows = make_status_table([make_item()])
        assert rows == [["Engine oil", "NORMAL", "-", "2025-07-15", "50,000", "3mo 15d", "5,000"]]

    def test_status_table_empty(self):
        assert make_status_table([]) == []

    def test_rules_table_sources(self):
        rules = [
            MaintenanceRule(Category.OIL, 4, 5000, ai_suggested=True),
            MaintenanceRule(Category.TIRES, 36, 40000, ai_suggested=True, user_adjusted=True),
            MaintenanceRule(Category.BRAKES, 12, 20000, user_adjusted=True),
        ]
        rows = make_rules_table(rules)
        assert rows == [
            ["Engine oil", "4 mo / 5,000 km", "AI"],
            ["Tires", "36 mo / 40,000 km", "adjusted (AI)"],
            ["Brake pads", "12 mo / 20,000 km", "adjusted"],
            ["Battery", "36 mo", "default"],
        ]


class TestCommands:
    """Tests for CLI commands against a temporary vehicle file."""

    def test_create(self, vehicle_file):
        vehicle = load_vehicle(vehicle_file)
        assert vehicle.model == "Onix"
        assert vehicle.current_km == 45000

    def test_create_refuses_existing(self, vehicle_file, capsys):
        assert main([str(vehicle_file), "create", "--model", "X", "--year", "2020", "--km", "1"]) == 1
        assert "already exists" in capsys.readouterr().out

    def test_create_requires_km(self, tmp_path, capsys):
        path = tmp_path / "new.yaml"
        assert main([str(path), "create", "--model", "X", "--year", "2020"]) == 1
        assert not path.exists()

    def test_create_zero_km(self, tmp_path):
        path = tmp_path / "new.yaml"
        assert main([str(path), "create", "--model", "X", "--year", "2025", "--zero-km"]) == 0
        vehicle = load_vehicle(path)
        assert vehicle.zero_km is True
        assert vehicle.current_km == 0

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.yaml"), "status"]) == 1
        assert "File not found" in capsys.readouterr().out

    def test_log_and_status(self, vehicle_file, capsys):
        assert main([str(vehicle_file), "log", "oil", "--date", "2025-01-15", "--km", "40000"]) == 0
        capsys.readouterr()

        assert main([str(vehicle_file), "status", "--as-of", "2025-06-20"]) == 0
        out = capsys.readouterr().out
        assert "Vehicle: 2019 Onix (car)" in out
        assert "2025-01-15 @ 40,000 km" in out
        assert "Most urgent: Battery (critical)" in out
        assert "ATTENTION: Engine oil" in out

    def test_log_unknown_category(self, vehicle_file, capsys):
        assert main([str(vehicle_file), "log", "wipers"]) == 1
        assert "Unknown category" in capsys.readouterr().out

    def test_log_dry_run(self, vehicle_file):
        assert main([str(vehicle_file), "log", "oil", "--km", "44000", "--dry-run"]) == 0
        assert load_vehicle(vehicle_file).history == []

    def test_update_km(self, vehicle_file):
        assert main([str(vehicle_file), "update-km", "46000"]) == 0
        assert load_vehicle(vehicle_file).current_km == 46000

    def test_update_km_monthly(self, vehicle_file):
        assert main([str(vehicle_file), "update-km", "--monthly", "800"]) == 0
        assert load_vehicle(vehicle_file).current_km == 45800

    def test_update_km_rejects_lower_reading(self, vehicle_file, capsys):
        assert main([str(vehicle_file), "update-km", "100"]) == 1
        assert "must be greater" in capsys.readouterr().out
        assert load_vehicle(vehicle_file).current_km == 45000

    def test_rules_set(self, vehicle_file, capsys):
        assert main([str(vehicle_file), "rules", "--set", "oil", "4", "5000"]) == 0
        rules = load_vehicle(vehicle_file).rules
        assert len(rules) == 1
        assert rules[0].interval_km == 5000
        assert rules[0].user_adjusted is True
        assert "4 mo / 5,000 km" in capsys.readouterr().out

    def test_status_defaults_ignores_rules(self, vehicle_file, capsys):
        main([str(vehicle_file), "log", "oil", "--km", "44000"])
        main([str(vehicle_file), "rules", "--set", "oil", "6", "1500"])
        capsys.readouterr()
        main([str(vehicle_file), "status", "--defaults", "--as-of", "2025-03-10"])
        out = capsys.readouterr().out
        assert "Intervals: DEFAULT" in out
        assert "54,000" in out

    def test_rules_set_rejects_invalid_interval(self, vehicle_file, capsys):
        assert main([str(vehicle_file), "rules", "--set", "oil", "0", "5000"]) == 1
        assert main([str(vehicle_file), "rules", "--set", "oil", "6", "-5"]) == 1
        assert "Error:" in capsys.readouterr().out
        assert load_vehicle(vehicle_file).rules == []

    def test_rules_set_unknown_category(self, vehicle_file, capsys):
        assert main([str(vehicle_file), "rules", "--set", "wipers", "6", "5000"]) == 1
        assert "Unknown category" in capsys.readouterr().out

    def test_log_rejects_negative_km(self, vehicle_file, capsys):
        assert main([str(vehicle_file), "log", "oil", "--km", "-5"]) == 1
        assert "Error:" in capsys.readouterr().out
        assert load_vehicle(vehicle_file).history == []

    def test_status_invalid_as_of(self, vehicle_file, capsys):
        assert main([str(vehicle_file), "status", "--as-of", "2025-13-45"]) == 1
        assert "Error: Invalid --as-of date" in capsys.readouterr().out
