"""
Tests for the YAML dataset adapter.
"""

from datetime import date, time
from pathlib import Path

import pytest

from shiftresolver.adapters.dataset_loader import load_dataset
from shiftresolver.domain.exceptions import ConfigurationError, InvalidShiftDefinition

DATASET = """
shifts:
  - id: A
    start: "08:00"
    finish: "16:00"
  - id: B
    start: 22:00
    finish: 06:00
allocations:
  - id: 1
    shift_id: A
    date: 2016-01-01
    assignees: [alice]
  - id: 2
    shift_id: B
    date: "2016-01-01"
"""


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "schedule.yaml"
    path.write_text(content, encoding="utf-8")
    return path


def test_load_dataset(tmp_path: Path):
    dataset = load_dataset(_write(tmp_path, DATASET))

    shifts = {shift.id: shift for shift in dataset.shifts}
    assert shifts["A"].start_time == time(8, 0)
    assert shifts["A"].finish_time == time(16, 0)

    allocations = {allocation.id: allocation for allocation in dataset.allocations}
    assert allocations[1].shift_id == "A"
    assert allocations[1].date == date(2016, 1, 1)
    assert allocations[1].assignees == frozenset({"alice"})
    assert allocations[2].date == date(2016, 1, 1)
    assert allocations[2].assignees == frozenset()


def test_unquoted_times_survive_yaml_base60(tmp_path: Path):
    """PyYAML reads an unquoted 22:00 as 1320; it must still mean 22:00."""
    dataset = load_dataset(_write(tmp_path, DATASET))

    night = next(shift for shift in dataset.shifts if shift.id == "B")
    assert night.start_time == time(22, 0)
    assert night.finish_time == time(6, 0)


def test_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_dataset(tmp_path / "missing.yaml")


def test_invalid_time_raises(tmp_path: Path):
    path = _write(tmp_path, 'shifts:\n  - id: X\n    start: "25:00"\n    finish: "06:00"\n')

    with pytest.raises(InvalidShiftDefinition):
        load_dataset(path)


def test_missing_time_raises(tmp_path: Path):
    path = _write(tmp_path, 'shifts:\n  - id: X\n    start: "08:00"\n')

    with pytest.raises(InvalidShiftDefinition):
        load_dataset(path)


def test_allocation_without_date_raises(tmp_path: Path):
    path = _write(tmp_path, "allocations:\n  - id: 1\n    shift_id: A\n")

    with pytest.raises(ConfigurationError, match="Invalid dataset"):
        load_dataset(path)


def test_non_mapping_root_raises(tmp_path: Path):
    with pytest.raises(ConfigurationError):
        load_dataset(_write(tmp_path, "- 1\n- 2\n"))
