"""
YAML dataset adapter.

Loads shift definitions and allocations from a YAML file so the CLI and tests
can build a schedule without a persistence layer. Expected layout::

    shifts:
      - id: early
        start: "08:00"
        finish: "16:00"
    allocations:
      - id: 1
        shift_id: early
        date: 2016-01-01
        assignees: [alice, bob]
"""

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import List, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..domain.exceptions import ConfigurationError
from ..domain.models import Allocation, ShiftDefinition

RecordId = Union[int, str]


class ShiftRecord(BaseModel):
    """Raw shift entry as found in the dataset file."""
    id: RecordId
    start: Union[str, None] = None
    finish: Union[str, None] = None

    @field_validator("start", "finish", mode="before")
    @classmethod
    def coerce_sexagesimal(cls, value):
        """
        Undo YAML 1.1 base-60 integers.

        An unquoted ``22:00`` is read by PyYAML as the integer 1320.
        """
        if isinstance(value, int) and not isinstance(value, bool):
            return f"{value // 60:02d}:{value % 60:02d}"
        return value

    def to_domain(self) -> ShiftDefinition:
        return ShiftDefinition.parse(self.id, self.start, self.finish)


class AllocationRecord(BaseModel):
    """Raw allocation entry as found in the dataset file."""
    id: RecordId
    shift_id: RecordId
    date: date
    assignees: List[RecordId] = Field(default_factory=list)

    def to_domain(self) -> Allocation:
        return Allocation(
            id=self.id,
            shift_id=self.shift_id,
            date=self.date,
            assignees=frozenset(self.assignees),
        )


class DatasetFile(BaseModel):
    shifts: List[ShiftRecord] = Field(default_factory=list)
    allocations: List[AllocationRecord] = Field(default_factory=list)


@dataclass
class Dataset:
    """Domain objects loaded from a dataset file."""
    shifts: List[ShiftDefinition] = field(default_factory=list)
    allocations: List[Allocation] = field(default_factory=list)


def load_dataset(dataset_path: Path) -> Dataset:
    """
    Load shifts and allocations from a YAML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigurationError: If the file is not valid YAML or has the wrong shape
        InvalidShiftDefinition: If a shift's times cannot be parsed
    """
    if not dataset_path.exists():
        raise FileNotFoundError(f"Dataset file not found: {dataset_path}")

    try:
        with open(dataset_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {dataset_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError("Dataset file must contain a mapping at the root level.")

    try:
        parsed = DatasetFile(**data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid dataset in {dataset_path}: {exc}") from exc

    return Dataset(
        shifts=[record.to_domain() for record in parsed.shifts],
        allocations=[record.to_domain() for record in parsed.allocations],
    )
