"""
Adapters layer - Loading schedule records from files.
"""

from .dataset_loader import AllocationRecord, Dataset, ShiftRecord, load_dataset

__all__ = ["AllocationRecord", "Dataset", "ShiftRecord", "load_dataset"]
