"""Allocation module.

Splits a total of minutes across weighted, bounded tasks.
"""

from .engine import ALLOCATION_EPSILON, allocate, validate_input
from .normalizer import load_request_file, normalize_request, read_request_file
from .service import AllocationService, AllocationStore

__all__ = [
    "ALLOCATION_EPSILON",
    "allocate",
    "validate_input",
    "load_request_file",
    "normalize_request",
    "read_request_file",
    "AllocationService",
    "AllocationStore",
]
