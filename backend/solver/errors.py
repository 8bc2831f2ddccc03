from __future__ import annotations


class AllocationError(RuntimeError):
    """Base class for allocation failures that reject a run outright."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


class NoAllocationInputError(AllocationError):
    """Raised when there is nothing to allocate (no preferences or no approved titles)."""


class AllocationRunInProgressError(AllocationError):
    """Raised when another allocation run already holds the run lock."""

    def __init__(self, message: str = "An allocation run is already in progress.") -> None:
        super().__init__("ALLOCATION_RUN_IN_PROGRESS", message)
