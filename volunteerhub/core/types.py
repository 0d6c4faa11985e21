"""Core data types for the volunteerhub application."""

from typing import List, TypedDict  # noqa: UP035


class BulkRemovalError(TypedDict):
    """A single failed removal inside a bulk operation."""

    participantId: str
    error: str


class BulkRemovalResult(TypedDict):
    """Outcome of a bulk participant removal."""

    successful: int
    failed: int
    errors: List[BulkRemovalError]  # noqa: UP006
