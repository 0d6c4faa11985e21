"""Core module for the volunteerhub application."""

from .types import BulkRemovalError, BulkRemovalResult

__all__ = ["BulkRemovalError", "BulkRemovalResult"]
