"""User profile models and services."""

from .models import ParticipantRecord, User, UserRole

__all__ = ["User", "UserRole", "ParticipantRecord"]
