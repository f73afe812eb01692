"""Domain errors raised by the streak, XP, achievement and photo services."""

from __future__ import annotations


class SkillForgeError(Exception):
    """Base class for all SkillForge domain errors."""


class ValidationError(SkillForgeError):
    """Malformed caller input. Not retryable."""


class InvalidArgumentError(ValidationError):
    """An argument is outside its allowed range (e.g. a negative XP amount)."""


class StorageError(SkillForgeError):
    """Writing photo bytes failed or timed out. The caller may retry."""


class PhotoOwnershipError(SkillForgeError, PermissionError):
    """A user tried to act on a photo owned by someone else."""


class ConcurrencyConflictError(SkillForgeError):
    """The gamification row changed under us. Re-read and retry the whole call."""
