"""Error hierarchy shared by the PCR history subsystems.

Callers distinguish between bad input (fix the payload and retry), failed
writes (the on-disk document is untouched) and broken configuration.
Corrupt store files never surface here: the store recovers and logs instead.
"""
from __future__ import annotations


class CoreError(Exception):
    """Base class for all custom exceptions in the application."""


class ConfigurationError(CoreError):
    """Raised when configuration files are missing or invalid."""


class ValidationError(CoreError):
    """Raised when a snapshot payload or query argument is malformed."""


class PersistenceError(CoreError):
    """Raised when the atomic write of the snapshot document fails."""
