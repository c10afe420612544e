"""
Exceptions raised by the FSRS engine.

The engine fails fast on malformed input rather than guessing. Numeric
degeneracy inside the formulas is clamped, not raised.
"""


class FSRSError(Exception):
    """Base class for FSRS errors."""


class ContractViolation(FSRSError, ValueError):
    """Caller passed a malformed rating, card state or timestamp."""


class InvalidParametersError(FSRSError, ValueError):
    """Scheduler configuration is incomplete or out of range."""
