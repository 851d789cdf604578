"""
exception hierarchy shared by the blood pressure services.

contract violations subclass ValueError so callers that only care about
bad input can catch them generically.
"""

from typing import Dict, Optional


class BPTrackerError(Exception):
    """base exception for blood pressure tracker services."""
    pass


class CategorizationError(BPTrackerError, ValueError):
    """raised when a systolic/diastolic pair cannot be categorized."""
    pass


class InvalidRangeError(BPTrackerError, ValueError):
    """raised when a time range selector is not one of week/month/year."""
    pass


class InvalidReadingError(BPTrackerError, ValueError):
    """
    raised when a submitted reading payload fails validation.

    attributes:
        errors: mapping of field name to error message
    """

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        self.errors = dict(errors)
        if message is None:
            details = "; ".join(f"{field}: {msg}" for field, msg in sorted(self.errors.items()))
            message = f"invalid reading ({details})"
        super().__init__(message)


class ReadingNotFoundError(BPTrackerError, LookupError):
    """raised when a reading id does not exist."""

    def __init__(self, reading_id: int):
        self.reading_id = reading_id
        super().__init__(f"reading {reading_id} not found")
