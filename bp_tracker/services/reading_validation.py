"""
validation of raw reading payloads submitted by users.

runs before a reading is stored, so everything the categorizer and
aggregator receive is well typed.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from bp_tracker.services.aggregator import to_naive_utc
from bp_tracker.services.errors import InvalidReadingError


PRESSURE_MIN = 0
PRESSURE_MAX = 300
PULSE_MIN = 0
PULSE_MAX = 300
NOTES_MAX_LENGTH = 500

REQUIRED_FIELDS = ("systolic", "diastolic", "measured_at")

# the web client sends camelCase keys
FIELD_ALIASES = {"measuredAt": "measured_at"}


def _parse_int(value: Any, low: int, high: int) -> int:
    """
    parse an integer within [low, high].

    raises:
        ValueError: with a message suitable for the api response
    """
    if isinstance(value, bool):
        raise ValueError("must be an integer")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError("must be an integer")
        value = int(value)
    elif isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            raise ValueError("must be an integer")
    elif not isinstance(value, int):
        raise ValueError("must be an integer")

    if value < low or value > high:
        raise ValueError(f"must be between {low} and {high}")
    return value


def parse_timestamp(value: Any) -> datetime:
    """
    parse an iso-8601 timestamp into a naive utc datetime.

    a trailing "Z" is accepted. aware values are converted to utc.

    raises:
        ValueError: if the value is not an iso-8601 string or datetime
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError("must be an iso-8601 timestamp")
    else:
        raise ValueError("must be an iso-8601 timestamp")

    return to_naive_utc(parsed)


def validate_reading_payload(
    data: Optional[Dict[str, Any]], partial: bool = False
) -> Dict[str, Any]:
    """
    validate and normalize a reading payload.

    args:
        data: raw json body
        partial: only validate fields that are present (for updates)

    returns:
        dict with normalized values for the fields that were supplied

    raises:
        InvalidReadingError: listing every invalid or missing field
    """
    if not isinstance(data, dict):
        raise InvalidReadingError({"body": "must be a json object"})

    payload = {FIELD_ALIASES.get(key, key): value for key, value in data.items()}
    errors: Dict[str, str] = {}
    cleaned: Dict[str, Any] = {}

    if not partial:
        for name in REQUIRED_FIELDS:
            if payload.get(name) is None:
                errors[name] = "is required"

    for name in ("systolic", "diastolic"):
        if payload.get(name) is not None:
            try:
                cleaned[name] = _parse_int(payload[name], PRESSURE_MIN, PRESSURE_MAX)
            except ValueError as e:
                errors[name] = str(e)
        elif partial and name in payload:
            errors[name] = "cannot be null"

    if "pulse" in payload:
        if payload["pulse"] is None or payload["pulse"] == "":
            cleaned["pulse"] = None
        else:
            try:
                cleaned["pulse"] = _parse_int(payload["pulse"], PULSE_MIN, PULSE_MAX)
            except ValueError as e:
                errors["pulse"] = str(e)

    if "notes" in payload:
        notes = payload["notes"]
        if notes is None or notes == "":
            cleaned["notes"] = None
        elif not isinstance(notes, str):
            errors["notes"] = "must be a string"
        elif len(notes) > NOTES_MAX_LENGTH:
            errors["notes"] = f"must be at most {NOTES_MAX_LENGTH} characters"
        else:
            cleaned["notes"] = notes

    if payload.get("measured_at") is not None:
        try:
            cleaned["measured_at"] = parse_timestamp(payload["measured_at"])
        except ValueError as e:
            errors["measured_at"] = str(e)
    elif partial and "measured_at" in payload:
        errors["measured_at"] = "cannot be null"

    if errors:
        raise InvalidReadingError(errors)

    return cleaned
