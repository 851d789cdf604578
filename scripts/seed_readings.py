"""
synthetic blood pressure readings generator and csv import script.

generates a realistic log of home readings (one or two a day, pulse
sometimes skipped) or imports readings from a csv export, then inserts
them into the database.
"""

import csv
import logging
import random
import sys
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from bp_tracker.config import configure_logging, get_db_session, init_db
from bp_tracker.models.readings import Reading
from bp_tracker.services.reading_validation import validate_reading_payload

logger = logging.getLogger(__name__)

CSV_COLUMNS = ("systolic", "diastolic", "pulse", "notes", "measured_at")


def generate_synthetic_readings(
    now: datetime,
    num_days: int = 90,
    readings_per_day: int = 2,
    pulse_probability: float = 0.8,
    seed: Optional[int] = None,
) -> List[Reading]:
    """
    generate a synthetic reading log ending at `now`.

    uses a random walk around a mildly elevated baseline with a slow
    downward drift, so the log spans several categories.

    args:
        now: time of the most recent reading
        num_days: how many days of history to generate
        readings_per_day: readings per day (morning, evening, ...)
        pulse_probability: chance that a reading carries a pulse value
        seed: random seed for reproducible output

    returns:
        list of unsaved reading instances, oldest first
    """
    rng = random.Random(seed)
    readings = []

    current_systolic = 138.0
    current_diastolic = 86.0
    current_pulse = 74.0

    # blood pressure drifts down slowly (treatment working)
    systolic_trend = -0.1
    diastolic_trend = -0.05

    step = timedelta(hours=24 / readings_per_day)
    start = now - step * (num_days * readings_per_day - 1)

    for i in range(num_days * readings_per_day):
        current_systolic += rng.gauss(systolic_trend, 4.0)
        current_diastolic += rng.gauss(diastolic_trend, 2.5)
        current_pulse += rng.gauss(0, 3.0)

        # clamp to physiologically realistic bounds
        current_systolic = max(90, min(200, current_systolic))
        current_diastolic = max(55, min(125, current_diastolic))
        current_pulse = max(45, min(130, current_pulse))

        if current_systolic <= current_diastolic:
            current_systolic = current_diastolic + 20

        has_pulse = rng.random() < pulse_probability

        readings.append(Reading(
            systolic=int(round(current_systolic)),
            diastolic=int(round(current_diastolic)),
            pulse=int(round(current_pulse)) if has_pulse else None,
            measured_at=start + step * i,
        ))

    return readings


def load_readings_csv(csv_path: str) -> List[Reading]:
    """
    read readings from a csv file with a header row.

    expected columns: systolic, diastolic, pulse, notes, measured_at.
    every row goes through the same validation as the api.

    args:
        csv_path: path to the csv file

    returns:
        list of unsaved reading instances in file order

    raises:
        InvalidReadingError: for the first invalid row
    """
    readings = []
    with open(csv_path, "r", newline="") as f:
        reader = csv.DictReader(f)
        for row in reader:
            payload = {name: row.get(name) for name in CSV_COLUMNS if row.get(name) is not None}
            readings.append(Reading(**validate_reading_payload(payload)))

    return readings


def insert_readings(session: Session, readings: List[Reading]) -> int:
    """
    insert readings in one transaction.

    args:
        session: open database session
        readings: unsaved reading instances

    returns:
        number of records inserted
    """
    try:
        session.add_all(readings)
        session.commit()
    except Exception:
        session.rollback()
        logger.exception("error during insertion")
        raise

    logger.info("inserted %d readings", len(readings))
    return len(readings)


if __name__ == "__main__":
    configure_logging()
    init_db()

    if len(sys.argv) > 1:
        readings = load_readings_csv(sys.argv[1])
    else:
        readings = generate_synthetic_readings(datetime.utcnow())

    session = get_db_session()
    try:
        insert_readings(session, readings)
    finally:
        session.close()
