"""
repository for blood pressure readings.

provides data access methods for storing and retrieving readings.
"""

import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from bp_tracker.models.readings import Reading
from bp_tracker.services.errors import ReadingNotFoundError

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("systolic", "diastolic", "pulse", "notes", "measured_at")


class ReadingsRepository:
    """
    data access layer for blood pressure readings.

    handles all database queries related to readings.
    """

    def __init__(self, db_session: Session):
        """
        initialize repository with database session.

        args:
            db_session: sqlalchemy session for database operations
        """
        self.session = db_session

    def list_readings(self, page: int = 1, limit: int = 20) -> List[Reading]:
        """
        fetch one page of readings, newest measurement first.

        args:
            page: 1-based page number
            limit: page size

        returns:
            list of reading records ordered by measured_at descending
        """
        offset = (page - 1) * limit

        readings = (
            self.session.query(Reading)
            .order_by(Reading.measured_at.desc(), Reading.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

        return readings

    def get_all_readings(self) -> List[Reading]:
        """
        fetch every reading.

        returns:
            list of all readings, ordered by measured_at ascending
        """
        readings = (
            self.session.query(Reading)
            .order_by(Reading.measured_at.asc(), Reading.id.asc())
            .all()
        )

        return readings

    def get_reading(self, reading_id: int) -> Optional[Reading]:
        """
        fetch a single reading.

        args:
            reading_id: primary key

        returns:
            reading record or none if it does not exist
        """
        return self.session.get(Reading, reading_id)

    def count_readings(self) -> int:
        """count total number of stored readings."""
        return self.session.query(Reading).count()

    def create_reading(self, **fields) -> Reading:
        """
        store a new reading.

        args:
            **fields: validated systolic, diastolic, pulse, notes, measured_at

        returns:
            the persisted reading with its id assigned
        """
        reading = Reading(**{k: v for k, v in fields.items() if k in EDITABLE_FIELDS})
        self.session.add(reading)
        self.session.commit()
        self.session.refresh(reading)

        logger.info("created reading %s (%s/%s)", reading.id, reading.systolic, reading.diastolic)
        return reading

    def update_reading(self, reading_id: int, **fields) -> Reading:
        """
        update the supplied fields of an existing reading.

        args:
            reading_id: primary key
            **fields: validated fields to change

        returns:
            the updated reading

        raises:
            ReadingNotFoundError: if no reading has this id
        """
        reading = self.get_reading(reading_id)
        if reading is None:
            raise ReadingNotFoundError(reading_id)

        for name, value in fields.items():
            if name in EDITABLE_FIELDS:
                setattr(reading, name, value)

        self.session.commit()
        self.session.refresh(reading)

        logger.info("updated reading %s", reading_id)
        return reading

    def delete_reading(self, reading_id: int) -> None:
        """
        delete a reading.

        args:
            reading_id: primary key

        raises:
            ReadingNotFoundError: if no reading has this id
        """
        reading = self.get_reading(reading_id)
        if reading is None:
            raise ReadingNotFoundError(reading_id)

        self.session.delete(reading)
        self.session.commit()

        logger.info("deleted reading %s", reading_id)
