"""
blood pressure reading model.

defines the sqlalchemy orm model for the readings table.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Reading(Base):
    """
    represents a single blood pressure measurement.

    attributes:
        id: primary key
        systolic: systolic blood pressure (mmhg)
        diastolic: diastolic blood pressure (mmhg)
        pulse: heart rate in bpm, none when not measured
        notes: optional free text
        measured_at: when the measurement was taken (utc)
        created_at: when the record was stored (utc)
    """

    __tablename__ = "readings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    systolic = Column(Integer, nullable=False)
    diastolic = Column(Integer, nullable=False)
    pulse = Column(Integer, nullable=True)
    notes = Column(String(500), nullable=True)
    measured_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self) -> str:
        """string representation of reading record."""
        return (
            f"<Reading(id={self.id}, "
            f"measured_at='{self.measured_at}', "
            f"bp={self.systolic}/{self.diastolic}, "
            f"pulse={self.pulse})>"
        )

    def to_dict(self) -> dict:
        """
        convert reading record to dictionary.

        returns:
            dict representation of the reading record
        """
        return {
            "id": self.id,
            "systolic": self.systolic,
            "diastolic": self.diastolic,
            "pulse": self.pulse,
            "notes": self.notes,
            "measured_at": self.measured_at.isoformat() if self.measured_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
