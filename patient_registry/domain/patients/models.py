from sqlalchemy import Column, Integer, Text, Date, Index, text
from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from patient_registry.infrastructure.database import Base
import enum


class Gender(str, enum.Enum):
    """Gender options offered at registration (not enforced by the table)"""
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    PREFER_NOT_TO_SAY = "prefer_not_to_say"


class Patient(Base):
    """Registered patient. Rows are append-only."""
    __tablename__ = "patients"
    __table_args__ = (
        Index("idx_patient_name", "last_name", "first_name"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    first_name = Column(Text, nullable=False)
    last_name = Column(Text, nullable=False)
    date_of_birth = Column(Text, nullable=False)  # YYYY-MM-DD at UTC+5:30
    gender = Column(Text, nullable=False)

    # Contact information
    email = Column(Text)
    phone = Column(Text)
    address = Column(Text)

    created_at = Column(Date, server_default=text("CURRENT_DATE"))

    def get_full_name(self) -> str:
        """Get patient's full name"""
        return " ".join(filter(None, [self.first_name, self.last_name]))

    def __repr__(self):
        return f"<Patient {self.id} - {self.get_full_name()}>"


class QueryResult(BaseModel):
    """Outcome of a free-form query, reported as data instead of raised"""
    success: bool
    data: List[Dict[str, Any]] = []
    error: Optional[str] = None
