from typing import Any, Dict, List, Mapping, Optional, Sequence
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
import logging

from patient_registry.core.time_utils import IST_OFFSET_MINUTES, to_offset_date_string
from patient_registry.core.exceptions import ReadError, WriteError
from patient_registry.domain.patients.models import Patient, QueryResult
from patient_registry.domain.patients.repository import PatientRepository
from patient_registry.infrastructure.database import Database

logger = logging.getLogger(__name__)

OPTIONAL_FIELDS = ("email", "phone", "address")
DEFAULT_QUERY_ERROR = "An error occurred while executing the query"


class PatientService:
    """Service layer for patient registration, lookup and the query console.

    This is the only code path that touches the database handle. The
    structured operations raise ``WriteError``/``ReadError``;
    ``execute_query`` reports failures inside its ``QueryResult``.
    """

    def __init__(
        self,
        database: Database,
        dob_offset_minutes: int = IST_OFFSET_MINUTES,
        query_read_only: bool = False
    ):
        self.database = database
        self.dob_offset_minutes = dob_offset_minutes
        self.query_read_only = query_read_only

    async def register_patient(self, patient_data: Mapping[str, Any]) -> int:
        """Register a patient and return the assigned id"""
        try:
            date_of_birth = to_offset_date_string(
                patient_data.get("date_of_birth"), self.dob_offset_minutes
            )
        except (TypeError, ValueError) as e:
            logger.error(f"Rejected date of birth {patient_data.get('date_of_birth')!r}: {e}")
            raise WriteError(details={"reason": f"Invalid date of birth: {e}"}) from e

        patient_dict = {
            "first_name": patient_data.get("first_name"),
            "last_name": patient_data.get("last_name"),
            "date_of_birth": date_of_birth,
            "gender": patient_data.get("gender"),
        }
        for field in OPTIONAL_FIELDS:
            patient_dict[field] = patient_data.get(field) or None

        async with self.database.session() as db:
            try:
                patient = await PatientRepository(db).create(patient_dict)
            except SQLAlchemyError as e:
                logger.error(f"Patient registration failed: {e}")
                raise WriteError(details={"reason": _error_message(e)}) from e

        logger.info(f"Registered patient {patient.id}")
        return patient.id

    async def list_patients(self) -> List[Patient]:
        """Get all patients ordered by last name, then first name"""
        async with self.database.session() as db:
            try:
                return await PatientRepository(db).get_all()
            except SQLAlchemyError as e:
                logger.error(f"Listing patients failed: {e}")
                raise ReadError(details={"reason": _error_message(e)}) from e

    async def search_patients_by_name(self, term: str) -> List[Patient]:
        """Get patients whose first or last name contains ``term``.

        The term is matched literally; an empty term matches every patient.
        """
        async with self.database.session() as db:
            try:
                return await PatientRepository(db).search_by_name(term)
            except SQLAlchemyError as e:
                logger.error(f"Patient search for {term!r} failed: {e}")
                raise ReadError(
                    message="Failed to perform search",
                    details={"reason": _error_message(e)}
                ) from e

    async def count_patients(self) -> int:
        """Count registered patients"""
        async with self.database.session() as db:
            try:
                return await PatientRepository(db).count()
            except SQLAlchemyError as e:
                logger.error(f"Counting patients failed: {e}")
                raise ReadError(
                    message="Failed to load dashboard data",
                    details={"reason": _error_message(e)}
                ) from e

    async def execute_query(self, sql: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        """Run one free-form statement with positional parameters.

        Never raises: engine and initialization failures come back as
        ``QueryResult(success=False, data=[], error=message)``. Each statement
        runs in its own transaction, rolled back in read-only mode.
        """
        try:
            engine = await self.database.acquire()
            async with engine.connect() as conn:
                result = await conn.exec_driver_sql(sql, tuple(params or ()))
                rows = [_json_row(row) for row in result.mappings()] if result.returns_rows else []
                if self.query_read_only:
                    await conn.rollback()
                else:
                    await conn.commit()
        except Exception as e:
            message = _error_message(e) or DEFAULT_QUERY_ERROR
            logger.warning(f"Query failed: {message}")
            return QueryResult(success=False, data=[], error=message)

        return QueryResult(success=True, data=rows, error=None)


def _json_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Render binary values as lowercase hex so the row serializes to JSON"""
    return {
        key: bytes(value).hex() if isinstance(value, (bytes, bytearray, memoryview)) else value
        for key, value in row.items()
    }


def _error_message(error: Exception) -> str:
    """Prefer the driver's own message over SQLAlchemy's wrapper text"""
    if isinstance(error, DBAPIError) and error.orig is not None:
        return str(error.orig)
    return getattr(error, "message", None) or str(error)
