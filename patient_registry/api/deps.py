from fastapi import Depends, Request

from patient_registry.core.exceptions import DatabaseNotReadyError
from patient_registry.core.readiness import DatabaseState, DatabaseStatus
from patient_registry.domain.patients.service import PatientService


def get_database_state(request: Request) -> DatabaseState:
    return request.app.state.database_state


def require_ready_database(
    database_state: DatabaseState = Depends(get_database_state),
) -> DatabaseState:
    if database_state.status is DatabaseStatus.FAILED:
        raise DatabaseNotReadyError(
            message=database_state.error,
            error_code="DATABASE_FAILED"
        )
    if database_state.status is DatabaseStatus.LOADING:
        raise DatabaseNotReadyError()
    return database_state


def get_patient_service(
    request: Request,
    database_state: DatabaseState = Depends(require_ready_database),
) -> PatientService:
    return request.app.state.patient_service
