from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from typing import Optional

from patient_registry.api.deps import get_database_state, get_patient_service
from patient_registry.core.readiness import DatabaseState, DatabaseStatus
from patient_registry.domain.patients.service import PatientService

router = APIRouter(tags=["Status"])


class DatabaseStatusResponse(BaseModel):
    status: DatabaseStatus
    is_data_loading: bool
    is_configured: bool
    error: Optional[str] = None


class DashboardResponse(BaseModel):
    patient_count: int


def _status_response(database_state: DatabaseState) -> DatabaseStatusResponse:
    return DatabaseStatusResponse(status=database_state.status, **database_state.snapshot())


@router.get("/status", response_model=DatabaseStatusResponse, status_code=status.HTTP_200_OK)
async def get_database_status(
    database_state: DatabaseState = Depends(get_database_state)
):
    """Report whether the database is loading, ready or failed"""
    return _status_response(database_state)


@router.post("/status/reload", response_model=DatabaseStatusResponse, status_code=status.HTTP_200_OK)
async def reload_database(
    database_state: DatabaseState = Depends(get_database_state)
):
    """Retry database initialization"""
    await database_state.reload()
    return _status_response(database_state)


@router.get("/dashboard", response_model=DashboardResponse, status_code=status.HTTP_200_OK)
async def get_dashboard(
    patient_service: PatientService = Depends(get_patient_service)
):
    """Summary figures for the landing page"""
    return DashboardResponse(patient_count=await patient_service.count_patients())
