from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from patient_registry.api.deps import get_patient_service
from patient_registry.api.v1.patients.schemas import (
    PatientCreate,
    PatientCreatedResponse,
    PatientResponse
)
from patient_registry.domain.patients.service import PatientService

router = APIRouter(prefix="/patients", tags=["Patients"])


@router.post("/", response_model=PatientCreatedResponse, status_code=status.HTTP_201_CREATED)
async def register_patient(
    patient_data: PatientCreate,
    patient_service: PatientService = Depends(get_patient_service)
):
    """Register a new patient"""
    patient_id = await patient_service.register_patient(patient_data.model_dump(mode="json"))
    return PatientCreatedResponse(id=patient_id)


@router.get("/", response_model=List[PatientResponse], status_code=status.HTTP_200_OK)
async def get_patients(
    search: Optional[str] = Query(None, description="Match against first or last name"),
    patient_service: PatientService = Depends(get_patient_service)
):
    """List patients, or search them by name when a search term is given"""
    if search is None or not search.strip():
        patients = await patient_service.list_patients()
    else:
        patients = await patient_service.search_patients_by_name(search)
    return [PatientResponse.model_validate(patient) for patient in patients]
