from fastapi import APIRouter, Depends, status

from patient_registry.api.deps import get_patient_service
from patient_registry.api.v1.query.schemas import QueryRequest
from patient_registry.domain.patients.models import QueryResult
from patient_registry.domain.patients.service import PatientService

router = APIRouter(prefix="/query", tags=["Query"])

SYNTAX_ERROR_MARKERS = ("syntax error", "unexpected", "parse error")


def friendly_query_error(message: str) -> str:
    """Turn an engine error into the text shown in the console"""
    if any(marker in message for marker in SYNTAX_ERROR_MARKERS):
        return "Please write a proper SQL query."
    return "Query not valid"


@router.post("/", response_model=QueryResult, status_code=status.HTTP_200_OK)
async def run_query(
    query: QueryRequest,
    patient_service: PatientService = Depends(get_patient_service)
):
    """Execute a custom statement against the patient database"""
    result = await patient_service.execute_query(query.sql, query.params)
    if not result.success and result.error:
        return QueryResult(success=False, data=[], error=friendly_query_error(result.error))
    return result
