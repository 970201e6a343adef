from fastapi import APIRouter
from patient_registry.api.v1.patients import routes as patients
from patient_registry.api.v1.query import routes as query
from patient_registry.api.v1.status import routes as status

api_router = APIRouter()
api_router.include_router(patients.router)
api_router.include_router(query.router)
api_router.include_router(status.router)
