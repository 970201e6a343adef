from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, func
from patient_registry.domain.patients.models import Patient


class PatientRepository:
    """Repository for patient data access operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, patient_data: dict) -> Patient:
        """Insert a patient and load its generated columns"""
        patient = Patient(**patient_data)

        self.db.add(patient)
        await self.db.commit()
        await self.db.refresh(patient)

        return patient

    async def get_all(self) -> List[Patient]:
        """Get every patient ordered by last name, then first name"""
        result = await self.db.execute(
            select(Patient).order_by(Patient.last_name, Patient.first_name)
        )
        return list(result.scalars().all())

    async def search_by_name(self, name: str) -> List[Patient]:
        """Case-insensitive substring match on first or last name"""
        pattern = f"%{name}%"
        result = await self.db.execute(
            select(Patient)
            .where(or_(Patient.first_name.ilike(pattern), Patient.last_name.ilike(pattern)))
            .order_by(Patient.last_name, Patient.first_name)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        """Count registered patients"""
        result = await self.db.execute(select(func.count(Patient.id)))
        return result.scalar()
