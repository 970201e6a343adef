from pydantic import BaseModel, field_validator
from typing import Any, List


class QueryRequest(BaseModel):
    """A statement typed into the query console"""
    sql: str = "SELECT * FROM patients"
    params: List[Any] = []

    @field_validator('sql')
    @classmethod
    def validate_sql(cls, v):
        if not v.strip():
            raise ValueError('SQL query is required')
        return v
