"""
app/schemas/company.py

Request and response schemas for the company catalog.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CompanyResponse(BaseModel):
    """
    API response model for one company.
    """

    id: str
    name: str
    conversion_factor: float


class CompanyUpsertRequest(BaseModel):
    """
    Create a company, or update one when ``id`` is given.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    id: str | None = None
    name: str = Field(min_length=1)
    conversion_factor: float = Field(ge=0)
