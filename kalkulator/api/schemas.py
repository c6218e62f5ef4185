# kalkulator/api/schemas.py
from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from kalkulator.hashing.payload import CustomerData

FormAnswer = str | int | float | bool | list[str] | list[int] | None


class CamelModel(BaseModel):
    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)


class CompanyIn(CamelModel):
    name: str
    ico: str = ""
    dic: str = ""
    address: str = ""


class CustomerIn(CamelModel):
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    invoice_email: Optional[str] = None
    company: Optional[CompanyIn] = None

    def to_domain(self) -> CustomerData:
        return CustomerData(
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            phone=self.phone,
            address=self.address,
            invoice_email=self.invoice_email,
            company=self.company.model_dump() if self.company else None,
        )


class CalculateRequest(CamelModel):
    form_data: Dict[str, FormAnswer] = Field(default_factory=dict)


class HashEncodeRequest(CamelModel):
    """
    A calculation (as returned by /api/calculate) plus the enquiry-page fields.
    Every edit on the enquiry page sends the full state again and gets a new token.
    """

    service_type: str
    form_data: Dict[str, FormAnswer] = Field(default_factory=dict)
    # CalculationResult wire dict, camelCase keys as produced by the API
    result: Dict[str, Any]
    customer: Optional[CustomerIn] = None
    confirmation_step_note: Optional[str] = None
    start_date: Optional[date] = None
    optimized: bool = True


class HashEncodeResponse(CamelModel):
    hash: str
    url: str


class HashDecodeRequest(CamelModel):
    hash: str
    reconstruct: bool = False


class OfferRequest(CamelModel):
    hash: str


class ServiceOut(CamelModel):
    id: str
    title: str
    category: str
    description: str = ""
