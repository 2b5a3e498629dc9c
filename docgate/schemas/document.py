"""Pydantic schemas for the registration service "create document" request.

Wire key names are fixed by the remote API. Most keys are snake_case, a few
are camelCase; the explicit tables below map each attribute to its wire key
and are applied as serialization aliases.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


DESCRIPTION_FIELD_MAP: dict[str, str] = {
    "participant_inn": "participantInn",
}

PRODUCT_FIELD_MAP: dict[str, str] = {
    "certificate_document": "certificate_document",
    "certificate_document_date": "certificate_document_date",
    "certificate_document_number": "certificate_document_number",
    "owner_inn": "owner_inn",
    "producer_inn": "producer_inn",
    "production_date": "production_date",
    "tnved_code": "tnved_code",
    "uit_code": "uit_code",
    "uitu_code": "uitu_code",
}

DOCUMENT_FIELD_MAP: dict[str, str] = {
    "description": "description",
    "doc_id": "doc_id",
    "doc_status": "doc_status",
    "doc_type": "doc_type",
    "import_request": "importRequest",
    "owner_inn": "owner_inn",
    "participant_inn": "participant_inn",
    "producer_inn": "producer_inn",
    "production_date": "production_date",
    "production_type": "production_type",
    "products": "products",
    "reg_date": "reg_date",
    "reg_number": "reg_number",
}


def _wire_config(field_map: dict[str, str]) -> ConfigDict:
    return ConfigDict(
        alias_generator=lambda name: field_map.get(name, name),
        populate_by_name=True,
        use_enum_values=True,
    )


class DocumentType(str, Enum):
    """Document kinds accepted by the create endpoint."""

    LP_INTRODUCE_GOODS = "LP_INTRODUCE_GOODS"


class ProductionType(str, Enum):
    """How the goods in the document were produced."""

    OWN_PRODUCTION = "OWN_PRODUCTION"
    CONTRACT_PRODUCTION = "CONTRACT_PRODUCTION"


class Description(BaseModel):
    """Free-form document description block."""

    model_config = _wire_config(DESCRIPTION_FIELD_MAP)

    participant_inn: str = Field(
        ...,
        description="Taxpayer number of the participant submitting the document.",
    )


class Product(BaseModel):
    """A single product line of the document."""

    model_config = _wire_config(PRODUCT_FIELD_MAP)

    certificate_document: str | None = Field(
        None,
        description="Type of the conformity certificate.",
    )
    certificate_document_date: str | None = Field(
        None,
        description="Certificate issue date (YYYY-MM-DD).",
    )
    certificate_document_number: str | None = Field(
        None,
        description="Certificate number.",
    )
    owner_inn: str = Field(..., description="Taxpayer number of the goods owner.")
    producer_inn: str = Field(..., description="Taxpayer number of the producer.")
    production_date: str = Field(..., description="Production date (YYYY-MM-DD).")
    tnved_code: str = Field(..., description="Commodity nomenclature code.")
    uit_code: str | None = Field(None, description="Unique identification code of the item.")
    uitu_code: str | None = Field(None, description="Unique identification code of the package.")


class DocumentRequest(BaseModel):
    """Body of a "create document" submission."""

    model_config = _wire_config(DOCUMENT_FIELD_MAP)

    description: Description | None = Field(
        None,
        description="Optional description block.",
    )
    doc_id: str = Field(..., description="Client-side document identifier.")
    doc_status: str = Field(..., description="Document status.")
    doc_type: DocumentType = Field(
        DocumentType.LP_INTRODUCE_GOODS,
        description="Document kind.",
    )
    import_request: bool = Field(
        False,
        description="Whether the goods are imported.",
    )
    owner_inn: str = Field(..., description="Taxpayer number of the goods owner.")
    participant_inn: str = Field(..., description="Taxpayer number of the participant.")
    producer_inn: str = Field(..., description="Taxpayer number of the producer.")
    production_date: str = Field(..., description="Production date (YYYY-MM-DD).")
    production_type: ProductionType = Field(
        ...,
        description="How the goods were produced.",
    )
    products: list[Product] = Field(
        default_factory=list,
        description="Product lines included in the document.",
    )
    reg_date: str = Field(..., description="Registration date (YYYY-MM-DD).")
    reg_number: str | None = Field(None, description="Registration number, if assigned.")
