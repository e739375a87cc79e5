"""
Relationship and Contract Models

Relationships are the people and companies the business deals with:
clients, suppliers and others, identified by a Brazilian CPF (person)
or CNPJ (company) document.

DESIGN DECISION: The server stores type and status in Portuguese
('cliente', 'ativo', ...). Those stored values are the enum values, and
English spellings are accepted on input, so the wire format never changes.

CRITICAL: Document numbers are checked with the official check-digit
algorithms before a payload is sent. A mistyped CPF/CNPJ never reaches
the server.
"""

import re
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import AliasChoices, BeforeValidator, Field, PlainSerializer, model_validator

from quantor.models.entities import ApiModel, Day, OwnerId


# =============================================================================
# ENUMS
# =============================================================================

class RelationshipType(str, Enum):
    """Role of the counterparty."""
    CLIENT = "cliente"
    SUPPLIER = "fornecedor"
    OTHER = "outros"


class RelationshipStatus(str, Enum):
    ACTIVE = "ativo"
    INACTIVE = "inativo"


class DocumentType(str, Enum):
    """CPF identifies a person, CNPJ a company."""
    CPF = "CPF"
    CNPJ = "CNPJ"


_TYPE_ALIASES = {
    "client": RelationshipType.CLIENT,
    "supplier": RelationshipType.SUPPLIER,
    "other": RelationshipType.OTHER,
}
_STATUS_ALIASES = {
    "active": RelationshipStatus.ACTIVE,
    "inactive": RelationshipStatus.INACTIVE,
}


def _normalise_type(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip().lower()
        return _TYPE_ALIASES.get(value, value)
    return value


def _normalise_status(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip().lower()
        return _STATUS_ALIASES.get(value, value)
    return value


def _upper(value: Any) -> Any:
    return value.strip().upper() if isinstance(value, str) else value


RelType = Annotated[RelationshipType, BeforeValidator(_normalise_type)]
Status = Annotated[RelationshipStatus, BeforeValidator(_normalise_status)]
DocType = Annotated[DocumentType, BeforeValidator(_upper)]


# =============================================================================
# DOCUMENT CHECK DIGITS
# =============================================================================

def _digits(document: str) -> str:
    return re.sub(r"\D", "", document or "")


def _check_digit(numbers: str, weights: list[int]) -> int:
    remainder = sum(int(n) * w for n, w in zip(numbers, weights)) % 11
    return 0 if remainder < 2 else 11 - remainder


def is_valid_cpf(document: str) -> bool:
    """
    Validate a CPF (11 digits, punctuation ignored).

    Rejects repeated-digit numbers such as 111.111.111-11, which pass the
    arithmetic but are not issued.
    """
    cpf = _digits(document)
    if len(cpf) != 11 or len(set(cpf)) == 1:
        return False
    first = _check_digit(cpf[:9], list(range(10, 1, -1)))
    second = _check_digit(cpf[:10], list(range(11, 1, -1)))
    return cpf[9:] == f"{first}{second}"


_CNPJ_WEIGHTS = [5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]


def is_valid_cnpj(document: str) -> bool:
    """Validate a CNPJ (14 digits, punctuation ignored)."""
    cnpj = _digits(document)
    if len(cnpj) != 14 or len(set(cnpj)) == 1:
        return False
    first = _check_digit(cnpj[:12], _CNPJ_WEIGHTS)
    second = _check_digit(cnpj[:13], [6] + _CNPJ_WEIGHTS)
    return cnpj[12:] == f"{first}{second}"


def _check_document(document_type: Optional[DocumentType], document: Optional[str]) -> None:
    if document_type is None or document is None:
        return
    if document_type == DocumentType.CPF and not is_valid_cpf(document):
        raise ValueError("Invalid CPF")
    if document_type == DocumentType.CNPJ and not is_valid_cnpj(document):
        raise ValueError("Invalid CNPJ")


# =============================================================================
# RECORDS
# =============================================================================

class Relationship(ApiModel):
    """A client, supplier or other counterparty."""

    id: int
    user_id: OwnerId = None
    relationship_type: RelType = Field(
        ..., validation_alias=AliasChoices("type", "relationshipType"), serialization_alias="type"
    )
    document_type: DocType
    document: str
    social_name: str
    fantasy_name: Optional[str] = None
    state_registration: Optional[str] = None
    birth_date: Optional[Day] = None
    zip_code: str = ""
    street: str = ""
    number: str = ""
    complement: Optional[str] = None
    neighborhood: str = ""
    city: str = ""
    state: str = ""
    status: Status = RelationshipStatus.ACTIVE
    created_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        return self.fantasy_name or self.social_name

    @property
    def address(self) -> str:
        street = ", ".join(p for p in (self.street, self.number, self.complement) if p)
        place = f"{self.city}/{self.state}" if self.state else self.city
        return " - ".join(p for p in (street, self.neighborhood, place) if p)


# =============================================================================
# WRITE PAYLOADS
# =============================================================================

class RelationshipCreate(ApiModel):
    """Body for POST /api/relationships."""

    relationship_type: RelType = Field(
        default=RelationshipType.CLIENT,
        validation_alias=AliasChoices("type", "relationshipType"),
        serialization_alias="type",
    )
    document_type: DocType
    document: str = Field(..., min_length=11, max_length=18)
    social_name: str = Field(..., min_length=1, max_length=200)
    fantasy_name: Optional[str] = None
    state_registration: Optional[str] = None
    birth_date: Optional[Day] = None
    zip_code: str = Field(..., min_length=8, max_length=9)
    street: str = Field(..., min_length=1)
    number: str = Field(..., min_length=1)
    complement: Optional[str] = None
    neighborhood: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=2, max_length=2)
    status: Status = RelationshipStatus.ACTIVE

    @model_validator(mode="after")
    def validate_document(self) -> "RelationshipCreate":
        _check_document(self.document_type, self.document)
        return self


class RelationshipUpdate(ApiModel):
    """Body for PUT /api/relationships/:id. Only set fields are sent."""

    relationship_type: Optional[RelType] = Field(
        default=None,
        validation_alias=AliasChoices("type", "relationshipType"),
        serialization_alias="type",
    )
    document_type: Optional[DocType] = None
    document: Optional[str] = Field(default=None, min_length=11, max_length=18)
    social_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    fantasy_name: Optional[str] = None
    state_registration: Optional[str] = None
    birth_date: Optional[Day] = None
    zip_code: Optional[str] = Field(default=None, min_length=8, max_length=9)
    street: Optional[str] = None
    number: Optional[str] = None
    complement: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = Field(default=None, min_length=2, max_length=2)
    status: Optional[Status] = None

    @model_validator(mode="after")
    def validate_document(self) -> "RelationshipUpdate":
        if self.document is not None and self.document_type is None:
            raise ValueError("Document type is required when changing the document")
        _check_document(self.document_type, self.document)
        return self


# =============================================================================
# CONTRACTS
# =============================================================================

Amount = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]


class ContractTerms(ApiModel):
    """
    Commercial terms of a contract to be drafted by the assistant.

    Sent as `contractData` next to the prompt built from it.
    """

    segment: str = Field(..., min_length=1)
    start_date: Day
    validity_period: str = Field(..., min_length=1)
    payment_methods: list[str] = Field(..., min_length=1)
    has_adhesion: bool = False
    monthly_value: Amount = Field(..., ge=0)
    relationship: Optional[Relationship] = Field(
        default=None,
        validation_alias=AliasChoices("relationshipData", "relationship"),
        serialization_alias="relationshipData",
    )
    custom_template: Optional[str] = None


class GeneratedContract(ApiModel):
    """Response of POST /api/generate-contract: the contract as HTML."""

    contract: str = Field(..., min_length=1)
    success: bool = True
