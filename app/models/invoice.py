"""
Modelos dos boletos Cora e do estado de autenticação.
Raw provider payloads (list items, invoice detail) stay plain dicts.
"""
from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class Provenance(str, Enum):
    FILE = "file"
    ENV_LITERAL = "env_literal"
    ENV_BASE64 = "env_base64"


class CredentialMaterial(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: bytes
    provenance: Provenance
    source: str = ""


class AccessToken(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: str
    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        return now < self.expires_at


class DetailOutcome(BaseModel):
    """Result of one detail request: either detail or error is set."""
    invoice_id: str
    detail: dict | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.detail is not None


class EnrichmentResult(BaseModel):
    details: list[DetailOutcome] = []
    failures: dict[str, str] = {}


class PixInfo(BaseModel):
    key: str | None = None
    payload: str | None = None


class EnrichedInvoice(BaseModel):
    id: str | None = None
    student_name: str | None = None
    status: str | None = None
    due_date: str | None = None
    amount_cents: int | None = None
    amount: str | None = None
    pix_key: str | None = None
    pix_payload: str | None = None
    barcode: str | None = None
    digitable: str | None = None
    pdf_url: str | None = None
    customer_document: str | None = None

    def due_day(self) -> date | None:
        """Due date without time of day; None when missing or unparseable."""
        if not self.due_date:
            return None
        try:
            return date.fromisoformat(self.due_date[:10])
        except ValueError:
            return None


class ClassificationResult(BaseModel):
    overdue: list[EnrichedInvoice] = []
    next_due: EnrichedInvoice | None = None

    @property
    def empty(self) -> bool:
        return not self.overdue and self.next_due is None
