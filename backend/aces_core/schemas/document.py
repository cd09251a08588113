"""
Pydantic models for ACES document envelopes: export options and the
decoded header.
"""

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field

# Four-character AutoCare brand / sub-brand code, e.g. "BBVF"
AAIAID_PATTERN = r"^[A-Za-z0-9]{4}$"


class SchemaVersion(str, Enum):
    V4_1 = "4.1"
    V4_2 = "4.2"

    @property
    def key(self) -> tuple[int, ...]:
        return tuple(int(p) for p in self.value.split("."))


class SubmissionType(str, Enum):
    FULL = "FULL"
    INCREMENTAL = "INCREMENTAL"


class ExportOptions(BaseModel):
    """Submission metadata for an encoded document."""

    brand_aaiaid: str = Field(pattern=AAIAID_PATTERN)
    sub_brand_aaiaid: str | None = Field(default=None, pattern=AAIAID_PATTERN)
    submission_type: SubmissionType = SubmissionType.FULL
    effective_date: date = Field(default_factory=date.today)
    transfer_date: date | None = None  # defaults to today at encode time
    minimum_version: SchemaVersion | None = None
    fill_qualifier_text: bool = False  # take missing Qual text from Qdb when a store is given

    company_name: str = "Auto Parts ERP"
    sender_name: str = "System Export"
    sender_phone: str = "000-000-0000"
    document_title: str = "Product Applications Export"
    parts_approved_for: list[str] = Field(default_factory=lambda: ["US", "CA"])
    vcdb_version_date: str | None = None
    qdb_version_date: str | None = None
    pcdb_version_date: str | None = None

    @classmethod
    def from_settings(cls, settings, **overrides) -> "ExportOptions":
        """Options seeded from Settings header defaults; overrides win."""
        values = {
            "company_name": settings.company_name,
            "sender_name": settings.sender_name,
            "sender_phone": settings.sender_phone,
            "document_title": settings.document_title,
            "parts_approved_for": list(settings.parts_approved_for),
            "vcdb_version_date": settings.vcdb_version_date,
            "qdb_version_date": settings.qdb_version_date,
            "pcdb_version_date": settings.pcdb_version_date,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


class DocumentHeader(BaseModel):
    """Header block of a decoded document. Dates are kept as sent."""

    company: str | None = None
    sender_name: str | None = None
    sender_phone: str | None = None
    transfer_date: str | None = None
    brand_aaiaid: str | None = None
    sub_brand_aaiaid: str | None = None
    document_title: str | None = None
    effective_date: str | None = None
    parts_approved_for: list[str] = Field(default_factory=list)
    submission_type: str | None = None
    vcdb_version_date: str | None = None
    qdb_version_date: str | None = None
    pcdb_version_date: str | None = None
