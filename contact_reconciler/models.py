"""
Pydantic models for contact records — one fixed schema for everything we
understand, one open-ended map for everything we don't.

A Contact is created by the decoder, replaced (never mutated) by repair and
merge, and read-only for the filter and the encoder.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


# ─── Sources & Destinations ─────────────────────────────────────────


class ContactSource(str, Enum):
    """Which export a contact was read from."""

    GOOGLE = "google"
    APPLE = "apple"


class OutputFormat(str, Enum):
    """Destination-specific card flavour."""

    GOOGLE = "google"  # No PHOTO, no vendor extensions
    APPLE = "apple"  # PRODID line, PHOTO and X-* properties re-emitted


# ─── Contact Parts ──────────────────────────────────────────────────


class StructuredName(BaseModel):
    """The N property: family;given;additional;prefix;suffix."""

    family: str = ""
    given: str = ""
    additional: str = ""
    prefix: str = ""
    suffix: str = ""


class PostalAddress(BaseModel):
    """The ADR property, components in card order."""

    types: list[str] = Field(default_factory=list)
    po_box: str = ""
    extended: str = ""
    street: str = ""
    locality: str = ""
    region: str = ""
    postal_code: str = ""
    country: str = ""

    def components(self) -> list[str]:
        return [
            self.po_box,
            self.extended,
            self.street,
            self.locality,
            self.region,
            self.postal_code,
            self.country,
        ]

    def is_populated(self) -> bool:
        return any(c.strip() for c in self.components())


# ─── Contact ────────────────────────────────────────────────────────


class Contact(BaseModel):
    """A single person as read from one card block.

    `emails` and `phones` hold normalized values with no duplicates, in
    order of first appearance. `extra_properties` maps an unrecognized
    property name to the raw lines it appeared on.
    """

    uid: str
    source: ContactSource
    full_name: str = ""
    name: Optional[StructuredName] = None
    emails: list[str] = Field(default_factory=list)
    phones: list[str] = Field(default_factory=list)
    organizations: list[str] = Field(default_factory=list)
    title: str = ""
    note: str = ""
    urls: list[str] = Field(default_factory=list)
    addresses: list[PostalAddress] = Field(default_factory=list)
    birthday: str = ""
    photo: str = ""
    photo_params: str = ""  # Raw parameter segment, e.g. "ENCODING=b;TYPE=JPEG"
    extra_properties: dict[str, list[str]] = Field(default_factory=dict)


# ─── Filter Decision ────────────────────────────────────────────────


class FilterDecision(BaseModel):
    """Outcome of the quality filter for one contact."""

    keep: bool
    code: str = ""  # Machine-readable rule id, e.g. "GIBBERISH_NAME"
    reason: str = ""  # Human-readable, empty when kept


class DiscardedContact(BaseModel):
    """A contact the filter rejected, kept for the audit trail."""

    contact: Contact
    code: str
    reason: str


# ─── Run Report ─────────────────────────────────────────────────────


class ProcessingStats(BaseModel):
    """Counters for one reconciliation run."""

    google_total: int = 0
    apple_total: int = 0
    combined_total: int = 0
    kept: int = 0
    filtered_out: int = 0
    duplicates_merged: int = 0
    final_count: int = 0
    filter_reasons: dict[str, int] = Field(default_factory=dict)


class ReconciliationResult(BaseModel):
    """The final output of the reconciliation pipeline."""

    google_vcf: str
    apple_vcf: str
    stats: ProcessingStats
    contacts: list[Contact] = Field(default_factory=list)
    discarded: list[DiscardedContact] = Field(default_factory=list)
