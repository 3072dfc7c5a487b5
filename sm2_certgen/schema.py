# sm2_certgen/schema.py
"""Typed Pydantic models for certificate requests and decoded certificates."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class DistinguishedName(BaseModel):
    """
    Subject (and issuer) name attributes.

    * `common_name` may be missing here; NameBuilder rejects that later so
      the error surfaces as MissingRequiredFieldError, not a pydantic error.
    """

    model_config = ConfigDict(frozen=True)

    country: Optional[str] = None
    state: Optional[str] = None
    organization: Optional[str] = None
    organizational_unit: Optional[str] = None
    common_name: Optional[str] = None


class IssueRequest(BaseModel):
    """Everything one sm2-certgen run needs, minus the passphrase."""

    model_config = ConfigDict(frozen=True)

    subject: DistinguishedName
    days: Optional[int] = None
    key_path: Optional[Path] = None
    out_path: Optional[Path] = None


class ExtensionSummary(BaseModel):
    oid: str
    critical: bool


class CertificateSummary(BaseModel):
    """Semantic view of a signed certificate, used for logging and comparison."""

    version: int = Field(..., description="X.509 version number (3 for v3)")
    serial_number: str  # hex
    signature_algorithm: str
    issuer: DistinguishedName
    subject: DistinguishedName
    not_before: datetime
    not_after: datetime
    issuer_unique_id: Optional[str] = None  # hex
    subject_unique_id: Optional[str] = None  # hex
    extensions: List[ExtensionSummary] = []

    @field_serializer("not_before", "not_after", when_used="always")
    def _ser_dt(self, v: datetime) -> str:  # noqa: N802
        """Serialize datetime as UTC ISO-8601 w/ seconds precision."""
        return v.astimezone(timezone.utc).isoformat(timespec="seconds")
