# sm2_certgen/certificate.py
"""Signed certificate: immutable DER bytes plus read-only views and PEM armour."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, NamedTuple, Optional, Union

from pyasn1.codec.der import decoder, encoder
from pyasn1_modules import rfc5280

from .name import name_to_dn
from .schema import CertificateSummary, ExtensionSummary
from .signer import verify_tbs
from .utils import pem_decode, pem_encode

PEM_LABEL = "CERTIFICATE"


class Extension(NamedTuple):
    oid: str
    critical: bool
    value: bytes  # DER of extnValue contents


def _from_asn1_time(t: rfc5280.Time) -> datetime:
    text = str(t.getComponent())
    if t.getName() == "utcTime":
        # RFC 5280 4.1.2.5.1: YY >= 50 is 19YY, otherwise 20YY
        text = ("19" if int(text[:2]) >= 50 else "20") + text
    return datetime.strptime(text, "%Y%m%d%H%M%SZ").replace(tzinfo=timezone.utc)


def _optional_bits(tbs: rfc5280.TBSCertificate, name: str) -> Optional[bytes]:
    comp = tbs.getComponentByName(name)
    if comp is None or not comp.isValue:
        return None
    return comp.asOctets()


class SignedCertificate:
    """
    Sealed X.509 certificate.

    Only the DER encoding is kept; every accessor decodes from it, so
    nothing about a signed certificate can be changed afterwards.
    """

    def __init__(self, der: bytes) -> None:
        self._der = bytes(der)
        cert, _ = decoder.decode(self._der, asn1Spec=rfc5280.Certificate())
        self._tbs = cert["tbsCertificate"]
        self._sig_alg = str(cert["signatureAlgorithm"]["algorithm"])
        self._signature = cert["signature"].asOctets()

    # ---- construction ------------------------------------------------- #
    @classmethod
    def from_der(cls, der: bytes) -> "SignedCertificate":
        return cls(der)

    @classmethod
    def from_pem(cls, pem: Union[bytes, str]) -> "SignedCertificate":
        if isinstance(pem, str):
            pem = pem.encode("ascii")
        return cls(pem_decode(pem, PEM_LABEL))

    # ---- serialization ------------------------------------------------ #
    def to_der(self) -> bytes:
        return self._der

    def to_pem(self) -> bytes:
        return pem_encode(self._der, PEM_LABEL)

    # ---- read-only views ---------------------------------------------- #
    @property
    def tbs_der(self) -> bytes:
        return encoder.encode(self._tbs)

    @property
    def signature(self) -> bytes:
        return self._signature

    @property
    def signature_algorithm(self) -> str:
        return self._sig_alg

    @property
    def version(self) -> int:
        return int(self._tbs["version"]) + 1

    @property
    def serial_number(self) -> int:
        return int(self._tbs["serialNumber"])

    @property
    def issuer_der(self) -> bytes:
        return encoder.encode(self._tbs["issuer"])

    @property
    def subject_der(self) -> bytes:
        return encoder.encode(self._tbs["subject"])

    @property
    def not_before(self) -> datetime:
        return _from_asn1_time(self._tbs["validity"]["notBefore"])

    @property
    def not_after(self) -> datetime:
        return _from_asn1_time(self._tbs["validity"]["notAfter"])

    @property
    def public_point(self) -> bytes:
        return self._tbs["subjectPublicKeyInfo"]["subjectPublicKey"].asOctets()

    @property
    def issuer_unique_id(self) -> Optional[bytes]:
        return _optional_bits(self._tbs, "issuerUniqueID")

    @property
    def subject_unique_id(self) -> Optional[bytes]:
        return _optional_bits(self._tbs, "subjectUniqueID")

    @property
    def extensions(self) -> List[Extension]:
        exts = self._tbs.getComponentByName("extensions")
        if exts is None or not exts.isValue:
            return []
        return [
            Extension(str(ext["extnID"]), bool(ext["critical"]), bytes(ext["extnValue"]))
            for ext in exts
        ]

    # ---- checks / summaries ------------------------------------------- #
    def verify(self) -> bool:
        """Self-signature check against the embedded public key."""
        if self._sig_alg != str(self._tbs["signature"]["algorithm"]):
            return False
        return verify_tbs(self.tbs_der, self._signature, self.public_point)

    def summary(self) -> CertificateSummary:
        issuer_uid = self.issuer_unique_id
        subject_uid = self.subject_unique_id
        return CertificateSummary(
            version=self.version,
            serial_number="%x" % self.serial_number,
            signature_algorithm=self._sig_alg,
            issuer=name_to_dn(self._tbs["issuer"]),
            subject=name_to_dn(self._tbs["subject"]),
            not_before=self.not_before,
            not_after=self.not_after,
            issuer_unique_id=issuer_uid.hex() if issuer_uid is not None else None,
            subject_unique_id=subject_uid.hex() if subject_uid is not None else None,
            extensions=[ExtensionSummary(oid=e.oid, critical=e.critical) for e in self.extensions],
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SignedCertificate):
            return NotImplemented
        return self._der == other._der

    def __hash__(self) -> int:
        return hash(self._der)

    def __repr__(self) -> str:
        return f"<SignedCertificate serial={self.serial_number:x}>"
