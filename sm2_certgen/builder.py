# sm2_certgen/builder.py
"""
Staged TBSCertificate assembly and SM2 self-signing.

    CertificateBuilder()                          # Empty
        .with_name(name)                          # -> NameSet
        .with_serial(serial)                      # -> SerialSet
        .with_validity(not_before, not_after)     # -> ValiditySet
        .with_public_key(key)                     # -> KeyInfoSet
        .with_extensions()                        # -> UnsignedCertificate
        .sign(key)                                # -> SignedCertificate

Each stage class only offers the next step, so ``sign`` is reachable only
once every field is set. A stage can be advanced once; the TBS structure
moves on to the next stage object.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

from pyasn1.codec.der import encoder
from pyasn1.error import PyAsn1Error
from pyasn1.type import tag, univ, useful
from pyasn1_modules import rfc5280

from .certificate import SignedCertificate
from .exceptions import BuilderStateError, InvalidValidityError, SigningError
from .keys import PrivateKey
from .logger import get_logger
from .oids import OID_EC_PUBLIC_KEY, OID_SM2_CURVE, OID_SM2_WITH_SM3
from .profile import CA_EXTENSION_PROFILE, ExtensionPolicy, build_extensions
from .signer import sign_tbs, verify_tbs
from .utils import sm3_digest

logger = get_logger("builder")

X509_V3 = 2


def _set_time(t: rfc5280.Time, when: datetime) -> None:
    # RFC 5280 4.1.2.5: UTCTime through 2049, GeneralizedTime from 2050
    when = when.astimezone(timezone.utc)
    if when.year < 2050:
        t["utcTime"] = useful.UTCTime(when.strftime("%y%m%d%H%M%SZ"))
    else:
        t["generalTime"] = useful.GeneralizedTime(when.strftime("%Y%m%d%H%M%SZ"))


def _unique_id(digest: bytes, tag_no: int) -> univ.BitString:
    return rfc5280.UniqueIdentifier.fromOctetString(digest).subtype(
        implicitTag=tag.Tag(tag.tagClassContext, tag.tagFormatSimple, tag_no)
    )


class _Stage:
    def __init__(self, tbs: rfc5280.TBSCertificate) -> None:
        self._tbs = tbs

    def _take(self) -> rfc5280.TBSCertificate:
        if self._tbs is None:
            raise BuilderStateError(f"{type(self).__name__} has already been advanced")
        tbs, self._tbs = self._tbs, None
        return tbs


class CertificateBuilder(_Stage):
    """Empty certificate: version and signature algorithm are fixed here."""

    def __init__(self) -> None:
        tbs = rfc5280.TBSCertificate()
        tbs["version"] = X509_V3
        tbs["signature"]["algorithm"] = OID_SM2_WITH_SM3
        super().__init__(tbs)

    def with_name(self, name: rfc5280.Name) -> "_NameSet":
        """Self-issued: the same Name becomes issuer and subject."""
        tbs = self._take()
        tbs["issuer"] = name
        tbs["subject"] = name
        return _NameSet(tbs)


class _NameSet(_Stage):
    def with_serial(self, serial: bytes) -> "_SerialSet":
        if not serial:
            raise ValueError("serial number must not be empty")
        tbs = self._take()
        tbs["serialNumber"] = int.from_bytes(serial, "big")
        logger.debug("serial=%s", serial.hex())
        return _SerialSet(tbs)


class _SerialSet(_Stage):
    def with_validity(self, not_before: datetime, not_after: datetime) -> "_ValiditySet":
        if not_after <= not_before:
            raise InvalidValidityError("notAfter must be later than notBefore")
        tbs = self._take()
        validity = rfc5280.Validity()
        _set_time(validity["notBefore"], not_before)
        _set_time(validity["notAfter"], not_after)
        tbs["validity"] = validity
        return _ValiditySet(tbs)


class _ValiditySet(_Stage):
    def with_public_key(self, key: PrivateKey) -> "_KeyInfoSet":
        """SubjectPublicKeyInfo plus issuer/subject unique IDs from the same key."""
        if not key.is_sm2 or key.public_point is None:
            raise SigningError(
                f"key type {key.algorithm}/{key.curve} does not match sm2sign-with-sm3"
            )
        tbs = self._take()
        point = key.public_point

        spki = rfc5280.SubjectPublicKeyInfo()
        spki["algorithm"]["algorithm"] = OID_EC_PUBLIC_KEY
        spki["algorithm"]["parameters"] = univ.Any(encoder.encode(OID_SM2_CURVE))
        spki["subjectPublicKey"] = univ.BitString.fromOctetString(point)
        tbs["subjectPublicKeyInfo"] = spki

        # issuer == subject, so both identifiers come from this one key
        uid = sm3_digest(point)
        tbs["issuerUniqueID"] = _unique_id(uid, 1)
        tbs["subjectUniqueID"] = _unique_id(uid, 2)
        return _KeyInfoSet(tbs, point)


class _KeyInfoSet(_Stage):
    def __init__(self, tbs: rfc5280.TBSCertificate, public_point: bytes) -> None:
        super().__init__(tbs)
        self._point = public_point

    def with_extensions(
        self, profile: Sequence[ExtensionPolicy] = CA_EXTENSION_PROFILE
    ) -> "UnsignedCertificate":
        extensions = build_extensions(self._point, profile)
        tbs = self._take()
        exts = tbs["extensions"]
        for ext in extensions:
            exts[len(exts)] = ext
        return UnsignedCertificate(tbs, self._point)


class UnsignedCertificate(_Stage):
    """Every TBS field is set; the only thing left to do is sign."""

    def __init__(self, tbs: rfc5280.TBSCertificate, public_point: bytes) -> None:
        super().__init__(tbs)
        self._point = public_point

    def sign(self, key: PrivateKey) -> SignedCertificate:
        tbs = self._take()
        if key.public_point != self._point:
            raise SigningError("private key does not match subjectPublicKeyInfo")
        try:
            tbs_der = encoder.encode(tbs)
        except PyAsn1Error as exc:
            raise SigningError(f"cannot encode TBSCertificate: {exc}") from exc

        signature = sign_tbs(tbs_der, key)
        if not verify_tbs(tbs_der, signature, self._point):
            raise SigningError("SM2 signature failed verification")

        cert = rfc5280.Certificate()
        cert["tbsCertificate"] = tbs
        cert["signatureAlgorithm"]["algorithm"] = OID_SM2_WITH_SM3
        cert["signature"] = univ.BitString.fromOctetString(signature)
        return SignedCertificate(encoder.encode(cert))
