# sm2_certgen/profile.py
"""
Fixed X.509v3 extension profile for a constrained CA certificate.

The whole policy is the CA_EXTENSION_PROFILE table below. Swapping the
profile means replacing that one declaration.
"""

from __future__ import annotations

from typing import Callable, List, NamedTuple, Sequence

from pyasn1.codec.der import encoder
from pyasn1.error import PyAsn1Error
from pyasn1.type import base, univ
from pyasn1_modules import rfc5280

from .exceptions import ExtensionEncodingError
from .utils import sm3_digest

PATH_LEN_CONSTRAINT = 6
INHIBIT_ANY_POLICY_SKIP_CERTS = 20
REQUIRE_EXPLICIT_POLICY = 5
INHIBIT_POLICY_MAPPING = 5

EXTENDED_KEY_USAGES = (
    rfc5280.id_kp_serverAuth,
    rfc5280.id_kp_clientAuth,
    rfc5280.id_kp_codeSigning,
    rfc5280.id_kp_emailProtection,
    rfc5280.id_kp_timeStamping,
    rfc5280.id_kp_OCSPSigning,
)


# ---------------------------------------------------------------------- #
# value encoders: subject public point -> ASN.1 extension value
# ---------------------------------------------------------------------- #
def _basic_constraints(_point: bytes) -> base.Asn1Item:
    bc = rfc5280.BasicConstraints()
    bc["cA"] = True
    bc["pathLenConstraint"] = PATH_LEN_CONSTRAINT
    return bc


def _ext_key_usage(_point: bytes) -> base.Asn1Item:
    eku = rfc5280.ExtKeyUsageSyntax()
    for purpose in EXTENDED_KEY_USAGES:
        eku[len(eku)] = purpose
    return eku


def _subject_key_identifier(point: bytes) -> base.Asn1Item:
    return rfc5280.SubjectKeyIdentifier(sm3_digest(point))


def _inhibit_any_policy(_point: bytes) -> base.Asn1Item:
    return rfc5280.InhibitAnyPolicy(INHIBIT_ANY_POLICY_SKIP_CERTS)


def _policy_constraints(_point: bytes) -> base.Asn1Item:
    pc = rfc5280.PolicyConstraints()
    pc["requireExplicitPolicy"] = REQUIRE_EXPLICIT_POLICY
    pc["inhibitPolicyMapping"] = INHIBIT_POLICY_MAPPING
    return pc


class ExtensionPolicy(NamedTuple):
    name: str
    oid: univ.ObjectIdentifier
    critical: bool
    value: Callable[[bytes], base.Asn1Item]


CA_EXTENSION_PROFILE: Sequence[ExtensionPolicy] = (
    ExtensionPolicy("BasicConstraints", rfc5280.id_ce_basicConstraints, True, _basic_constraints),
    ExtensionPolicy("ExtendedKeyUsage", rfc5280.id_ce_extKeyUsage, True, _ext_key_usage),
    ExtensionPolicy("SubjectKeyIdentifier", rfc5280.id_ce_subjectKeyIdentifier, True, _subject_key_identifier),
    ExtensionPolicy("InhibitAnyPolicy", rfc5280.id_ce_inhibitAnyPolicy, True, _inhibit_any_policy),
    ExtensionPolicy("PolicyConstraints", rfc5280.id_ce_policyConstraints, False, _policy_constraints),
)


def build_extensions(
    public_point: bytes,
    profile: Sequence[ExtensionPolicy] = CA_EXTENSION_PROFILE,
) -> List[rfc5280.Extension]:
    """Encode every entry of ``profile`` for the given subject public point."""
    out: List[rfc5280.Extension] = []
    for policy in profile:
        try:
            ext = rfc5280.Extension()
            ext["extnID"] = policy.oid
            ext["critical"] = policy.critical
            ext["extnValue"] = encoder.encode(policy.value(public_point))  # DER encode!
        except PyAsn1Error as exc:
            raise ExtensionEncodingError(f"cannot encode {policy.name}: {exc}") from exc
        out.append(ext)
    return out
