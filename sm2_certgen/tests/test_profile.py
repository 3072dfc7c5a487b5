# sm2_certgen/tests/test_profile.py
import pytest
from pyasn1.codec.der import decoder
from pyasn1.error import PyAsn1Error
from pyasn1_modules import rfc5280

from sm2_certgen.exceptions import ExtensionEncodingError
from sm2_certgen.profile import (
    CA_EXTENSION_PROFILE,
    EXTENDED_KEY_USAGES,
    ExtensionPolicy,
    build_extensions,
)
from sm2_certgen.utils import sm3_digest


def _by_oid(extensions):
    return {str(ext["extnID"]): ext for ext in extensions}


def _value(ext, asn1_spec):
    decoded, rest = decoder.decode(bytes(ext["extnValue"]), asn1Spec=asn1_spec)
    assert rest == b""
    return decoded


def test_profile_shape(sm2_key):
    exts = build_extensions(sm2_key.public_point)
    assert [(str(e["extnID"]), bool(e["critical"])) for e in exts] == [
        (str(rfc5280.id_ce_basicConstraints), True),
        (str(rfc5280.id_ce_extKeyUsage), True),
        (str(rfc5280.id_ce_subjectKeyIdentifier), True),
        (str(rfc5280.id_ce_inhibitAnyPolicy), True),
        (str(rfc5280.id_ce_policyConstraints), False),
    ]
    assert [p.name for p in CA_EXTENSION_PROFILE] == [
        "BasicConstraints",
        "ExtendedKeyUsage",
        "SubjectKeyIdentifier",
        "InhibitAnyPolicy",
        "PolicyConstraints",
    ]


def test_basic_constraints(sm2_key):
    ext = _by_oid(build_extensions(sm2_key.public_point))[str(rfc5280.id_ce_basicConstraints)]
    bc = _value(ext, rfc5280.BasicConstraints())
    assert bool(bc["cA"]) is True
    assert int(bc["pathLenConstraint"]) == 6


def test_extended_key_usage(sm2_key):
    ext = _by_oid(build_extensions(sm2_key.public_point))[str(rfc5280.id_ce_extKeyUsage)]
    eku = _value(ext, rfc5280.ExtKeyUsageSyntax())
    assert [str(p) for p in eku] == [str(p) for p in EXTENDED_KEY_USAGES]
    assert len(eku) == 6


def test_subject_key_identifier_is_sm3_of_point(sm2_key):
    ext = _by_oid(build_extensions(sm2_key.public_point))[str(rfc5280.id_ce_subjectKeyIdentifier)]
    ski = _value(ext, rfc5280.SubjectKeyIdentifier())
    assert bytes(ski) == sm3_digest(sm2_key.public_point)
    assert len(bytes(ski)) == 32


def test_policy_extensions(sm2_key):
    exts = _by_oid(build_extensions(sm2_key.public_point))
    iap = _value(exts[str(rfc5280.id_ce_inhibitAnyPolicy)], rfc5280.InhibitAnyPolicy())
    assert int(iap) == 20
    pc = _value(exts[str(rfc5280.id_ce_policyConstraints)], rfc5280.PolicyConstraints())
    assert int(pc["requireExplicitPolicy"]) == 5
    assert int(pc["inhibitPolicyMapping"]) == 5


def test_same_profile_for_every_key(sm2_key, other_sm2_key):
    a = build_extensions(sm2_key.public_point)
    b = build_extensions(other_sm2_key.public_point)
    assert [(str(e["extnID"]), bool(e["critical"])) for e in a] == [
        (str(e["extnID"]), bool(e["critical"])) for e in b
    ]


def test_encoding_failure_is_reported(sm2_key):
    def broken(_point):
        raise PyAsn1Error("boom")

    profile = CA_EXTENSION_PROFILE[:1] + (
        ExtensionPolicy("Broken", rfc5280.id_ce_inhibitAnyPolicy, True, broken),
    )
    with pytest.raises(ExtensionEncodingError, match="Broken"):
        build_extensions(sm2_key.public_point, profile)
