# sm2_certgen/tests/test_builder.py
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest
from pyasn1.codec.der import decoder
from pyasn1.type import useful
from pyasn1_modules import rfc5280

from sm2_certgen.builder import CertificateBuilder
from sm2_certgen.certificate import SignedCertificate, _from_asn1_time
from sm2_certgen.exceptions import BuilderStateError, InvalidValidityError, SigningError
from sm2_certgen.keys import PrivateKey
from sm2_certgen.name import NameBuilder
from sm2_certgen.oids import OID_EC_PUBLIC_KEY, OID_PRIME256V1, OID_SM2_WITH_SM3
from sm2_certgen.schema import DistinguishedName
from sm2_certgen.utils import sm3_digest, validity_window


def _tbs(cert):
    decoded, _ = decoder.decode(cert.to_der(), asn1Spec=rfc5280.Certificate())
    return decoded["tbsCertificate"]


def test_signed_certificate_fields(make_cert, sm2_key, fixed_now):
    serial = bytes.fromhex("0102030405060708090a0b0c")
    cert = make_cert(serial=serial)

    assert cert.version == 3
    assert cert.serial_number == int.from_bytes(serial, "big")
    assert cert.signature_algorithm == str(OID_SM2_WITH_SM3)
    assert cert.public_point == sm2_key.public_point
    assert cert.not_before == fixed_now.replace(microsecond=0)
    assert cert.not_after - cert.not_before == timedelta(days=3650)
    assert cert.verify()


def test_self_issued(make_cert):
    cert = make_cert(DistinguishedName(country="CN", organization="Example Org", common_name="Root CA"))
    assert cert.issuer_der == cert.subject_der
    summary = cert.summary()
    assert summary.issuer == summary.subject
    assert summary.subject.common_name == "Root CA"


def test_unique_ids_from_subject_key(make_cert, sm2_key):
    cert = make_cert()
    expected = sm3_digest(sm2_key.public_point)
    assert cert.issuer_unique_id == expected
    assert cert.subject_unique_id == expected


def test_algorithm_identifiers(make_cert):
    tbs = _tbs(make_cert())
    assert str(tbs["signature"]["algorithm"]) == str(OID_SM2_WITH_SM3)
    assert str(tbs["subjectPublicKeyInfo"]["algorithm"]["algorithm"]) == str(OID_EC_PUBLIC_KEY)


def test_extension_list(make_cert):
    exts = make_cert().extensions
    assert [e.oid for e in exts] == [
        str(rfc5280.id_ce_basicConstraints),
        str(rfc5280.id_ce_extKeyUsage),
        str(rfc5280.id_ce_subjectKeyIdentifier),
        str(rfc5280.id_ce_inhibitAnyPolicy),
        str(rfc5280.id_ce_policyConstraints),
    ]
    assert [e.critical for e in exts] == [True, True, True, True, False]


@pytest.mark.parametrize(
    "dn",
    [
        DistinguishedName(common_name="Root CA"),
        DistinguishedName(country="CN", state="Beijing", common_name="Root CA"),
        DistinguishedName(
            country="CN",
            state="Beijing",
            organization="Example Org",
            organizational_unit="PKI",
            common_name="Root CA",
        ),
    ],
)
def test_extensions_do_not_depend_on_name(make_cert, dn):
    assert [(e.oid, e.critical) for e in make_cert(dn).extensions] == [
        (e.oid, e.critical) for e in make_cert().extensions
    ]


def test_utc_and_generalized_time(make_cert):
    cert = make_cert(now=datetime(2049, 6, 1, tzinfo=timezone.utc), days=365)
    validity = _tbs(cert)["validity"]
    assert validity["notBefore"].getName() == "utcTime"
    assert validity["notAfter"].getName() == "generalTime"
    assert cert.not_after == datetime(2050, 6, 1, tzinfo=timezone.utc)


def test_stage_cannot_be_reused():
    name = NameBuilder().common_name("Root CA").build()
    builder = CertificateBuilder()
    builder.with_name(name)
    with pytest.raises(BuilderStateError):
        builder.with_name(name)


def test_unsigned_certificate_signs_once(make_unsigned, sm2_key):
    unsigned = make_unsigned()
    unsigned.sign(sm2_key)
    with pytest.raises(BuilderStateError):
        unsigned.sign(sm2_key)


def test_sign_only_reachable_at_the_end(sm2_key, fixed_now):
    not_before, not_after = validity_window(30, fixed_now)
    stages = [CertificateBuilder()]
    stages.append(stages[-1].with_name(NameBuilder().common_name("Root CA").build()))
    stages.append(stages[-1].with_serial(b"\x01" * 12))
    stages.append(stages[-1].with_validity(not_before, not_after))
    stages.append(stages[-1].with_public_key(sm2_key))
    assert not any(hasattr(stage, "sign") for stage in stages)
    assert hasattr(stages[-1].with_extensions(), "sign")


def test_empty_serial_rejected():
    stage = CertificateBuilder().with_name(NameBuilder().common_name("Root CA").build())
    with pytest.raises(ValueError):
        stage.with_serial(b"")


def test_validity_order_checked(fixed_now):
    stage = (
        CertificateBuilder()
        .with_name(NameBuilder().common_name("Root CA").build())
        .with_serial(b"\x01" * 12)
    )
    with pytest.raises(InvalidValidityError):
        stage.with_validity(fixed_now, fixed_now)


def test_non_sm2_key_rejected(fixed_now):
    p256 = PrivateKey(
        algorithm=str(OID_EC_PUBLIC_KEY),
        curve=str(OID_PRIME256V1),
        scalar=5,
        public_point=b"\x04" + b"\x01" * 64,
    )
    not_before, not_after = validity_window(30, fixed_now)
    stage = (
        CertificateBuilder()
        .with_name(NameBuilder().common_name("Root CA").build())
        .with_serial(b"\x01" * 12)
        .with_validity(not_before, not_after)
    )
    with pytest.raises(SigningError):
        stage.with_public_key(p256)


def test_mismatched_signing_key(make_unsigned, other_sm2_key):
    with pytest.raises(SigningError):
        make_unsigned().sign(other_sm2_key)


def test_malformed_scalar(make_unsigned, sm2_key):
    with pytest.raises(SigningError):
        make_unsigned().sign(replace(sm2_key, scalar=0))


def test_pem_roundtrip(make_cert):
    cert = make_cert()
    again = SignedCertificate.from_pem(cert.to_pem())
    assert again == cert
    assert again.to_der() == cert.to_der()
    assert again.summary() == cert.summary()
    assert hash(again) == hash(cert)


def test_tampered_certificate_fails_verification(make_cert):
    der = make_cert().to_der()
    assert b"Root CA" in der
    tampered = SignedCertificate.from_der(der.replace(b"Root CA", b"Root CB"))
    assert not tampered.verify()


@pytest.mark.parametrize(
    "utc_time, expected",
    [
        ("491231235959Z", datetime(2049, 12, 31, 23, 59, 59, tzinfo=timezone.utc)),
        ("500101000000Z", datetime(1950, 1, 1, tzinfo=timezone.utc)),
        ("700101000000Z", datetime(1970, 1, 1, tzinfo=timezone.utc)),
    ],
)
def test_utc_time_century_pivot(utc_time, expected):
    t = rfc5280.Time()
    t["utcTime"] = useful.UTCTime(utc_time)
    assert _from_asn1_time(t) == expected
