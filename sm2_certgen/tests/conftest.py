# sm2_certgen/tests/conftest.py
"""Shared pytest fixtures."""

from datetime import datetime, timezone

import pytest

from sm2_certgen.builder import CertificateBuilder
from sm2_certgen.keys import generate_sm2_key
from sm2_certgen.name import NameBuilder
from sm2_certgen.schema import DistinguishedName
from sm2_certgen.utils import generate_serial, validity_window

PASSPHRASE = "test123"
KDF_ITERATIONS = 1024  # keep PBKDF2 cheap in tests


@pytest.fixture(scope="session")
def sm2_key():
    return generate_sm2_key()


@pytest.fixture(scope="session")
def other_sm2_key():
    return generate_sm2_key()


@pytest.fixture
def key_file(tmp_path, sm2_key):
    p = tmp_path / "sm2.key.pem"
    p.write_bytes(sm2_key.to_encrypted_pem(PASSPHRASE, KDF_ITERATIONS))
    return p


@pytest.fixture
def fixed_now():
    return datetime(2026, 1, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)


@pytest.fixture
def make_unsigned(sm2_key, fixed_now):
    """Factory: run every builder stage up to (not including) sign()."""

    def _make(dn=None, *, key=None, days=3650, now=None, serial=None):
        dn = dn or DistinguishedName(common_name="Root CA")
        not_before, not_after = validity_window(days, now or fixed_now)
        return (
            CertificateBuilder()
            .with_name(NameBuilder.from_dn(dn).build())
            .with_serial(serial or generate_serial())
            .with_validity(not_before, not_after)
            .with_public_key(key or sm2_key)
            .with_extensions()
        )

    return _make


@pytest.fixture
def make_cert(make_unsigned, sm2_key):
    def _make(dn=None, **kwargs):
        return make_unsigned(dn, **kwargs).sign(kwargs.get("key") or sm2_key)

    return _make
