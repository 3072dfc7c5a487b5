# sm2_certgen/signer.py
"""SM2-with-SM3 signatures over DER TBSCertificate bytes."""

from __future__ import annotations

import secrets

from gmssl import sm2
from pyasn1.codec.der import decoder, encoder
from pyasn1.error import PyAsn1Error
from pyasn1.type import namedtype, univ

from .exceptions import SigningError
from .keys import SM2_ORDER, PrivateKey
from .logger import get_logger

logger = get_logger("signer")


class SM2Signature(univ.Sequence):
    """GM/T 0009: SEQUENCE { r INTEGER, s INTEGER }"""

    componentType = namedtype.NamedTypes(
        namedtype.NamedType("r", univ.Integer()),
        namedtype.NamedType("s", univ.Integer()),
    )


def _crypt(private_hex: str, public_point: bytes) -> sm2.CryptSM2:
    crypt = sm2.CryptSM2(private_key=private_hex, public_key=public_point[1:].hex())
    # CryptSM2 may strip a leading "04" from the hex it is handed; pin x || y
    crypt.public_key = public_point[1:].hex()
    return crypt


def sign_tbs(tbs_der: bytes, key: PrivateKey) -> bytes:
    """Return the DER-encoded SM2 signature of ``tbs_der``."""
    if not key.is_sm2:
        raise SigningError(
            f"key type {key.algorithm}/{key.curve} does not match sm2sign-with-sm3"
        )
    if key.scalar is None or not 0 < key.scalar < SM2_ORDER - 1:
        raise SigningError("malformed SM2 private scalar")
    if key.public_point is None or len(key.public_point) != 65 or key.public_point[0] != 0x04:
        raise SigningError("SM2 key has no uncompressed public point")

    crypt = _crypt("%064x" % key.scalar, key.public_point)
    nonce = "%064x" % (secrets.randbelow(SM2_ORDER - 1) + 1)
    raw = crypt.sign_with_sm3(tbs_der, nonce)
    if not raw:
        # degenerate r/s for this nonce
        raise SigningError("SM2 signing primitive failed")

    sig = SM2Signature()
    sig["r"] = int(raw[:64], 16)
    sig["s"] = int(raw[64:128], 16)
    logger.debug("signed %d TBS bytes", len(tbs_der))
    return encoder.encode(sig)


def verify_tbs(tbs_der: bytes, signature: bytes, public_point: bytes) -> bool:
    """Check a DER SM2 signature against the uncompressed public point."""
    try:
        sig, _ = decoder.decode(signature, asn1Spec=SM2Signature())
    except PyAsn1Error:
        return False
    raw = "%064x%064x" % (int(sig["r"]), int(sig["s"]))
    return bool(_crypt("", public_point).verify_with_sm3(raw, tbs_der))
