# sm2_certgen/keys.py
"""
Encrypted PKCS#8 private keys (PEM "ENCRYPTED PRIVATE KEY").

  * PBES2 / PBKDF2 with hmacWithSM3, hmacWithSHA256 or hmacWithSHA1
  * SM4-CBC, AES-128-CBC or AES-256-CBC
  * inner PrivateKeyInfo carrying an RFC 5915 ECPrivateKey
Keys written here use PBKDF2-HMAC-SM3 + SM4-CBC, the GmSSL layout.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from gmssl import sm2
from pyasn1.codec.der import decoder, encoder
from pyasn1.error import PyAsn1Error
from pyasn1.type import namedtype, tag, univ
from pyasn1_modules import rfc5208, rfc5280, rfc5915

from .exceptions import DecryptionError, KeyFileError
from .logger import get_logger
from .oids import (
    OID_AES128_CBC,
    OID_AES256_CBC,
    OID_EC_PUBLIC_KEY,
    OID_HMAC_SHA1,
    OID_HMAC_SHA256,
    OID_HMAC_SM3,
    OID_PBES2,
    OID_PBKDF2,
    OID_SM2_CURVE,
    OID_SM4_CBC,
)
from .utils import pem_decode, pem_encode

logger = get_logger("keys")

PEM_LABEL = "ENCRYPTED PRIVATE KEY"
SM2_ORDER = int(sm2.default_ecc_table["n"], 16)

PassphraseProvider = Callable[[], str]

_PRFS = {
    str(OID_HMAC_SM3): hashes.SM3,
    str(OID_HMAC_SHA256): hashes.SHA256,
    str(OID_HMAC_SHA1): hashes.SHA1,
}
_CIPHERS = {
    str(OID_SM4_CBC): (algorithms.SM4, 16),
    str(OID_AES128_CBC): (algorithms.AES, 16),
    str(OID_AES256_CBC): (algorithms.AES, 32),
}


# ---------------------------------------------------------------------- #
# PKCS#5 v2 structures (RFC 8018 A.2 / A.4), only the parts used here
# ---------------------------------------------------------------------- #
class PBKDF2Params(univ.Sequence):
    componentType = namedtype.NamedTypes(
        namedtype.NamedType("salt", univ.OctetString()),
        namedtype.NamedType("iterationCount", univ.Integer()),
        namedtype.OptionalNamedType("keyLength", univ.Integer()),
        namedtype.OptionalNamedType("prf", rfc5280.AlgorithmIdentifier()),
    )


class PBES2Params(univ.Sequence):
    componentType = namedtype.NamedTypes(
        namedtype.NamedType("keyDerivationFunc", rfc5280.AlgorithmIdentifier()),
        namedtype.NamedType("encryptionScheme", rfc5280.AlgorithmIdentifier()),
    )


# ---------------------------------------------------------------------- #
# key model
# ---------------------------------------------------------------------- #
@dataclass(frozen=True)
class PrivateKey:
    """
    A decrypted private key.

    `algorithm` and `curve` are dotted OIDs. For anything but an EC key
    `scalar` and `public_point` stay None; the signer rejects such keys.
    """

    algorithm: str
    curve: Optional[str] = None
    scalar: Optional[int] = None
    public_point: Optional[bytes] = None  # 04 || x || y

    @property
    def is_sm2(self) -> bool:
        return self.algorithm == str(OID_EC_PUBLIC_KEY) and self.curve == str(OID_SM2_CURVE)

    def to_encrypted_pem(self, passphrase: str, iterations: int) -> bytes:
        """Encrypt as PBES2 (PBKDF2-HMAC-SM3, SM4-CBC) and PEM-armour."""
        if not self.is_sm2 or self.scalar is None or self.public_point is None:
            raise ValueError("only SM2 keys can be exported")

        ec_key = rfc5915.ECPrivateKey()
        ec_key["version"] = 1
        ec_key["privateKey"] = self.scalar.to_bytes(32, "big")
        ec_key["publicKey"] = univ.BitString.fromOctetString(self.public_point).subtype(
            explicitTag=tag.Tag(tag.tagClassContext, tag.tagFormatSimple, 1)
        )

        pki = rfc5208.PrivateKeyInfo()
        pki["version"] = 0
        pki["privateKeyAlgorithm"]["algorithm"] = OID_EC_PUBLIC_KEY
        pki["privateKeyAlgorithm"]["parameters"] = univ.Any(encoder.encode(OID_SM2_CURVE))
        pki["privateKey"] = encoder.encode(ec_key)

        salt = secrets.token_bytes(16)
        iv = secrets.token_bytes(16)
        key = PBKDF2HMAC(
            algorithm=hashes.SM3(), length=16, salt=salt, iterations=iterations
        ).derive(passphrase.encode("utf-8"))
        padder = padding.PKCS7(128).padder()
        plain = padder.update(encoder.encode(pki)) + padder.finalize()
        encryptor = Cipher(algorithms.SM4(key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(plain) + encryptor.finalize()

        kdf_params = PBKDF2Params()
        kdf_params["salt"] = salt
        kdf_params["iterationCount"] = iterations
        kdf_params["keyLength"] = 16
        kdf_params["prf"]["algorithm"] = OID_HMAC_SM3

        pbes2 = PBES2Params()
        pbes2["keyDerivationFunc"]["algorithm"] = OID_PBKDF2
        pbes2["keyDerivationFunc"]["parameters"] = univ.Any(encoder.encode(kdf_params))
        pbes2["encryptionScheme"]["algorithm"] = OID_SM4_CBC
        pbes2["encryptionScheme"]["parameters"] = univ.Any(encoder.encode(univ.OctetString(iv)))

        epki = rfc5208.EncryptedPrivateKeyInfo()
        epki["encryptionAlgorithm"]["algorithm"] = OID_PBES2
        epki["encryptionAlgorithm"]["parameters"] = univ.Any(encoder.encode(pbes2))
        epki["encryptedData"] = ciphertext
        return pem_encode(encoder.encode(epki), PEM_LABEL)


# ---------------------------------------------------------------------- #
# SM2 key generation
# ---------------------------------------------------------------------- #
def sm2_public_point(scalar: int) -> bytes:
    """Uncompressed point ``04 || x || y`` for the SM2 private scalar."""
    # CryptSM2._kg (scalar multiplication) is private API; present through gmssl 3.2.x
    crypt = sm2.CryptSM2(private_key="%064x" % scalar, public_key="")
    return b"\x04" + bytes.fromhex(crypt._kg(scalar, sm2.default_ecc_table["g"]))


def generate_sm2_key() -> PrivateKey:
    scalar = secrets.randbelow(SM2_ORDER - 2) + 1  # [1, n-2]
    return PrivateKey(
        algorithm=str(OID_EC_PUBLIC_KEY),
        curve=str(OID_SM2_CURVE),
        scalar=scalar,
        public_point=sm2_public_point(scalar),
    )


# ---------------------------------------------------------------------- #
# loading
# ---------------------------------------------------------------------- #
def _decrypt_pkcs8(der: bytes, passphrase: bytes) -> bytes:
    epki, _ = decoder.decode(der, asn1Spec=rfc5208.EncryptedPrivateKeyInfo())
    enc_alg = epki["encryptionAlgorithm"]
    if str(enc_alg["algorithm"]) != str(OID_PBES2):
        raise DecryptionError(f"unsupported key encryption {enc_alg['algorithm']}")

    pbes2, _ = decoder.decode(bytes(enc_alg["parameters"]), asn1Spec=PBES2Params())
    kdf = pbes2["keyDerivationFunc"]
    if str(kdf["algorithm"]) != str(OID_PBKDF2):
        raise DecryptionError(f"unsupported key derivation {kdf['algorithm']}")
    kdf_params, _ = decoder.decode(bytes(kdf["parameters"]), asn1Spec=PBKDF2Params())

    prf = kdf_params.getComponentByName("prf")
    prf_oid = str(prf["algorithm"]) if prf is not None and prf.isValue else str(OID_HMAC_SHA1)
    scheme = pbes2["encryptionScheme"]
    cipher_oid = str(scheme["algorithm"])
    if prf_oid not in _PRFS:
        raise DecryptionError(f"unsupported PBKDF2 PRF {prf_oid}")
    if cipher_oid not in _CIPHERS:
        raise DecryptionError(f"unsupported cipher {cipher_oid}")
    cipher_cls, key_len = _CIPHERS[cipher_oid]
    iv, _ = decoder.decode(bytes(scheme["parameters"]), asn1Spec=univ.OctetString())

    iterations = int(kdf_params["iterationCount"])
    if iterations < 1:
        raise DecryptionError(f"invalid PBKDF2 iteration count {iterations}")
    logger.debug("PBES2 prf=%s cipher=%s iterations=%d", prf_oid, cipher_oid, iterations)
    key = PBKDF2HMAC(
        algorithm=_PRFS[prf_oid](),
        length=key_len,
        salt=bytes(kdf_params["salt"]),
        iterations=iterations,
    ).derive(passphrase)
    decryptor = Cipher(cipher_cls(key), modes.CBC(bytes(iv))).decryptor()
    padded = decryptor.update(bytes(epki["encryptedData"])) + decryptor.finalize()
    unpadder = padding.PKCS7(128).unpadder()
    return unpadder.update(padded) + unpadder.finalize()


def _parse_private_key_info(der: bytes) -> PrivateKey:
    pki, _ = decoder.decode(der, asn1Spec=rfc5208.PrivateKeyInfo())
    alg = pki["privateKeyAlgorithm"]
    alg_oid = str(alg["algorithm"])
    if alg_oid != str(OID_EC_PUBLIC_KEY):
        return PrivateKey(algorithm=alg_oid)

    curve: Optional[str] = None
    params = alg.getComponentByName("parameters")
    if params is not None and params.isValue:
        curve_oid, _ = decoder.decode(bytes(params), asn1Spec=univ.ObjectIdentifier())
        curve = str(curve_oid)

    ec_key, _ = decoder.decode(bytes(pki["privateKey"]), asn1Spec=rfc5915.ECPrivateKey())
    if curve is None:
        ec_params = ec_key.getComponentByName("parameters")
        if ec_params is not None and ec_params.isValue and ec_params.getName() == "namedCurve":
            curve = str(ec_params["namedCurve"])
    scalar = int.from_bytes(bytes(ec_key["privateKey"]), "big")

    point: Optional[bytes] = None
    pub = ec_key.getComponentByName("publicKey")
    if pub is not None and pub.isValue:
        point = pub.asOctets()
    elif curve == str(OID_SM2_CURVE) and 0 < scalar < SM2_ORDER:
        point = sm2_public_point(scalar)

    return PrivateKey(algorithm=alg_oid, curve=curve, scalar=scalar, public_point=point)


def load_encrypted_pem(data: Union[bytes, str], passphrase: str) -> PrivateKey:
    """
    Decrypt and parse an encrypted PKCS#8 PEM.
    Any failure (wrong passphrase included) is a DecryptionError.
    """
    if isinstance(data, str):
        data = data.encode("ascii", errors="replace")
    try:
        der = pem_decode(data, PEM_LABEL)
        plain = _decrypt_pkcs8(der, passphrase.encode("utf-8"))
        return _parse_private_key_info(plain)
    except DecryptionError:
        raise
    except (ValueError, TypeError, OverflowError, PyAsn1Error, UnsupportedAlgorithm) as exc:
        raise DecryptionError(f"cannot decrypt private key (wrong passphrase?): {exc}") from exc


def load_key_file(path: Union[str, Path], passphrase: PassphraseProvider) -> PrivateKey:
    """
    Read ``path``, then ask ``passphrase()`` for the secret and decrypt.
    The file handle is closed before decryption starts.
    """
    try:
        with open(path, "rb") as fp:
            data = fp.read()
    except OSError as exc:
        raise KeyFileError(f"cannot read key file {path}: {exc}") from exc
    logger.info("loaded key container from %s", path)
    return load_encrypted_pem(data, passphrase())
