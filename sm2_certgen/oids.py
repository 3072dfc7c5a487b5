# sm2_certgen/oids.py
"""Object identifiers that pyasn1-modules does not ship (GM/T 0006 and PKCS#5)."""

from pyasn1.type import univ

# GM/T 0006 -------------------------------------------------------------- #
OID_SM2_CURVE = univ.ObjectIdentifier("1.2.156.10197.1.301")
OID_SM2_WITH_SM3 = univ.ObjectIdentifier("1.2.156.10197.1.501")
OID_SM4_CBC = univ.ObjectIdentifier("1.2.156.10197.1.104.2")
OID_HMAC_SM3 = univ.ObjectIdentifier("1.2.156.10197.1.401.2")

# RFC 5480 ---------------------------------------------------------------- #
OID_EC_PUBLIC_KEY = univ.ObjectIdentifier("1.2.840.10045.2.1")
OID_PRIME256V1 = univ.ObjectIdentifier("1.2.840.10045.3.1.7")

# PKCS#5 v2 / NIST --------------------------------------------------------- #
OID_PBES2 = univ.ObjectIdentifier("1.2.840.113549.1.5.13")
OID_PBKDF2 = univ.ObjectIdentifier("1.2.840.113549.1.5.12")
OID_HMAC_SHA1 = univ.ObjectIdentifier("1.2.840.113549.2.7")
OID_HMAC_SHA256 = univ.ObjectIdentifier("1.2.840.113549.2.9")
OID_AES128_CBC = univ.ObjectIdentifier("2.16.840.1.101.3.4.1.2")
OID_AES256_CBC = univ.ObjectIdentifier("2.16.840.1.101.3.4.1.42")
