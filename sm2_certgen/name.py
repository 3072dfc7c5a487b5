# sm2_certgen/name.py
"""Assemble an RFC 5280 Name from the five supported attributes."""

from __future__ import annotations

from typing import Dict, Optional

from pyasn1.codec.der import decoder, encoder
from pyasn1.error import PyAsn1Error
from pyasn1.type import univ
from pyasn1_modules import rfc5280

from .exceptions import MissingRequiredFieldError, NameEncodingError
from .schema import DistinguishedName

# encoded order, independent of the order the setters were called in
_ATTRIBUTE_ORDER = (
    ("country", rfc5280.id_at_countryName),
    ("state", rfc5280.id_at_stateOrProvinceName),
    ("organization", rfc5280.id_at_organizationName),
    ("organizational_unit", rfc5280.id_at_organizationalUnitName),
    ("common_name", rfc5280.id_at_commonName),
)

# DirectoryString choices; the size bounds come from the RFC 5280 schema
_DIRECTORY_STRINGS = {
    "state": rfc5280.X520StateOrProvinceName,
    "organization": rfc5280.X520OrganizationName,
    "organizational_unit": rfc5280.X520OrganizationalUnitName,
    "common_name": rfc5280.X520CommonName,
}


def _encode_value(field: str, value: str) -> univ.Any:
    if field == "country":
        asn1_value = rfc5280.X520countryName(value)
    else:
        asn1_value = _DIRECTORY_STRINGS[field]()
        asn1_value["utf8String"] = value
    return univ.Any(encoder.encode(asn1_value))


class NameBuilder:
    """
    Collects name attributes, then builds the RDN sequence
    C, ST, O, OU, CN with one attribute per RDN.
    """

    def __init__(self) -> None:
        self._values: Dict[str, str] = {}

    @classmethod
    def from_dn(cls, dn: DistinguishedName) -> "NameBuilder":
        nb = cls()
        for field, _ in _ATTRIBUTE_ORDER:
            value = getattr(dn, field)
            if value is not None:
                nb._set(field, value)
        return nb

    # ---- setters ------------------------------------------------------ #
    def _set(self, field: str, value: str) -> "NameBuilder":
        self._values[field] = value
        return self

    def country(self, value: str) -> "NameBuilder":
        return self._set("country", value)

    def state(self, value: str) -> "NameBuilder":
        return self._set("state", value)

    def organization(self, value: str) -> "NameBuilder":
        return self._set("organization", value)

    def organizational_unit(self, value: str) -> "NameBuilder":
        return self._set("organizational_unit", value)

    def common_name(self, value: str) -> "NameBuilder":
        return self._set("common_name", value)

    @property
    def dn(self) -> DistinguishedName:
        return DistinguishedName(**self._values)

    # ---- build -------------------------------------------------------- #
    def build(self) -> rfc5280.Name:
        if not self._values.get("common_name"):
            raise MissingRequiredFieldError("common name (-CN) is required")

        seq = rfc5280.RDNSequence()
        for field, oid in _ATTRIBUTE_ORDER:
            value: Optional[str] = self._values.get(field)
            if value is None:
                continue
            try:
                atv = rfc5280.AttributeTypeAndValue()
                atv["type"] = oid
                atv["value"] = _encode_value(field, value)
                rdn = rfc5280.RelativeDistinguishedName()
                rdn[0] = atv
                seq[len(seq)] = rdn
            except PyAsn1Error as exc:
                raise NameEncodingError(f"cannot encode {field}={value!r}: {exc}") from exc

        name = rfc5280.Name()
        name.setComponentByName("rdnSequence", seq)
        return name


def name_to_dn(name: rfc5280.Name) -> DistinguishedName:
    """Decode a Name produced by NameBuilder back into its attributes."""
    fields = {str(oid): field for field, oid in _ATTRIBUTE_ORDER}
    values: Dict[str, str] = {}
    for rdn in name["rdnSequence"]:
        for atv in rdn:
            field = fields.get(str(atv["type"]))
            if field is None:
                continue
            decoded, _ = decoder.decode(bytes(atv["value"]))
            values[field] = str(decoded)
    return DistinguishedName(**values)
