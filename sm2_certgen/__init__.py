# sm2_certgen/__init__.py
from importlib.metadata import PackageNotFoundError, version

from .builder import CertificateBuilder, UnsignedCertificate
from .certificate import SignedCertificate
from .exceptions import (
    BuilderStateError,
    CertGenError,
    DecryptionError,
    ExtensionEncodingError,
    InvalidValidityError,
    KeyFileError,
    MissingRequiredFieldError,
    NameEncodingError,
    OutputWriteError,
    RandomSourceError,
    SigningError,
    UsageError,
)
from .issue import issue_certificate, write_pem
from .keys import PrivateKey, generate_sm2_key, load_encrypted_pem, load_key_file
from .name import NameBuilder
from .profile import CA_EXTENSION_PROFILE, ExtensionPolicy
from .schema import CertificateSummary, DistinguishedName, IssueRequest
from .utils import generate_serial, validity_window

__all__ = [
    "BuilderStateError",
    "CA_EXTENSION_PROFILE",
    "CertGenError",
    "CertificateBuilder",
    "CertificateSummary",
    "DecryptionError",
    "DistinguishedName",
    "ExtensionEncodingError",
    "ExtensionPolicy",
    "InvalidValidityError",
    "IssueRequest",
    "KeyFileError",
    "MissingRequiredFieldError",
    "NameBuilder",
    "NameEncodingError",
    "OutputWriteError",
    "PrivateKey",
    "RandomSourceError",
    "SignedCertificate",
    "SigningError",
    "UnsignedCertificate",
    "UsageError",
    "generate_serial",
    "generate_sm2_key",
    "issue_certificate",
    "load_encrypted_pem",
    "load_key_file",
    "validity_window",
    "write_pem",
]

try:
    __version__ = version("sm2-certgen")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"
