# sm2_certgen/exceptions.py
"""Package-wide custom exceptions."""


class CertGenError(Exception):
    """Base exception. Every subclass is fatal for the current run."""


class UsageError(CertGenError):
    """Missing or invalid command-line input."""


class MissingRequiredFieldError(UsageError):
    """A mandatory name attribute (common name) was not supplied."""


class InvalidValidityError(UsageError):
    """Validity period is not a positive number of days."""


class KeyFileError(CertGenError):
    """Key file could not be opened or read."""


class DecryptionError(CertGenError):
    """Wrong passphrase or corrupt private-key container."""


class NameEncodingError(CertGenError):
    """A name attribute could not be encoded."""


class RandomSourceError(CertGenError):
    """The OS entropy source is unavailable."""


class ExtensionEncodingError(CertGenError):
    """An extension of the fixed profile could not be encoded."""


class SigningError(CertGenError):
    """Key does not fit the signature algorithm or the primitive failed."""


class OutputWriteError(CertGenError):
    """The signed certificate could not be written out."""


class BuilderStateError(RuntimeError):
    """A builder stage was reused after it had been advanced."""
