# sm2_certgen/issue.py
"""
One issuance run, in fail-fast order:

  1) validity window   (no key file touched for a bad -days)
  2) subject name      (no decryption for a missing -CN)
  3) key file + passphrase
  4) serial, assembly, extensions, signature
Output is written only after a signed certificate exists.
"""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Optional, Union

from .builder import CertificateBuilder
from .certificate import SignedCertificate
from .exceptions import OutputWriteError, UsageError
from .keys import PassphraseProvider, load_key_file
from .logger import get_logger
from .name import NameBuilder
from .schema import IssueRequest
from .utils import generate_serial, validity_window

logger = get_logger("issue")


def issue_certificate(
    request: IssueRequest,
    passphrase: PassphraseProvider,
    *,
    now: Optional[datetime] = None,
) -> SignedCertificate:
    if request.days is None:
        raise UsageError("-days is required")
    not_before, not_after = validity_window(request.days, now)
    if request.key_path is None:
        raise UsageError("-key is required")

    name = NameBuilder.from_dn(request.subject).build()
    key = load_key_file(request.key_path, passphrase)
    serial = generate_serial()

    cert = (
        CertificateBuilder()
        .with_name(name)
        .with_serial(serial)
        .with_validity(not_before, not_after)
        .with_public_key(key)
        .with_extensions()
        .sign(key)
    )
    logger.info(
        "issued certificate serial=%s subject=%r not_after=%s",
        serial.hex(),
        request.subject.common_name,
        not_after.isoformat(),
    )
    return cert


def write_output(
    data: bytes,
    out: Optional[Union[str, Path]] = None,
    *,
    stream: Optional[BinaryIO] = None,
    what: str = "certificate",
) -> None:
    """
    Write ``data`` to ``out`` or, when no path is given, to ``stream``
    (stdout by default) in a single call.
    """
    try:
        if out is not None:
            with open(out, "wb") as fp:
                fp.write(data)
            logger.info("wrote %s to %s", what, out)
        else:
            target = stream if stream is not None else sys.stdout.buffer
            target.write(data)
            target.flush()
    except OSError as exc:
        raise OutputWriteError(f"cannot write {what} to {out or 'stdout'}: {exc}") from exc


def write_pem(
    cert: SignedCertificate,
    out: Optional[Union[str, Path]] = None,
    *,
    stream: Optional[BinaryIO] = None,
) -> None:
    """The PEM is complete in memory before anything is written."""
    write_output(cert.to_pem(), out, stream=stream)
