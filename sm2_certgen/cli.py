# sm2_certgen/cli.py
"""Console entry-points: sm2-certgen and sm2-keygen."""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn, Optional

import typer

from .config import settings
from .exceptions import CertGenError, UsageError
from .issue import issue_certificate, write_output, write_pem
from .keys import PassphraseProvider, generate_sm2_key
from .logger import configure_logging, log_exception
from .schema import DistinguishedName, IssueRequest

_CONTEXT = {"help_option_names": ["-help"]}
EXIT_FAILURE = 1

app = typer.Typer(help="Issue a self-signed SM2 CA certificate", add_completion=False)
keygen_app = typer.Typer(help="Generate an encrypted SM2 private key", add_completion=False)


def _passphrase_provider(explicit: Optional[str], *, confirm: bool = False) -> PassphraseProvider:
    """-pass, then SM2CERT_PASSPHRASE, then an interactive hidden prompt."""

    def provide() -> str:
        if explicit is not None:
            return explicit
        if settings.passphrase is not None:
            return settings.passphrase
        # stdout carries the PEM
        return typer.prompt(
            "Encryption Password", hide_input=True, confirmation_prompt=confirm, err=True
        )

    return provide


def _fail(ctx: typer.Context, prog: str, exc: CertGenError) -> NoReturn:
    log_exception(exc)
    typer.echo(f"{prog}: {exc}", err=True)
    if isinstance(exc, UsageError):
        typer.echo(ctx.get_usage(), err=True)
    raise typer.Exit(code=EXIT_FAILURE)


# ---------------------------------------------------------------------- #
# certgen
# ---------------------------------------------------------------------- #
@app.command(context_settings=_CONTEXT)
def certgen(
    ctx: typer.Context,
    country: Optional[str] = typer.Option(None, "-C", help="country name"),
    state: Optional[str] = typer.Option(None, "-ST", help="state or province name"),
    organization: Optional[str] = typer.Option(None, "-O", help="organization name"),
    organizational_unit: Optional[str] = typer.Option(None, "-OU", help="organizational unit name"),
    common_name: Optional[str] = typer.Option(None, "-CN", help="common name (required)"),
    days: Optional[int] = typer.Option(None, "-days", help="validity days (required, > 0)"),
    key: Optional[Path] = typer.Option(None, "-key", help="encrypted private key PEM (required)"),
    passphrase: Optional[str] = typer.Option(None, "-pass", help="key password"),
    out: Optional[Path] = typer.Option(None, "-out", help="output file (default: stdout)"),
) -> None:
    configure_logging(settings.log_level, settings.log_json)
    request = IssueRequest(
        subject=DistinguishedName(
            country=country,
            state=state,
            organization=organization,
            organizational_unit=organizational_unit,
            common_name=common_name,
        ),
        days=days,
        key_path=key,
        out_path=out,
    )
    try:
        cert = issue_certificate(request, _passphrase_provider(passphrase))
        write_pem(cert, request.out_path)
    except CertGenError as exc:
        _fail(ctx, "sm2-certgen", exc)


# ---------------------------------------------------------------------- #
# keygen
# ---------------------------------------------------------------------- #
@keygen_app.command(context_settings=_CONTEXT)
def keygen(
    ctx: typer.Context,
    passphrase: Optional[str] = typer.Option(None, "-pass", help="key password"),
    out: Optional[Path] = typer.Option(None, "-out", help="output file (default: stdout)"),
    iterations: Optional[int] = typer.Option(None, "-iter", min=1, help="PBKDF2 iterations"),
) -> None:
    configure_logging(settings.log_level, settings.log_json)
    secret = _passphrase_provider(passphrase, confirm=True)()
    key = generate_sm2_key()
    pem = key.to_encrypted_pem(secret, iterations or settings.kdf_iterations)
    try:
        write_output(pem, out, what="private key")
    except CertGenError as exc:
        _fail(ctx, "sm2-keygen", exc)


if __name__ == "__main__":
    app()
