# noxfile.py
from pathlib import Path

import nox

ROOT = Path(__file__).parent
TESTS = ROOT / "sm2_certgen" / "tests"


# ---- sessions ------------------------------------------------------------

@nox.session(python="3.12")
def tests(session: nox.Session) -> None:
    """
    1) install the project with its dev extra (-e)
    2) run pytest
    """
    session.install("-e", f"{ROOT}[dev]")
    session.run("pytest", "-q", str(TESTS), *session.posargs)


@nox.session(python="3.12")
def e2e(session: nox.Session) -> None:
    """
    Only the CLI scenarios (sm2-certgen / sm2-keygen through CliRunner).
    """
    session.install("-e", f"{ROOT}[dev]")
    session.run("pytest", "-q", str(TESTS / "test_cli.py"), *session.posargs)
