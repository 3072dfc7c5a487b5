# sm2_certgen/__main__.py
from .cli import app

app(prog_name="sm2-certgen")
