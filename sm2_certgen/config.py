# sm2_certgen/config.py
"""Runtime configuration loaded from environment variables."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings for sm2-certgen."""

    log_level: str = Field(
        "INFO",
        alias="SM2CERT_LOG_LEVEL",
        description="Level of the sm2_certgen logger",
    )
    log_json: bool = Field(
        True,
        alias="SM2CERT_LOG_JSON",
        description="Emit one JSON object per log line instead of plain text",
    )

    # used when -pass is not given on the command line
    passphrase: Optional[str] = Field(
        None,
        alias="SM2CERT_PASSPHRASE",
        description="Private-key passphrase fallback",
    )

    kdf_iterations: int = Field(
        65536,
        alias="SM2CERT_KDF_ITERATIONS",
        ge=1,
        description="PBKDF2 iteration count for newly encrypted keys",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


# singleton
settings = Settings()
