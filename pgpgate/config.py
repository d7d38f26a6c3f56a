"""Configuration management with Pydantic settings."""

from pathlib import Path

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """pgpgate configuration settings.

    Precedence: CLI flag > environment variable > .env file > defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="PGPGATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    gpg_binary: str = Field(
        default="gpg",
        description="Path or name of the GnuPG binary",
    )

    gpg_passphrase: SecretStr | None = Field(
        default=None,
        description="Loopback passphrase for automated/test runs only (never logged)",
    )

    keep_sig_tempfiles: bool = Field(
        default=False,
        description="Keep detached-signature temp files after verification (debugging)",
    )

    gpg_timeout_seconds: float | None = Field(
        default=120.0,
        gt=0,
        description="Deadline for a single engine invocation (seconds); unset for none",
    )

    force_c_locale: bool = Field(
        default=True,
        description="Run the engine with LC_ALL=C so diagnostics use parseable English",
    )

    temp_dir: Path | None = Field(
        default=None,
        description="Parent directory for per-call signature workdirs (defaults to system temp)",
    )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance (useful for testing)."""
    global _settings
    _settings = settings
