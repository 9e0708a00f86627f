from __future__ import annotations

import tempfile
from pathlib import Path
from typing import ClassVar, final

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_CORS_ALLOW_ORIGINS_VALIDATION_ALIAS = AliasChoices("CORS_ALLOW_ORIGINS", "CORS_ORIGINS")

_DISK_DRIVERS = {"local", "s3"}


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [x.strip() for x in value.split(",") if x.strip()]


def _default_temp_dir() -> str:
    return str(Path(tempfile.gettempdir()) / "filepond")


@final
class Settings(BaseSettings):
    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )
    app_name: str = "Filepond Backend"
    api_prefix: str = "/api/v1"

    # Environment (ENVIRONMENT): development | production
    environment: str = "development"
    log_level: str = "INFO"

    # Primary env: CORS_ALLOW_ORIGINS; also accept CORS_ORIGINS as alias.
    cors_allow_origins: str = Field(
        default="*",
        validation_alias=_CORS_ALLOW_ORIGINS_VALIDATION_ALIAS,
    )

    # Used to build browsable URLs for local disks.
    public_base_url: str = "http://localhost:8000"

    # Fernet key used to turn storage paths into server ids.
    filepond_token_key: str = ""

    # Temporary uploads (Filepond "process" step) land here until the form is saved.
    filepond_temp_dir: str = Field(default_factory=_default_temp_dir)
    filepond_max_upload_bytes: int = 25 * 1024 * 1024

    # Disks: comma-separated `name:driver`, driver is `local` or `s3`.
    filepond_default_disk: str = "public"
    filepond_disks: str = "public:local"
    storage_local_dir: str = ".data/storage"

    # Default client labels, comma-separated `key=text` (e.g. `idle=Drop files here`).
    filepond_labels: str = ""

    # S3 / S3-compatible object storage
    s3_endpoint_url: str = ""
    s3_region: str = ""
    s3_bucket: str = ""
    s3_access_key_id: str = ""
    s3_secret_access_key: str = ""
    s3_force_path_style: bool = False
    s3_presign_expires_seconds: int = 60 * 60

    # Validate production settings early to fail fast on unsafe defaults.
    @model_validator(mode="after")
    def _validate_production_settings(self) -> "Settings":  # pyright: ignore[reportUnusedFunction]
        if self.environment.strip().lower() != "production":
            return self

        errors: list[str] = []

        if not self.filepond_token_key.strip():
            errors.append("FILEPOND_TOKEN_KEY must be set in production")

        cors_v = self.cors_allow_origins.strip()
        if not cors_v or cors_v == "*":
            errors.append("CORS_ALLOW_ORIGINS must be explicit (not '*') in production")

        public_base = self.public_base_url.strip().lower()
        if not public_base or "localhost" in public_base or "127.0.0.1" in public_base:
            errors.append("PUBLIC_BASE_URL must point to a public host in production")

        # If any S3 setting is provided, require the full set to avoid silently falling back to local storage.
        s3_fields = {
            "S3_BUCKET": self.s3_bucket.strip(),
            "S3_ENDPOINT_URL": self.s3_endpoint_url.strip(),
            "S3_ACCESS_KEY_ID": self.s3_access_key_id.strip(),
            "S3_SECRET_ACCESS_KEY": self.s3_secret_access_key.strip(),
        }
        if any(v for v in s3_fields.values()) and any(not v for v in s3_fields.values()):
            missing = ",".join([k for k, v in s3_fields.items() if not v])
            errors.append(f"S3 config incomplete in production; missing: {missing}")

        try:
            _ = self.disks_map()
        except ValueError as e:
            errors.append(str(e))

        if errors:
            raise ValueError("Invalid production settings: " + "; ".join(errors))
        return self

    def cors_origins_list(self) -> list[str]:
        v = self.cors_allow_origins.strip()
        if not v:
            return []
        if v == "*":
            return ["*"]
        return _split_csv(v)

    def disks_map(self) -> dict[str, str]:
        out: dict[str, str] = {}
        for item in _split_csv(self.filepond_disks):
            name, _, driver = item.partition(":")
            name = name.strip()
            driver = (driver.strip() or "local").lower()
            if not name:
                continue
            if driver not in _DISK_DRIVERS:
                raise ValueError(f"FILEPOND_DISKS: unknown driver {driver!r} for disk {name!r}")
            out[name] = driver
        return out

    def default_labels(self) -> dict[str, str]:
        out: dict[str, str] = {}
        for item in _split_csv(self.filepond_labels):
            key, sep, text = item.partition("=")
            if not sep or not key.strip():
                continue
            out[key.strip()] = text.strip()
        return out

    def s3_configured(self) -> bool:
        return bool(
            self.s3_bucket.strip()
            and self.s3_endpoint_url.strip()
            and self.s3_access_key_id.strip()
            and self.s3_secret_access_key.strip()
        )

    def security_warnings(self) -> list[str]:
        warnings: list[str] = []
        if not self.filepond_token_key.strip():
            warnings.append("FILEPOND_TOKEN_KEY is missing; server ids cannot be issued")
        if self.cors_allow_origins.strip() == "*":
            warnings.append("CORS_ALLOW_ORIGINS='*' is permissive")
        try:
            drivers = self.disks_map()
        except ValueError as e:
            warnings.append(str(e))
            drivers = {}
        if "s3" in drivers.values() and not self.s3_configured():
            warnings.append("an s3 disk is configured but S3 settings are incomplete")
        return warnings


settings = Settings()
