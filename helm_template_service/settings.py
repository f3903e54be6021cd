"""Service configuration, read from HELM_TEMPLATE_* environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_STATIC_DIR = Path(__file__).resolve().parent / "static"


class Settings(BaseSettings):
    """Runtime settings for the HTTP service and the chart pipeline.

    CLI options override values read from the environment.
    """

    model_config = SettingsConfigDict(
        env_prefix="HELM_TEMPLATE_",
        extra="ignore",
        case_sensitive=False,
    )

    host: str = Field(default="0.0.0.0", description="Interface to bind.")
    port: int = Field(default=8080, ge=1, le=65535, description="Port to listen on.")
    static_dir: Path = Field(
        default=DEFAULT_STATIC_DIR,
        description="Directory of static assets served under /.",
    )

    helm_binary: str = Field(default="helm", min_length=1, description="helm executable.")
    release_name: str = Field(default="my-release", min_length=1)
    namespace: str = Field(default="default", min_length=1)

    download_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for the chart download (seconds).",
    )
    max_download_bytes: int = Field(
        default=20 * 1024 * 1024,
        gt=0,
        description="Largest chart archive accepted for download.",
    )
    max_archive_entries: int = Field(
        default=10_000,
        gt=0,
        description="Largest number of tar members accepted during extraction.",
    )
    max_extracted_bytes: int = Field(
        default=100 * 1024 * 1024,
        gt=0,
        description="Largest total size of extracted files.",
    )

    verbose: bool = Field(default=False, description="Log pipeline progress to stderr.")
