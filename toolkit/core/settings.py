"""Unified settings and per-call toolkit configuration."""

import tomllib
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MAX_UPLOAD_BYTES = 1024 * 1024 * 1024
DEFAULT_MAX_JSON_BYTES = 1024 * 1024


def read_pyproject(pyproject_path: Path) -> dict:
    """Read pyproject.toml into a dict, empty when the file is not shipped."""
    if not pyproject_path.is_file():
        return {}
    with pyproject_path.open("rb") as file_handle:
        return tomllib.load(file_handle)


def get_version(base_dir: Path) -> str:
    """Get version from git tags or fallback to package metadata."""
    try:
        import git

        repo = git.Repo(base_dir, search_parent_directories=True)
        latest_tag = max(repo.tags, key=lambda t: t.commit.committed_datetime, default=None)
        return str(latest_tag) if latest_tag else "0.0.0"
    except Exception:
        try:
            import importlib.metadata

            return importlib.metadata.version("robyn-http-toolkit")
        except Exception:
            return "0.0.0"


class ToolkitConfig(BaseModel):
    """Immutable limits and policies handed to every toolkit operation.

    Zero or missing limits fall back to the defaults, so ``ToolkitConfig(max_upload_bytes=0)``
    behaves like an unconfigured instance. An empty ``allowed_content_types`` permits any type.
    """

    model_config = ConfigDict(frozen=True)

    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    allowed_content_types: tuple[str, ...] = ()
    max_json_bytes: int = DEFAULT_MAX_JSON_BYTES
    allow_unknown_json_fields: bool = False

    @field_validator("max_upload_bytes", mode="before")
    @classmethod
    def _default_upload_limit(cls, value: int | None) -> int:
        return value or DEFAULT_MAX_UPLOAD_BYTES

    @field_validator("max_json_bytes", mode="before")
    @classmethod
    def _default_json_limit(cls, value: int | None) -> int:
        return value or DEFAULT_MAX_JSON_BYTES

    @field_validator("allowed_content_types", mode="before")
    @classmethod
    def _dedupe_content_types(cls, value: list[str] | tuple[str, ...] | str | None) -> tuple[str, ...]:
        if not value:
            return ()
        if isinstance(value, str):
            value = value.split(",")
        # Ordered set: first occurrence wins
        return tuple(dict.fromkeys(item.strip() for item in value if item.strip()))


class Settings(BaseSettings):
    """Unified settings for the toolkit demo service."""

    DEBUG: bool = True
    ENVIRONMENT: Literal["DEV", "PROD"] = "DEV"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "NOTSET"] = "INFO"

    # ClassVar to prevent Pydantic from trying to load from env
    BASE_DIR: ClassVar[Path] = Path(__file__).parent.parent.parent
    PROJECT: ClassVar[dict] = read_pyproject(BASE_DIR / "pyproject.toml")
    API_NAME: ClassVar[str] = PROJECT.get("project", {}).get("name", "robyn-http-toolkit")
    API_DESCRIPTION: ClassVar[str] = PROJECT.get("project", {}).get("description", "HTTP request/response toolkit")
    API_VERSION: ClassVar[str] = get_version(BASE_DIR)

    # Server
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # Paths
    DATA_PATH: ClassVar[Path] = BASE_DIR / "data"
    UPLOAD_PATH: ClassVar[Path] = DATA_PATH / "uploads"
    STATIC_PATH: ClassVar[Path] = DATA_PATH / "static"

    # Toolkit limits
    MAX_UPLOAD_BYTES: int = DEFAULT_MAX_UPLOAD_BYTES
    ALLOWED_CONTENT_TYPES: str = ""
    MAX_JSON_BYTES: int = DEFAULT_MAX_JSON_BYTES
    ALLOW_UNKNOWN_JSON_FIELDS: bool = False

    @property
    def api_url(self) -> str:
        return f"http://{self.API_HOST}:{self.API_PORT}"

    def toolkit_config(self) -> ToolkitConfig:
        """Build the immutable config shared read-only by request handlers."""
        return ToolkitConfig(
            max_upload_bytes=self.MAX_UPLOAD_BYTES,
            allowed_content_types=self.ALLOWED_CONTENT_TYPES,
            max_json_bytes=self.MAX_JSON_BYTES,
            allow_unknown_json_fields=self.ALLOW_UNKNOWN_JSON_FIELDS,
        )

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()  # type: ignore
