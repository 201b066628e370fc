from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_CHUNK_SIZE, DEFAULT_MAX_PENDING_CHUNKS, DEFAULT_MAX_PRODUCERS
from .domain.exceptions import ConfigError


class Settings(BaseSettings):
  root_dir: Path = Field(default=Path("."), alias="IMAGE_SERVER_ROOT")
  host: str = Field(default="0.0.0.0", alias="IMAGE_SERVER_HOST")
  port: int = Field(default=8080, alias="IMAGE_SERVER_PORT", ge=1, le=65535)
  # Whole seconds; uvicorn applies it as the keep-alive idle timeout.
  read_timeout: int = Field(default=5, alias="IMAGE_SERVER_READ_TIMEOUT", ge=1)
  chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, alias="IMAGE_SERVER_CHUNK_SIZE", ge=1)
  max_pending_chunks: int = Field(
    default=DEFAULT_MAX_PENDING_CHUNKS, alias="IMAGE_SERVER_MAX_PENDING_CHUNKS", ge=1
  )
  max_producers: int = Field(
    default=DEFAULT_MAX_PRODUCERS, alias="IMAGE_SERVER_MAX_PRODUCERS", ge=1
  )
  png_compress_level: int = Field(default=6, alias="IMAGE_SERVER_PNG_COMPRESS_LEVEL", ge=0, le=9)
  log_level: str = Field(default="INFO", alias="LOG_LEVEL")
  log_json: bool = Field(default=True, alias="LOG_JSON")

  model_config = SettingsConfigDict(case_sensitive=False, populate_by_name=True)


def resolve_root(settings: Settings) -> Path:
  """Canonical root directory; every served file must lie beneath it."""
  try:
    root = Path(settings.root_dir).expanduser().resolve(strict=True)
  except (OSError, RuntimeError, ValueError) as exc:
    raise ConfigError(f"Cannot find root directory {settings.root_dir}", exc) from exc
  if not root.is_dir():
    raise ConfigError(f"Root is not a directory: {root}")
  return root


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  return Settings()  # type: ignore[call-arg]
