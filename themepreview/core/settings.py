from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="THEMEPREVIEW_", case_sensitive=False)

    template_dir: Path = Path("liquid")
    fixture_dir: Path = Path("sample-data")
    output_dir: Path = Path("htmlOutput")
    default_time_zone: str = "UTC"
    max_layout_depth: int = Field(default=32, ge=1)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
