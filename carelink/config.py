"""Application configuration loaded from config.yaml + environment variables."""

from __future__ import annotations

import yaml
from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings

_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    if _CONFIG_PATH.exists():
        with open(_CONFIG_PATH) as f:
            return yaml.safe_load(f) or {}
    return {}


_yaml = _load_yaml()


class BookingConfig(BaseSettings):
    default_currency: str = "INR"
    admin_list_limit: int = 100
    partner_orders_limit: int = 100


class SearchStatusConfig(BaseSettings):
    include_partner_rating: bool = True


class AuthConfig(BaseSettings):
    session_max_age_days: int = 7


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///data/carelink.db"
    bookings: BookingConfig = Field(default_factory=BookingConfig)
    search_status: SearchStatusConfig = Field(default_factory=SearchStatusConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


def get_settings() -> Settings:
    """Build Settings by merging YAML defaults with env overrides."""
    y = _yaml
    bookings = BookingConfig(**y.get("bookings", {}))
    search = SearchStatusConfig(**y.get("search_status", {}))
    auth = AuthConfig(**y.get("auth", {}))
    db_url = y.get("database", {}).get("url", "sqlite+aiosqlite:///data/carelink.db")
    return Settings(
        database_url=db_url,
        bookings=bookings,
        search_status=search,
        auth=auth,
    )
