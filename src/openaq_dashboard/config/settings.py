"""Configuration settings for the application."""
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _env(name: str, default: str = "") -> str:
    return os.getenv(name, default)


@dataclass
class OpenAQSettings:
    base_url: str = field(default_factory=lambda: _env("OPENAQ_BASE_URL", "https://api.openaq.org"))
    api_key: str = field(default_factory=lambda: _env("OPENAQ_API_KEY"))
    default_ttl_seconds: int = field(default_factory=lambda: int(_env("OPENAQ_DEFAULT_TTL", "60")))
    timeout_seconds: float = field(default_factory=lambda: float(_env("OPENAQ_TIMEOUT", "15")))


@dataclass
class DiscoverySettings:
    # only used by the discovery route
    iso: str = field(default_factory=lambda: _env("DEFAULT_ISO", "ID"))
    lat: float = field(default_factory=lambda: float(_env("DEFAULT_LAT", "1.4748")))
    lon: float = field(default_factory=lambda: float(_env("DEFAULT_LON", "124.8421")))
    radius: int = field(default_factory=lambda: int(_env("DEFAULT_RADIUS", "12000")))


@dataclass
class DatabaseSettings:
    duckdb_path: str = field(default_factory=lambda: _env("OPENAQ_DUCKDB_PATH", "data/openaq.duckdb"))


@dataclass
class Settings:
    openaq: OpenAQSettings = field(default_factory=OpenAQSettings)
    discovery: DiscoverySettings = field(default_factory=DiscoverySettings)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)


settings = Settings()
