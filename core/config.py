"""Configuration models and loading."""

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

CONFIG_DIR = Path.home() / ".config" / "makro-relay"
CONFIG_FILE = CONFIG_DIR / "config.json"

DEFAULT_ALLOWED_PREFIXES = [
    "https://production.dataviz.cnn.io/index/fearandgreed/graphdata",
    "https://stooq.com/q/d/l/",
    "https://api.stlouisfed.org/fred/series/observations",
    "https://query1.finance.yahoo.com/v8/finance/chart/",
    "https://home.treasury.gov/resource-center/data-chart-center/interest-rates/pages/xml",
]


class ProxySettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = False


class UpstreamSettings(BaseModel):
    timeout: float = 12.0
    max_redirects: int = 5
    max_connections: int = 50
    max_keepalive_connections: int = 10


class CacheSettings(BaseModel):
    literal_s_maxage: int = 3600
    literal_stale_while_revalidate: int = 7200
    source_max_age: int = 300


class ProviderSettings(BaseModel):
    """Per-host quirks: extra headers and an optional server-held credential."""

    model_config = ConfigDict(frozen=True)

    name: str
    host: str
    headers: dict[str, str] = Field(default_factory=dict)
    secret_param: str | None = None
    api_key: str = ""
    api_key_env: str | None = None


class DescriptorSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    headers: dict[str, str] = Field(default_factory=dict)


class SourceSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    primary: DescriptorSettings
    fallback: DescriptorSettings | None = None


def _default_providers() -> list[ProviderSettings]:
    return [
        ProviderSettings(
            name="fred",
            host="api.stlouisfed.org",
            secret_param="api_key",
            api_key_env="FRED_API_KEY",
        ),
        ProviderSettings(
            name="cnn",
            host="production.dataviz.cnn.io",
            headers={
                "Origin": "https://edition.cnn.com",
                "Referer": "https://edition.cnn.com/markets/fear-and-greed",
            },
        ),
    ]


def _default_sources() -> dict[str, SourceSettings]:
    yahoo = "https://query1.finance.yahoo.com/v8/finance/chart/"
    fred = "https://api.stlouisfed.org/fred/series/observations"
    return {
        "fear_greed": SourceSettings(
            primary=DescriptorSettings(
                url="https://production.dataviz.cnn.io/index/fearandgreed/graphdata"
            ),
            fallback=DescriptorSettings(url="https://api.alternative.me/fng/?limit=30&format=json"),
        ),
        "vix": SourceSettings(
            primary=DescriptorSettings(url=f"{yahoo}%5EVIX?range=1y&interval=1d"),
            fallback=DescriptorSettings(url="https://stooq.com/q/d/l/?s=%5Evix&i=d"),
        ),
        "spx": SourceSettings(
            primary=DescriptorSettings(url=f"{yahoo}%5EGSPC?range=1y&interval=1d"),
            fallback=DescriptorSettings(url="https://stooq.com/q/d/l/?s=%5Espx&i=d"),
        ),
        "us10y": SourceSettings(
            primary=DescriptorSettings(
                url=f"{fred}?series_id=DGS10&file_type=json&sort_order=desc&limit=260"
            ),
            fallback=DescriptorSettings(
                url=(
                    "https://home.treasury.gov/resource-center/data-chart-center/"
                    "interest-rates/pages/xml?data=daily_treasury_yield_curve"
                )
            ),
        ),
        "hy_spread": SourceSettings(
            primary=DescriptorSettings(
                url=f"{fred}?series_id=BAMLH0A0HYM2&file_type=json&sort_order=desc&limit=260"
            ),
        ),
    }


class Config(BaseModel):
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    allowed_prefixes: list[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_PREFIXES))
    providers: list[ProviderSettings] = Field(default_factory=_default_providers)
    sources: dict[str, SourceSettings] = Field(default_factory=_default_sources)


def load_config(path: Path = CONFIG_FILE) -> Config:
    """Load configuration from JSON file, creating default if needed."""
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        default = Config()
        path.write_text(default.model_dump_json(indent=2))
        return default

    try:
        data = json.loads(path.read_text())
        return Config.model_validate(data)
    except (json.JSONDecodeError, ValidationError):
        # Backup corrupted config and recreate default
        backup = path.with_suffix(".json.bak")
        path.rename(backup)
        default = Config()
        path.write_text(default.model_dump_json(indent=2))
        return default
