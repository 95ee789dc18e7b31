"""Configuration models and loading."""

import json
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

CONFIG_DIR = Path.home() / ".config" / "frame-relay"
CONFIG_FILE = CONFIG_DIR / "config.json"


class ProxySettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 5174
    keep_alive_timeout: int = 5


class UpstreamSettings(BaseModel):
    max_connections: int = 100
    max_keepalive_connections: int = 20


class RouteSettings(BaseModel):
    """One mount point of the relay."""

    path: str
    rewrite_links: bool = True

    @field_validator("path")
    @classmethod
    def _path_is_absolute(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("route path must start with '/'")
        return value.rstrip("/") or "/"


class RelaySettings(BaseModel):
    # Overrides the scheme://host derived from inbound requests
    public_base_url: str = ""
    routes: list[RouteSettings] = Field(
        default_factory=lambda: [
            RouteSettings(path="/api/fetch-site"),
            RouteSettings(path="/fetch-site"),
        ]
    )


class Config(BaseModel):
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    relay: RelaySettings = Field(default_factory=RelaySettings)


def load_config(config_file: Path = CONFIG_FILE) -> Config:
    """Load configuration from JSON file, creating default if needed."""
    if not config_file.exists():
        config_file.parent.mkdir(parents=True, exist_ok=True)
        default = Config()
        config_file.write_text(default.model_dump_json(indent=2))
        return default

    try:
        data = json.loads(config_file.read_text())
        return Config.model_validate(data)
    except (json.JSONDecodeError, ValidationError):
        # Backup corrupted config and recreate default
        backup = config_file.with_suffix(".json.bak")
        config_file.rename(backup)
        default = Config()
        config_file.write_text(default.model_dump_json(indent=2))
        return default
