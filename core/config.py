"""Configuration models and loading."""

import json
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from core.exceptions import ConfigurationError

CONFIG_DIR = Path.home() / ".config" / "admin-gateway"
CONFIG_FILE = CONFIG_DIR / "config.json"

MIB = 1024 * 1024


class ProxySettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = True


class UpstreamSettings(BaseModel):
    base_url: str = "http://localhost:8080"
    timeout: float = 300.0
    max_connections: int = 100
    max_keepalive_connections: int = 20


class LoginSettings(BaseModel):
    """Service identity used for the upstream login call."""

    path: str = "/user/login"
    telephone: str = ""
    password: str = ""


class GatewaySettings(BaseModel):
    prefix: str = "/admin"
    upload_path: str = "/formatPaperFile/upload"
    token_header: str = "x-access-token"


class LimitsSettings(BaseModel):
    max_body_size: int = 20 * MIB
    max_file_size: int = 20 * MIB
    keep_alive_timeout: int = 5


class CorsSettings(BaseModel):
    allow_origins: list[str] = Field(default_factory=lambda: ["*"])
    allow_methods: list[str] = Field(
        default_factory=lambda: ["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"]
    )
    allow_headers: list[str] = Field(
        default_factory=lambda: [
            "Origin",
            "X-Requested-With",
            "Content-Type",
            "Accept",
            "Authorization",
            "x-lang",
        ]
    )
    max_age: int = 86400


class Config(BaseModel):
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    login: LoginSettings = Field(default_factory=LoginSettings)
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    limits: LimitsSettings = Field(default_factory=LimitsSettings)
    cors: CorsSettings = Field(default_factory=CorsSettings)


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


def validate_identity(config: Config) -> None:
    """Ensure the upstream login identity is configured."""
    missing = [
        name
        for name in ("telephone", "password")
        if not getattr(config.login, name)
    ]
    if missing:
        raise ConfigurationError(
            f"Upstream login identity not configured: set login.{', login.'.join(missing)}"
        )
