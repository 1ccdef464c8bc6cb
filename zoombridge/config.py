"""Configuration management with Pydantic Settings + optional YAML."""

from __future__ import annotations

import os
from pathlib import Path
from collections.abc import Mapping
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_DIR = Path(__file__).parent


class ServerConfig(BaseModel):
    bind: str = "0.0.0.0"
    port: int = 4001
    allowed_origins: list[str] = Field(default_factory=lambda: ["*"])
    require_auth: bool = False
    auth_token: str = ""
    static_dir: str = ""

    def get_static_dir(self) -> Path:
        if self.static_dir:
            return Path(self.static_dir)
        return _PACKAGE_DIR / "static"


class WebhookConfig(BaseModel):
    secret_token: str = ""


class S2SOAuthConfig(BaseModel):
    """Server-to-server OAuth app (account_credentials grant)."""
    client_id: str = ""
    client_secret: str = ""
    account_id: str = ""


class UserOAuthConfig(BaseModel):
    """User-level OAuth app (authorization_code / refresh_token grants)."""
    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = "http://localhost:4001/redirecturlforoauth"


class SdkConfig(BaseModel):
    key: str = ""
    secret: str = ""
    clock_skew_seconds: int = 30
    token_ttl_seconds: int = 60 * 60 * 2


class ZoomConfig(BaseModel):
    oauth_base_url: str = "https://zoom.us"
    api_base_url: str = "https://api.zoom.us/v2"
    timeout: float = 30.0


class StoreConfig(BaseModel):
    backend: Literal["file", "memory"] = "file"
    data_dir: str = ""
    webhook_file: str = "webhook.txt"
    oauth_token_file: str = "oauthtoken.txt"

    def get_data_dir(self) -> Path:
        if self.data_dir:
            return Path(self.data_dir)
        return Path.cwd()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ZOOMBRIDGE_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    server: ServerConfig = Field(default_factory=ServerConfig)
    webhook: WebhookConfig = Field(default_factory=WebhookConfig)
    s2s: S2SOAuthConfig = Field(default_factory=S2SOAuthConfig)
    oauth: UserOAuthConfig = Field(default_factory=UserOAuthConfig)
    sdk: SdkConfig = Field(default_factory=SdkConfig)
    zoom: ZoomConfig = Field(default_factory=ZoomConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    log_level: str = "INFO"
    log_json: bool = False


# Conventional variable names used by Zoom's sample apps -> (section, field)
ZOOM_ENV_VARS: dict[str, tuple[str, str]] = {
    "ZOOM_WEBHOOK_SECRET_TOKEN": ("webhook", "secret_token"),
    "ZOOM_S2S_CLIENT_ID": ("s2s", "client_id"),
    "ZOOM_S2S_CLIENT_SECRET": ("s2s", "client_secret"),
    "ZOOM_S2S_ACCOUNTID": ("s2s", "account_id"),
    "ZOOM_OAUTH_USERLEVEL_CLIENT_ID": ("oauth", "client_id"),
    "ZOOM_OAUTH_USERLEVEL_CLIENT_SECRET": ("oauth", "client_secret"),
    "ZOOM_OAUTH_REDIRECT_URI": ("oauth", "redirect_uri"),
    "ZOOM_SDK_KEY": ("sdk", "key"),
    "ZOOM_SDK_SECRET": ("sdk", "secret"),
    "PORT": ("server", "port"),
}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _zoom_env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for var, (section, field) in ZOOM_ENV_VARS.items():
        value = environ.get(var)
        if value:
            overrides.setdefault(section, {})[field] = value
    return overrides


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from env vars, optionally overlaying a YAML config.

    Explicit values (YAML file, then the conventional ``ZOOM_*`` names) are
    passed to the model directly; ``ZOOMBRIDGE_*`` variables and ``.env``
    fill whatever those leave unset.
    """
    yaml_data: dict[str, Any] = {}

    if config_path is None:
        config_path = os.environ.get("ZOOMBRIDGE_CONFIG")

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                yaml_data = yaml.safe_load(f) or {}

    data = _deep_merge(yaml_data, _zoom_env_overrides(os.environ))
    return Settings(**data)
