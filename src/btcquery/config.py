"""
Configuration management using pydantic-settings.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from btcquery.models import NetworkType


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BTCQUERY_", env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    assets_api_url: str = "https://api.testnet.rgbpp.io"
    assets_api_token: str | None = None
    assets_api_app: str | None = None
    assets_api_domain: str | None = None
    assets_api_origin: str | None = None

    network: NetworkType = NetworkType.TESTNET

    request_timeout: float = Field(default=30.0, gt=0)

    log_level: str = "INFO"


def get_settings() -> Settings:
    return Settings()
