from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .protocol.commands import STATUS_ENABLED
from .session import DEFAULT_NODE_ID, DEFAULT_TIMEZONE
from .transport.tcp_connection import DEFAULT_PORT, DEFAULT_TIMEOUT


class Settings(BaseSettings):
    host: str = Field("127.0.0.1", validation_alias="SOYAL_HOST")
    port: int = Field(DEFAULT_PORT, validation_alias="SOYAL_PORT")
    node_id: int = Field(DEFAULT_NODE_ID, ge=0, le=255, validation_alias="SOYAL_NODE_ID")
    timeout: float = Field(DEFAULT_TIMEOUT, gt=0, validation_alias="SOYAL_TIMEOUT")

    timezone: str = Field(DEFAULT_TIMEZONE, validation_alias="SOYAL_TIMEZONE")
    # 64 on older firmware
    enabled_status: int = Field(STATUS_ENABLED, ge=1, le=255, validation_alias="SOYAL_ENABLED_STATUS")

    log_level: str = Field("INFO", validation_alias="SOYAL_LOG_LEVEL")
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", populate_by_name=True, extra="ignore")

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()
