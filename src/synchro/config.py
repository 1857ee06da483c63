from typing import Literal, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # SQLAlchemy URLs, or raw ODBC connection strings (see db.engine)
    primary_database_url: str = ""
    secondary_database_url: str = ""
    sync_interval_seconds: int = Field(default=30, gt=0)
    service_identity: str = "WINDOWS_SERVICE"
    secondary_origin_prefix: str = Field(default="ACCESS_", min_length=1)
    max_sync_attempts: Optional[int] = Field(default=None, gt=0)  # None: retry forever
    trigger_suppression: Literal["alter_table", "session_context"] = "alter_table"
    log_file: Optional[str] = None
    log_level: str = "INFO"

    @model_validator(mode="after")
    def _origins_are_disjoint(self) -> "Settings":
        if self.service_identity.upper().startswith(self.secondary_origin_prefix.upper()):
            raise ValueError(
                "SERVICE_IDENTITY must not start with SECONDARY_ORIGIN_PREFIX, "
                "otherwise the engine's own writes would be replayed"
            )
        return self


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
