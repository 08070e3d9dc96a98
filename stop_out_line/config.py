"""Configuration for Stop-Out Line service."""

from pydantic_settings import BaseSettings
from pydantic import Field

from .models import LineStyle


class Settings(BaseSettings):
    """Stop-Out Line configuration."""

    # Recalculation timer
    update_frequency_ms: int = Field(default=100, ge=50, alias="UPDATE_FREQUENCY_MS")

    # Line appearance
    line_color: str = Field(default="Red", alias="LINE_COLOR")
    line_width: int = Field(default=2, ge=1, le=5, alias="LINE_WIDTH")
    line_style: LineStyle = Field(default=LineStyle.SOLID, alias="LINE_STYLE")

    # Price label
    show_label: bool = Field(default=True, alias="SHOW_LABEL")
    line_label: str = Field(default="STOP-OUT: ", alias="LINE_LABEL")

    # Redis - Host platform state published by the terminal bridge
    redis_host: str = Field(default="redis", alias="REDIS_HOST")
    redis_port: int = Field(default=6379, alias="REDIS_PORT")
    redis_db: int = Field(default=0, alias="REDIS_DB")
    redis_key_prefix: str = Field(default="stopout", alias="REDIS_KEY_PREFIX")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @property
    def update_interval_seconds(self) -> float:
        return self.update_frequency_ms / 1000

    @property
    def account_key(self) -> str:
        return f"{self.redis_key_prefix}:account"

    @property
    def symbol_key(self) -> str:
        return f"{self.redis_key_prefix}:symbol"

    @property
    def positions_key(self) -> str:
        return f"{self.redis_key_prefix}:positions"

    @property
    def chart_key(self) -> str:
        return f"{self.redis_key_prefix}:chart"

    @property
    def keys_key(self) -> str:
        return f"{self.redis_key_prefix}:keys"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }


settings = Settings()
