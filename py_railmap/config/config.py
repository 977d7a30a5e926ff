from pathlib import Path
from dotenv import dotenv_values
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

import os

# Explicitly load .env for local/dev environments only if values are missing from the environment
BASE_DIR = Path(__file__).resolve().parent.parent.parent
env_file = BASE_DIR / ".env"

if env_file.exists():
    file_env = dotenv_values(env_file)
    missing_keys = {k: v for k, v in file_env.items() if k not in os.environ and v is not None}
    for k, v in missing_keys.items():
        os.environ[k] = v


class Settings(BaseSettings):
    """Application settings pulled from RAILMAP_* environment variables."""

    # Database Configuration
    db_path: str = Field(default="railways.db", description="SQLite database file")

    @property
    def database_url(self) -> str:
        """Construct full database URL."""
        if self.db_path == ":memory:":
            return "sqlite://"
        return f"sqlite:///{self.db_path}"

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (json or console)")

    # Line Configuration
    min_line_length: int = Field(default=15, ge=2, description="Lines shorter than this are not stored")

    # Rendering Configuration
    line_width: int = Field(default=3, ge=1, description="Polyline width in pixels")
    line_opacity: float = Field(default=1.0, ge=0.0, le=1.0, description="Polyline opacity")
    player_placed_only: bool = Field(default=False, description="Only render lines with a known placer")
    marker_y: float = Field(default=64.0, description="Elevation of markers on the flat map")

    model_config = SettingsConfigDict(
        env_prefix="RAILMAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Instantiate singleton settings object
settings = Settings()
