"""Configuration management using Pydantic BaseSettings with JSON file support."""
import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


def flatten_json_config(config: dict[str, Any]) -> dict[str, Any]:
    """Flatten nested JSON config into flat key-value pairs.

    Supports nested structures like:
    {
        "affluences": {"affluences_timeout_seconds": 5.0},
        "server": {"server_port": 8080}
    }

    Becomes:
    {"affluences_timeout_seconds": 5.0, "server_port": 8080}

    Keys starting with "_" (like "_comment") are skipped.
    """
    result = {}

    for key, value in config.items():
        if key.startswith("_"):
            continue

        if isinstance(value, dict):
            result.update(flatten_json_config(value))
        else:
            result[key] = value

    return result


def load_json_config(config_file: Optional[str] = None) -> dict[str, Any]:
    """Load configuration from a JSON file.

    Supports both flat and nested JSON structures. Nested structures are
    automatically flattened. Keys starting with "_" are treated as comments
    and ignored.

    Args:
        config_file: Path to JSON config file. If None, checks CONFIG_FILE env var.

    Returns:
        Dictionary of configuration values (flattened), or empty dict if no file found.
    """
    file_path = config_file or os.getenv("CONFIG_FILE")

    if not file_path:
        return {}

    path = Path(file_path)
    if not path.exists():
        logger.warning(f"Config file not found: {file_path}")
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            config = json.load(f)
            logger.info(f"Loaded configuration from: {file_path}")
            return flatten_json_config(config)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in config file {file_path}: {e}")
        return {}
    except OSError as e:
        logger.error(f"Error reading config file {file_path}: {e}")
        return {}


class Settings(BaseSettings):
    """Application configuration with JSON file and environment variable support.

    Configuration priority (highest to lowest):
    1. Environment variables
    2. JSON config file (specified via CONFIG_FILE env var)
    3. Default values
    """

    # Affluences API Configuration
    affluences_endpoint_base: str = "https://api.affluences.com/app"
    affluences_catalog_version: str = "v3"  # POST /sites/map
    affluences_site_version: str = "v4"  # live-data and timetables
    affluences_timeout_seconds: float = 10.0

    # Catalog Configuration
    # 1 = public library, 20 = university library
    library_category_ids: list[int] = [1, 20]
    nearby_sites_limit: int = 15
    default_campus_label: str = "Campus"

    # Geolocation Configuration
    # Fallback is the Talence campus reference point
    fallback_lat: float = 44.8048
    fallback_lng: float = -0.5954
    # Optional last-known device fix (unset = no fix available)
    device_lat: Optional[float] = None
    device_lng: Optional[float] = None
    location_fix_timeout_seconds: float = 5.0

    # Server Configuration
    server_port: int = 8080
    log_level: str = "INFO"

    # Project Paths
    project_root: str = ""
    resources_path_prefix: str = "resources"

    # Resource Files
    locations_resource: str = "locations.json"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    def __init__(self, **kwargs):
        """Initialize settings from JSON file and environment variables.

        Priority: env vars > JSON config > defaults
        """
        json_config = load_json_config()

        # Init kwargs outrank env vars in BaseSettings, so drop JSON keys the env sets
        env_keys = {key.lower() for key in os.environ}
        json_config = {k: v for k, v in json_config.items() if k.lower() not in env_keys}

        merged_kwargs = {**json_config, **kwargs}

        super().__init__(**merged_kwargs)

        if not self.project_root:
            # Use PROJECT_ROOT env var or the repository root
            self.project_root = os.getenv(
                "PROJECT_ROOT", str(Path(__file__).resolve().parent.parent)
            )

    @property
    def base_dir(self) -> Path:
        """Get the project root directory as a Path object."""
        return Path(self.project_root)

    def get_resource_path(self, resource_file: str) -> Path:
        """Get the full path to a resource file."""
        return self.base_dir / self.resources_path_prefix / resource_file

    @property
    def catalog_base_url(self) -> str:
        """Base URL for the site catalog endpoint."""
        return f"{self.affluences_endpoint_base.rstrip('/')}/{self.affluences_catalog_version}"

    @property
    def site_base_url(self) -> str:
        """Base URL for per-site endpoints (live data, timetables)."""
        return f"{self.affluences_endpoint_base.rstrip('/')}/{self.affluences_site_version}"


# Global settings instance
settings = Settings()
