"""
Configuration settings for the Relief terrain engine.
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from relief.core.errors import ConfigurationError


class Settings(BaseSettings):
    """
    Engine settings with environment variable support.

    Attributes:
        environment: Deployment environment (controls default log level/format)
        log_level: Explicit log level, overrides the environment default
        log_file: Optional path for a rotating log file
        json_logs: Whether file logs are written as JSON
        elevation_fetch_timeout_seconds: Upper bound on the elevation sample fetch
        earth_radius_m: Mean Earth radius used for horizontal distances
        analysis_store_dir: Directory used by the file-backed analysis store
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="RELIEF_",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"

    # Logging
    log_level: Optional[str] = None
    log_file: Optional[Path] = None
    json_logs: bool = False

    # Elevation data
    elevation_fetch_timeout_seconds: Optional[float] = None
    earth_radius_m: float = 6_371_000.0

    # Routing defaults
    routing_search_radius_m: float = 1000.0
    routing_max_slope_degrees: float = 15.0
    routing_min_accessibility_score: float = 0.7
    routing_waypoint_offset_m: float = 500.0
    routing_max_alternative_routes: int = 3

    # Storage
    analysis_store_dir: Path = Path("./data/analyses")

    @field_validator("elevation_fetch_timeout_seconds")
    @classmethod
    def _positive_timeout(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            raise ValueError("elevation_fetch_timeout_seconds must be positive")
        return value

    @field_validator("routing_min_accessibility_score")
    @classmethod
    def _unit_interval(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("routing_min_accessibility_score must be within [0, 1]")
        return value

    @field_validator("routing_max_alternative_routes")
    @classmethod
    def _at_least_one_route(cls, value: int) -> int:
        if value < 1:
            raise ValueError("routing_max_alternative_routes must be at least 1")
        return value


def load_settings(**overrides: object) -> Settings:
    """
    Build a Settings instance, reporting invalid values as ConfigurationError.

    Args:
        **overrides: Explicit values taking precedence over the environment

    Returns:
        Validated Settings

    Raises:
        ConfigurationError: If any setting fails validation
    """
    try:
        return Settings(**overrides)  # type: ignore[arg-type]
    except ValidationError as e:
        first = e.errors()[0]
        config_key = ".".join(str(part) for part in first.get("loc", ()))
        raise ConfigurationError(
            f"Invalid configuration: {first.get('msg', str(e))}",
            config_key=config_key or None,
            details={"error_count": e.error_count()},
        ) from e


# Global settings instance
settings = load_settings()
