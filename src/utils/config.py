"""Configuration management for RetailPulse.

Loads YAML configuration files for forecasting, geospatial binning,
recommendation and application parameters.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)


@dataclass
class ForecastConfig:
    """Configuration for the 24-hour footfall forecast."""

    window_size: int = 168
    horizon_hours: int = 24
    perturbation: float = 2.5
    min_prediction: int = 5
    high_confidence_variance: float = 100.0
    medium_confidence_variance: float = 300.0


@dataclass
class GeoConfig:
    """Configuration for location binning."""

    precision: int = 4
    top_n: int = 20


@dataclass
class RecommendationConfig:
    """Configuration for staffing and marketing recommendations."""

    customers_per_staff: int = 15
    top_n: int = 3
    offers: list[dict] = field(
        default_factory=lambda: [
            {"discount_percent": 20, "description": "Flash sale to boost foot traffic"},
            {"discount_percent": 15, "description": "Happy hour special"},
            {"discount_percent": 25, "description": "Limited time offer"},
        ]
    )


@dataclass
class HeatmapConfig:
    """Configuration for density heatmap rendering."""

    width: int = 640
    height: int = 480
    sigma: float = 20.0
    colormap: str = "jet"


@dataclass
class LoggingConfig:
    """Configuration for application logging."""

    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class DashboardConfig:
    """Configuration for Streamlit dashboard."""

    host: str = "0.0.0.0"
    port: int = 8501


@dataclass
class AppConfig:
    """Top-level application configuration."""

    forecast: ForecastConfig = field(default_factory=ForecastConfig)
    geo: GeoConfig = field(default_factory=GeoConfig)
    recommendations: RecommendationConfig = field(default_factory=RecommendationConfig)
    heatmap: HeatmapConfig = field(default_factory=HeatmapConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)


def load_config(config_path: str) -> AppConfig:
    """Load application configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Populated AppConfig instance.

    Raises:
        FileNotFoundError: If the config file does not exist.
        yaml.YAMLError: If the file contains invalid YAML.
        ValueError: If an offer entry is missing required fields or a
            forecast window or horizon is not positive.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path) as f:
        raw = yaml.safe_load(f)

    if raw is None:
        logger.warning("Empty config file, using defaults")
        return AppConfig()

    config = config_from_dict(raw)
    logger.info("Configuration loaded from %s", config_path)
    return config


def config_from_dict(raw: dict) -> AppConfig:
    """Build an AppConfig from parsed YAML, using defaults for missing sections.

    Args:
        raw: Mapping of section names to option mappings.

    Returns:
        Populated AppConfig instance.

    Raises:
        ValueError: If an offer entry is missing required fields or a
            forecast window or horizon is not positive.
    """
    config = AppConfig(
        forecast=ForecastConfig(**raw.get("forecast", {})),
        geo=GeoConfig(**raw.get("geo", {})),
        recommendations=RecommendationConfig(**raw.get("recommendations", {})),
        heatmap=HeatmapConfig(**raw.get("heatmap", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        dashboard=DashboardConfig(**raw.get("dashboard", {})),
    )

    for offer in config.recommendations.offers:
        if "discount_percent" not in offer or "description" not in offer:
            raise ValueError(
                f"Offer definition missing 'discount_percent' or 'description': {offer}"
            )

    for name in ("window_size", "horizon_hours"):
        value = getattr(config.forecast, name)
        if value < 1:
            raise ValueError(
                f"forecast.{name} must be a positive integer, got {value}"
            )

    return config
