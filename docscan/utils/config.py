"""Configuration management for the document scan pipeline.

Loads and validates YAML configuration with defaults for document
detection, OCR, storage, and logging.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class ScanConfig(BaseModel):
    """Configuration for document boundary detection and rectification."""

    max_dimension: int = Field(default=1400, gt=0)
    blur_kernel: int = 5
    canny_low: int = 75
    canny_high: int = 200
    epsilon_ratio: float = Field(default=0.02, gt=0.0)


class OCRConfig(BaseModel):
    """Configuration for the Tesseract OCR engine."""

    tesseract_cmd: str | None = None
    default_lang: str = "eng"
    psm: int = 3
    low_confidence_threshold: float = Field(default=70.0, ge=0.0, le=100.0)


class StorageConfig(BaseModel):
    """Configuration for the document store and local history."""

    db_path: str = "data/documents.db"
    history_path: str = "data/history.json"
    search_limit: int = Field(default=50, gt=0)


class AppConfig(BaseModel):
    """Top-level application configuration."""

    scan: ScanConfig = Field(default_factory=ScanConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration. Defaults are used when the
        file does not exist or is empty.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
