"""Configuration loader with Pydantic validation for the label scanner.

This module provides type-safe configuration loading from YAML files using
Pydantic models for validation and default values.
"""

import logging
from pathlib import Path
from typing import Dict

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"


class ExtractionConfig(BaseModel):
    """Confidence policy of the single-frame extractor.

    Attributes:
        exact_serial_confidence: Base confidence for a ``T`` + 9 digit match
        relaxed_serial_confidence: Base confidence for a spaced/dashed serial
        legacy_serial_confidence: Base confidence for a ``TEA`` + 7 digit serial
        primary_field_confidence: Base confidence for label-anchored fields
        secondary_field_confidence: Base confidence for bare/relaxed fields
        tertiary_field_confidence: Base confidence for the loosest fallbacks
        correction_penalty: Deducted when any glyph was corrected
        length_penalty: Deducted when a value was truncated
        min_confidence: Floor for every emitted confidence
        max_field_confidence: Ceiling for secondary fields
        max_serial_confidence: Ceiling for serial numbers
    """

    exact_serial_confidence: float = Field(default=0.90, ge=0.0, le=1.0)
    relaxed_serial_confidence: float = Field(default=0.85, ge=0.0, le=1.0)
    legacy_serial_confidence: float = Field(default=0.78, ge=0.0, le=1.0)
    primary_field_confidence: float = Field(default=0.75, ge=0.0, le=1.0)
    secondary_field_confidence: float = Field(default=0.65, ge=0.0, le=1.0)
    tertiary_field_confidence: float = Field(default=0.60, ge=0.0, le=1.0)
    correction_penalty: float = Field(default=0.03, ge=0.0, le=1.0)
    length_penalty: float = Field(default=0.05, ge=0.0, le=1.0)
    min_confidence: float = Field(default=0.10, ge=0.0, le=1.0)
    max_field_confidence: float = Field(default=0.95, ge=0.0, le=1.0)
    max_serial_confidence: float = Field(default=0.99, ge=0.0, le=1.0)


class CorrectionConfig(BaseModel):
    """Character correction configuration.

    Attributes:
        enabled: Enable glyph correction for fields whose pattern allows it
        rules: Commonly confused glyph -> digit mapping
    """

    enabled: bool = True
    rules: Dict[str, str] = {
        "O": "0",
        "o": "0",
        "I": "1",
        "i": "1",
        "l": "1",
        "S": "5",
        "s": "5",
        "B": "8",
        "b": "8",
        "Z": "2",
        "z": "2",
        "G": "6",
        "g": "6",
        "D": "0",
        "d": "0",
    }


class ReconciliationConfig(BaseModel):
    """OCR/QR serial reconciliation policy.

    Attributes:
        qr_base_confidence: Confidence of a QR-only serial before penalties
        verified_confidence: Confidence when OCR and QR agree
        conflict_confidence: Confidence when OCR and QR disagree
    """

    qr_base_confidence: float = Field(default=0.98, ge=0.0, le=1.0)
    verified_confidence: float = Field(default=0.99, ge=0.0, le=1.0)
    conflict_confidence: float = Field(default=0.90, ge=0.0, le=1.0)


class ConsensusConfig(BaseModel):
    """Temporal consensus configuration.

    Attributes:
        window_size: Number of recent frames kept for voting
        success_threshold: Mean confidence that lets two stable fields suffice
        boost_per_frame: Confidence added per repeated observation
        boost_cap: Ceiling for boosted confidences
        max_stable_threshold: Upper bound of the per-field repetition threshold
    """

    window_size: int = Field(default=5, ge=1)
    success_threshold: float = Field(default=0.75, ge=0.0, le=1.0)
    boost_per_frame: float = Field(default=0.08, ge=0.0, le=1.0)
    boost_cap: float = Field(default=0.98, ge=0.0, le=1.0)
    max_stable_threshold: int = Field(default=3, ge=1)


class ValidationConfig(BaseModel):
    """Validator penalty factors.

    Attributes:
        serial_mismatch_factor: Confidence multiplier for a malformed serial
        format_mismatch_factor: Confidence multiplier for other malformed fields
    """

    serial_mismatch_factor: float = Field(default=0.6, ge=0.0, le=1.0)
    format_mismatch_factor: float = Field(default=0.75, ge=0.0, le=1.0)


class ThrottleConfig(BaseModel):
    """Frame throttling.

    Attributes:
        frame_interval_ms: Minimum delay between two analysed frames
    """

    frame_interval_ms: int = Field(default=150, ge=0)


class ScannerModuleConfig(BaseModel):
    """Complete scanner configuration."""

    extraction: ExtractionConfig = ExtractionConfig()
    correction: CorrectionConfig = CorrectionConfig()
    reconciliation: ReconciliationConfig = ReconciliationConfig()
    consensus: ConsensusConfig = ConsensusConfig()
    validation: ValidationConfig = ValidationConfig()
    throttle: ThrottleConfig = ThrottleConfig()


class Config(BaseModel):
    """Root configuration container.

    Attributes:
        scanner: Scanner module configuration
    """

    scanner: ScannerModuleConfig = ScannerModuleConfig()


def load_config(config_path: Path) -> Config:
    """Load and validate configuration from YAML file.

    The file may either hold the scanner sections at top level or nest them
    under a ``scanner`` key.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated Config object with all settings

    Raises:
        FileNotFoundError: If config file does not exist
        yaml.YAMLError: If YAML parsing fails
        pydantic.ValidationError: If configuration validation fails

    Example:
        >>> config = load_config(Path("scanner.yaml"))
        >>> print(config.scanner.consensus.window_size)
        5
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger.debug(f"Loading scanner config from {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        config_dict = yaml.safe_load(f) or {}

    if "scanner" in config_dict:
        return Config(**config_dict)
    return Config(scanner=ScannerModuleConfig(**config_dict))


def get_default_config() -> Config:
    """Get default configuration from bundled config.yaml file.

    Returns:
        Config object loaded from the package's config.yaml
    """
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    logger.warning(
        f"Bundled config not found at {DEFAULT_CONFIG_PATH}, using model defaults"
    )
    return Config()
