"""Unit tests for scanner configuration loader."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from sirim_scanner.ocr.config_loader import (
    Config,
    ConsensusConfig,
    CorrectionConfig,
    ExtractionConfig,
    ReconciliationConfig,
    ThrottleConfig,
    ValidationConfig,
    get_default_config,
    load_config,
)


class TestExtractionConfig:
    """Test ExtractionConfig model."""

    def test_default_values(self):
        """Test default confidence policy."""
        config = ExtractionConfig()
        assert config.exact_serial_confidence == 0.90
        assert config.relaxed_serial_confidence == 0.85
        assert config.legacy_serial_confidence == 0.78
        assert config.correction_penalty == 0.03
        assert config.length_penalty == 0.05
        assert config.min_confidence == 0.10
        assert config.max_field_confidence == 0.95

    def test_confidence_out_of_range(self):
        """Test validation error for confidence out of range."""
        with pytest.raises(ValidationError):
            ExtractionConfig(exact_serial_confidence=1.5)

        with pytest.raises(ValidationError):
            ExtractionConfig(min_confidence=-0.1)


class TestCorrectionConfig:
    """Test CorrectionConfig model."""

    def test_default_rules(self):
        """Test every confusable glyph maps to a digit."""
        config = CorrectionConfig()
        assert config.enabled is True
        assert config.rules["O"] == "0"
        assert config.rules["l"] == "1"
        assert config.rules["G"] == "6"
        assert all(v.isdigit() for v in config.rules.values())


class TestOtherSections:
    """Test remaining config sections."""

    def test_reconciliation_defaults(self):
        """Test reconciliation confidences."""
        config = ReconciliationConfig()
        assert config.qr_base_confidence == 0.98
        assert config.verified_confidence == 0.99
        assert config.conflict_confidence == 0.90

    def test_consensus_defaults(self):
        """Test consensus defaults."""
        config = ConsensusConfig()
        assert config.window_size == 5
        assert config.success_threshold == 0.75
        assert config.boost_per_frame == 0.08
        assert config.boost_cap == 0.98

    def test_window_size_must_be_positive(self):
        """Test window size of zero is rejected."""
        with pytest.raises(ValidationError):
            ConsensusConfig(window_size=0)

    def test_validation_defaults(self):
        """Test validator factors."""
        config = ValidationConfig()
        assert config.serial_mismatch_factor == 0.6
        assert config.format_mismatch_factor == 0.75

    def test_throttle_defaults(self):
        """Test throttle interval."""
        assert ThrottleConfig().frame_interval_ms == 150

        with pytest.raises(ValidationError):
            ThrottleConfig(frame_interval_ms=-1)


class TestLoadConfig:
    """Test YAML loading."""

    def test_load_flat_yaml(self, tmp_path: Path):
        """Test sections given at top level."""
        config_file = tmp_path / "scanner.yaml"
        config_file.write_text(
            yaml.safe_dump({"consensus": {"window_size": 3}, "throttle": {"frame_interval_ms": 50}})
        )

        config = load_config(config_file)

        assert config.scanner.consensus.window_size == 3
        assert config.scanner.throttle.frame_interval_ms == 50
        assert config.scanner.extraction.exact_serial_confidence == 0.90

    def test_load_nested_yaml(self, tmp_path: Path):
        """Test sections nested under a scanner key."""
        config_file = tmp_path / "scanner.yaml"
        config_file.write_text(
            """
scanner:
  consensus:
    success_threshold: 0.8
"""
        )

        config = load_config(config_file)
        assert config.scanner.consensus.success_threshold == 0.8

    def test_empty_yaml_uses_defaults(self, tmp_path: Path):
        """Test an empty file yields defaults."""
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")

        assert load_config(config_file) == Config()

    def test_missing_file(self, tmp_path: Path):
        """Test missing config file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_value(self, tmp_path: Path):
        """Test invalid values raise ValidationError."""
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("validation:\n  format_mismatch_factor: 2.0\n")

        with pytest.raises(ValidationError):
            load_config(config_file)

    def test_default_config_matches_models(self):
        """Test bundled config mirrors the model defaults."""
        config = get_default_config()
        assert config.scanner.consensus.window_size == 5
        assert config.scanner.throttle.frame_interval_ms == 150
        assert config == Config()
