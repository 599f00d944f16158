"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all test modules.
"""

import pytest

from sirim_scanner.ocr.config_loader import Config
from sirim_scanner.ocr.types import FieldValue, FrameObservation


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    """Fixture providing a manually advanced clock."""
    return FakeClock()


@pytest.fixture
def default_config():
    """Fixture providing model-default configuration."""
    return Config()


@pytest.fixture
def full_label_text():
    """Fixture providing the OCR text of a complete label."""
    return (
        "SIRIM Serial No: T123456789\n"
        "Batch No: AB-1234\n"
        "Brand/Trademark: ACME\n"
        "Size: 4L"
    )


@pytest.fixture
def make_observation():
    """Fixture providing a builder for observations from ``key=(text, confidence)`` pairs."""

    def _make(**fields) -> FrameObservation:
        values = {
            key: FieldValue(text, confidence)
            for key, (text, confidence) in fields.items()
        }
        return FrameObservation.from_fields(values)

    return _make
