"""Canonical format validation for consensus fields.

The validator is stateless. It re-checks each field against its canonical
format, downgrades the confidence of values that fail, and turns diagnostic
notes into human-readable warnings. A missing serial is the only hard error.

Canonical formats:
    - serial: ``TEA`` + 7 digits or ``T`` + 9 digits (spaces/dashes stripped)
    - batchNo: ``[A-Z0-9-]{1,200}``
    - brandTrademark / model / type: alphanumerics and ``.,&'/-`` up to 1500
    - rating: SAE oil grade, or the broad class up to 600
    - size: digits, optional space, unit in {L, ML, LITRE, LTR, KG}
"""

import logging
import re
from typing import Dict, List, Mapping, Optional, Pattern

from .config_loader import ValidationConfig
from .patterns import CANONICAL_SERIAL
from .types import (
    BATCH_KEY,
    BRAND_KEY,
    MODEL_KEY,
    RATING_KEY,
    SERIAL_KEY,
    SIZE_KEY,
    TYPE_KEY,
    FieldNote,
    FieldValue,
    ValidationResult,
    clamp_confidence,
)

logger = logging.getLogger(__name__)

MIN_CONFIDENCE = 0.10
MAX_CONFIDENCE = 0.99

BATCH_FORMAT = re.compile(r"^[A-Z0-9-]{1,200}$", re.IGNORECASE)
TEXT_FORMAT = re.compile(r"^[A-Za-z0-9 .,&'/-]{1,1500}$")
RATING_FORMAT = re.compile(
    r"^(SAE\s*[0-9]{1,2}W-?[0-9]{1,2}|[A-Za-z0-9 .,&'/-]{1,600})$", re.IGNORECASE
)
SIZE_FORMAT = re.compile(r"^[0-9]+\s*(L|ML|LITRE|LTR|KG)$", re.IGNORECASE)

FIELD_FORMATS: Dict[str, Pattern[str]] = {
    BATCH_KEY: BATCH_FORMAT,
    BRAND_KEY: TEXT_FORMAT,
    MODEL_KEY: TEXT_FORMAT,
    TYPE_KEY: TEXT_FORMAT,
    RATING_KEY: RATING_FORMAT,
    SIZE_KEY: SIZE_FORMAT,
}

FIELD_LABELS: Dict[str, str] = {
    SERIAL_KEY: "SIRIM Serial No.",
    BATCH_KEY: "Batch No.",
    BRAND_KEY: "Brand/Trademark",
    MODEL_KEY: "Model",
    TYPE_KEY: "Type",
    RATING_KEY: "Rating",
    SIZE_KEY: "Size",
}

SERIAL_MISSING_ERROR = f"{FIELD_LABELS[SERIAL_KEY]}: missing or unreadable"
SERIAL_FORMAT_WARNING = "Serial number format could not be verified"
CONFLICT_WARNING = "Mismatch between readings across frames"
SOURCE_CONFLICT_WARNING = "Mismatch between QR data and OCR text"
CORRECTED_WARNING = "Similar characters corrected (O/0, I/1, S/5)"
TRIMMED_WARNING = "Value truncated to fit allowed length"
RELAXED_WARNING = "Field matched using relaxed pattern"


def field_label(key: str) -> str:
    """Display label for a field key.

    Unknown keys are split on camel-case boundaries and title-cased.

    Example:
        >>> field_label("batchNo")
        'Batch No.'
        >>> field_label("netWeight")
        'Net Weight'
    """
    if key in FIELD_LABELS:
        return FIELD_LABELS[key]
    spaced = re.sub(r"([A-Z])", r" \1", key).strip()
    return spaced[:1].upper() + spaced[1:]


def is_valid_serial_format(serial: str) -> bool:
    """Check a serial against the canonical ``T`` + 9 / ``TEA`` + 7 forms."""
    if not serial or not serial.strip():
        return False
    return bool(CANONICAL_SERIAL.match(serial.strip().upper()))


class FieldValidator:
    """Validates and sanitizes a field set.

    Args:
        config: Penalty configuration. If None, uses model defaults.
    """

    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config if config is not None else ValidationConfig()

    def validate(self, fields: Mapping[str, FieldValue]) -> ValidationResult:
        """Validate every field and collect warnings and errors.

        Args:
            fields: Field set to check (typically consensus output).

        Returns:
            ValidationResult with sanitized fields, warnings and errors.
        """
        sanitized: Dict[str, FieldValue] = {}
        warnings: Dict[str, str] = {}
        errors: Dict[str, str] = {}

        for key, value in fields.items():
            trimmed = value.text.strip()
            if key == SERIAL_KEY:
                updated = self._check_serial(value, trimmed)
            elif key in FIELD_FORMATS:
                if not trimmed:
                    continue
                updated = self._check_format(
                    value, trimmed, FIELD_FORMATS[key], self.config.format_mismatch_factor
                )
            else:
                updated = FieldValue(trimmed, value.confidence, value.source, value.notes)

            sanitized[key] = updated
            message = self._warning_for(key, updated)
            if message:
                warnings[key] = message

        if SERIAL_KEY not in sanitized or not sanitized[SERIAL_KEY].text:
            sanitized.pop(SERIAL_KEY, None)
            errors[SERIAL_KEY] = SERIAL_MISSING_ERROR
            logger.debug("Validation error: serial missing")

        return ValidationResult(sanitized=sanitized, warnings=warnings, errors=errors)

    def _check_serial(self, value: FieldValue, trimmed: str) -> FieldValue:
        cleaned = trimmed.upper().replace("-", "").replace(" ", "")
        if CANONICAL_SERIAL.match(cleaned):
            return self._rebuild(value, cleaned, value.confidence)
        if cleaned:
            logger.warning(f"Serial failed canonical format: {cleaned[:12]}")
        return self._penalize(value, cleaned, self.config.serial_mismatch_factor)

    def _check_format(
        self, value: FieldValue, trimmed: str, pattern: Pattern[str], factor: float
    ) -> FieldValue:
        if pattern.match(trimmed):
            return self._rebuild(value, trimmed, value.confidence)
        return self._penalize(value, trimmed, factor)

    def _penalize(self, value: FieldValue, text: str, factor: float) -> FieldValue:
        # Already-flagged values are not penalized twice
        if value.has_note(FieldNote.FORMAT_MISMATCH):
            return self._rebuild(value, text, value.confidence)
        penalized = self._rebuild(value, text, value.confidence * factor)
        return penalized.with_notes(FieldNote.FORMAT_MISMATCH)

    @staticmethod
    def _rebuild(value: FieldValue, text: str, confidence: float) -> FieldValue:
        return FieldValue(
            text=text,
            confidence=clamp_confidence(confidence, MIN_CONFIDENCE, MAX_CONFIDENCE),
            source=value.source,
            notes=value.notes,
        )

    @staticmethod
    def _warning_for(key: str, value: FieldValue) -> Optional[str]:
        messages: List[str] = []
        if value.has_note(FieldNote.FORMAT_MISMATCH):
            if key == SERIAL_KEY:
                messages.append(SERIAL_FORMAT_WARNING)
            else:
                messages.append(f"{field_label(key)} format may be invalid")

        # First matching note wins among these
        for note, message in (
            (FieldNote.CONFLICT, CONFLICT_WARNING),
            (FieldNote.CONFLICTING_SOURCES, SOURCE_CONFLICT_WARNING),
            (FieldNote.CORRECTED_CHARACTER, CORRECTED_WARNING),
            (FieldNote.PATTERN_RELAXED, RELAXED_WARNING),
        ):
            if not messages and value.has_note(note):
                messages.append(message)
                break

        if value.has_note(FieldNote.LENGTH_TRIMMED):
            messages.append(TRIMMED_WARNING)

        return "; ".join(messages) if messages else None
