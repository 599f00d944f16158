"""Single-frame field extraction from recognized label text.

The extractor turns one block of OCR text into a field set:

    1. SERIAL: three serial tiers tried in strict priority order
       (exact ``T`` + 9 digits, spaced/dashed ``T`` + 9 digits, legacy
       ``TEA`` + 7 digits); the first tier that matches wins.
    2. SECONDARY FIELDS: for each field the first matching pattern spec wins,
       so an explicit label is always preferred over a bare value.

Each value is scored as ``base - correction_penalty - length_penalty``,
clamped to ``[min_confidence, cap]``.

Example:
    >>> extractor = FieldExtractor()
    >>> fields = extractor.extract("SIRIM Serial No: TEA1234567")
    >>> fields["serial"].text, fields["serial"].confidence
    ('TEA1234567', 0.78)
"""

import logging
import re
from typing import FrozenSet, Optional

from .config_loader import Config, get_default_config
from .corrector import CharacterCorrector
from .patterns import (
    DEFAULT_LENGTH_LIMIT,
    LENGTH_LIMITS,
    FieldPatternSpec,
    build_field_specs,
    build_serial_specs,
)
from .types import SERIAL_KEY, FieldNote, FieldSet, FieldSource, FieldValue, clamp_confidence

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Normalize raw OCR text for pattern matching.

    Converts the full-width colon to ASCII, collapses whitespace runs to a
    single space and trims the result.

    Args:
        text: Raw recognized text (may span several lines).

    Returns:
        Single-line normalized text.

    Example:
        >>> normalize_text("Model\\uff1a  AB-12\\n Size: 4L ")
        'Model: AB-12 Size: 4L'
    """
    return _WHITESPACE.sub(" ", text.replace("\uff1a", ":")).strip()


def enforce_length(field: str, value: str) -> tuple[str, bool]:
    """Truncate ``value`` to the field's maximum length.

    Returns:
        Tuple of (bounded_value, was_trimmed).
    """
    limit = LENGTH_LIMITS.get(field, DEFAULT_LENGTH_LIMIT)
    if len(value) > limit:
        return value[:limit], True
    return value, False


class FieldExtractor:
    """Pattern-based extractor for a single frame of label text.

    Args:
        config: Full configuration. If None, uses the bundled defaults.

    Attributes:
        config: Full configuration object
        corrector: Glyph corrector shared by all fields
        serial_specs: Serial tiers in priority order
        field_specs: Secondary field pattern table
    """

    def __init__(self, config: Optional[Config] = None):
        self.config: Config = config if config is not None else get_default_config()
        extraction = self.config.scanner.extraction

        self.corrector = CharacterCorrector(self.config.scanner.correction)
        self.serial_specs = build_serial_specs(extraction)
        self.field_specs = build_field_specs(extraction)

    def extract(self, text: str) -> FieldSet:
        """Extract every recognisable field from one block of text.

        Args:
            text: Recognized text of one frame.

        Returns:
            Mapping of field key to FieldValue; empty for blank input.
        """
        if not text or not text.strip():
            return {}

        normalized = normalize_text(text)
        fields: FieldSet = {}

        serial = self.extract_serial(normalized)
        if serial is not None:
            fields[SERIAL_KEY] = serial

        for field, specs in self.field_specs.items():
            for spec in specs:
                match = spec.regex.search(normalized)
                if match is None:
                    continue
                raw = match.group(match.lastindex or 0).strip()
                if not raw:
                    continue
                fields[field] = self._build_field(field, raw, spec)
                break

        logger.debug(
            f"Extracted {len(fields)} field(s): "
            + ", ".join(f"{k}={v.confidence:.2f}" for k, v in fields.items())
        )
        return fields

    def extract_serial(self, text: str) -> Optional[FieldValue]:
        """Find the serial number using the first matching tier.

        Args:
            text: Normalized text.

        Returns:
            Serial FieldValue, or None when no tier matches.
        """
        extraction = self.config.scanner.extraction

        for spec in self.serial_specs:
            match = spec.regex.search(text)
            if match is None:
                continue
            digits = "".join(ch for ch in match.group(1) if ch.isdigit())
            if len(digits) != spec.digit_count:
                continue

            notes = {FieldNote.PATTERN_RELAXED} if spec.relaxed else set()
            value = self._score(
                field=SERIAL_KEY,
                raw=spec.prefix + digits,
                base_confidence=spec.base_confidence,
                allow_corrections=True,
                uppercase=True,
                default_notes=frozenset(notes),
                cap=extraction.max_serial_confidence,
            )
            logger.debug(
                f"Serial matched {spec.name} tier: {value.text[:12]} "
                f"(confidence={value.confidence:.2f})"
            )
            return value

        return None

    def _build_field(self, field: str, raw: str, spec: FieldPatternSpec) -> FieldValue:
        return self._score(
            field=field,
            raw=raw,
            base_confidence=spec.base_confidence,
            allow_corrections=spec.allow_corrections and self.corrector.config.enabled,
            uppercase=spec.uppercase_result,
            default_notes=spec.default_notes,
            cap=self.config.scanner.extraction.max_field_confidence,
        )

    def _score(
        self,
        field: str,
        raw: str,
        base_confidence: float,
        allow_corrections: bool,
        uppercase: bool,
        default_notes: FrozenSet[FieldNote],
        cap: float,
    ) -> FieldValue:
        extraction = self.config.scanner.extraction

        correction = self.corrector.correct(raw, uppercase=uppercase, enabled=allow_corrections)
        bounded, trimmed = enforce_length(field, correction.corrected_text)

        notes = set(default_notes)
        penalty = 0.0
        if correction.correction_applied:
            notes.add(FieldNote.CORRECTED_CHARACTER)
            penalty += extraction.correction_penalty
        if trimmed:
            notes.add(FieldNote.LENGTH_TRIMMED)
            penalty += extraction.length_penalty

        return FieldValue(
            text=bounded,
            confidence=clamp_confidence(
                base_confidence - penalty, extraction.min_confidence, cap
            ),
            source=FieldSource.OCR,
            notes=frozenset(notes),
        )
