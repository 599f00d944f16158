"""Declarative pattern tables for label field extraction.

Each field maps to an ordered list of pattern specs. The extractor walks the
list top to bottom and keeps the first spec that matches, so label-anchored
patterns come first and bare fallbacks last.
"""

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Pattern

from .config_loader import ExtractionConfig
from .types import (
    BATCH_KEY,
    BRAND_KEY,
    MODEL_KEY,
    RATING_KEY,
    SERIAL_KEY,
    SIZE_KEY,
    TYPE_KEY,
    FieldNote,
)

# Maximum stored length per field
LENGTH_LIMITS: Dict[str, int] = {
    SERIAL_KEY: 12,
    BATCH_KEY: 200,
    BRAND_KEY: 1024,
    MODEL_KEY: 1500,
    TYPE_KEY: 1500,
    SIZE_KEY: 1500,
    RATING_KEY: 600,
}
DEFAULT_LENGTH_LIMIT = 512

# Label keywords that terminate a free-text capture
_LABEL_WORDS = r"(?:SIRIM|Serial|Batch|Brand|Trademark|Model|Type|Rating|Size)"


@dataclass(frozen=True)
class SerialPatternSpec:
    """One serial number tier.

    Attributes:
        name: Tier name used in logs.
        regex: Pattern whose first group captures the digits.
        prefix: Letters prepended to the captured digits.
        digit_count: Required number of digits in the capture.
        base_confidence: Confidence before penalties.
        relaxed: Tag PATTERN_RELAXED on matches.
    """

    name: str
    regex: Pattern[str]
    prefix: str
    digit_count: int
    base_confidence: float
    relaxed: bool


@dataclass(frozen=True)
class FieldPatternSpec:
    """One extraction rule for a secondary field.

    Attributes:
        regex: Pattern whose last group captures the value.
        base_confidence: Confidence before penalties.
        allow_corrections: Apply glyph correction to the capture.
        uppercase_result: Upper-case the capture.
        default_notes: Notes always attached to matches.
    """

    regex: Pattern[str]
    base_confidence: float
    allow_corrections: bool = False
    uppercase_result: bool = False
    default_notes: FrozenSet[FieldNote] = frozenset()


SERIAL_EXACT = re.compile(r"(?<![A-Z0-9])T(\d{9})(?![A-Z0-9])", re.IGNORECASE)
SERIAL_RELAXED = re.compile(r"(?<![A-Z0-9])T[\s-]?(\d{9})(?![A-Z0-9])", re.IGNORECASE)
SERIAL_LEGACY = re.compile(r"(?<![A-Z0-9])TEA[\s-]?(\d{7})(?![A-Z0-9])", re.IGNORECASE)

# Canonical forms checked by the validator
CANONICAL_SERIAL = re.compile(r"^(TEA\d{7}|T\d{9})$", re.IGNORECASE)


def _label_pattern(label: str, value_class: str) -> Pattern[str]:
    """Build a label-anchored pattern with a free-text capture.

    The capture is lazy and stops at the next label keyword, at the first
    character outside ``value_class`` or at the end of the text.
    """
    return re.compile(
        rf"\b{label}\s*[:\-]?\s*"
        rf"([A-Za-z0-9]{value_class}*?)"
        rf"(?=\s+{_LABEL_WORDS}\b|\s*$|[^{value_class[1:-1]}])",
        re.IGNORECASE,
    )


def build_serial_specs(config: ExtractionConfig) -> List[SerialPatternSpec]:
    """Serial tiers in strict priority order."""
    return [
        SerialPatternSpec(
            name="exact",
            regex=SERIAL_EXACT,
            prefix="T",
            digit_count=9,
            base_confidence=config.exact_serial_confidence,
            relaxed=False,
        ),
        SerialPatternSpec(
            name="relaxed",
            regex=SERIAL_RELAXED,
            prefix="T",
            digit_count=9,
            base_confidence=config.relaxed_serial_confidence,
            relaxed=True,
        ),
        SerialPatternSpec(
            name="legacy",
            regex=SERIAL_LEGACY,
            prefix="TEA",
            digit_count=7,
            base_confidence=config.legacy_serial_confidence,
            relaxed=True,
        ),
    ]


def build_field_specs(config: ExtractionConfig) -> Dict[str, List[FieldPatternSpec]]:
    """Per-field pattern specs, label-anchored first."""
    relaxed = frozenset({FieldNote.PATTERN_RELAXED})
    free_text = r"[A-Za-z0-9\-\s/]"
    brand_text = r"[A-Za-z0-9 &'\-]"

    return {
        BATCH_KEY: [
            FieldPatternSpec(
                regex=re.compile(
                    r"\bBatch\s*(?:Number|No\.?)?\s*[:\-]?\s*([A-Z0-9][A-Z0-9\-]{2,})",
                    re.IGNORECASE,
                ),
                base_confidence=config.primary_field_confidence,
            ),
            FieldPatternSpec(
                regex=re.compile(r"\b([A-Z]{2,4}-\d{4,})\b"),
                base_confidence=config.secondary_field_confidence,
                default_notes=relaxed,
            ),
        ],
        BRAND_KEY: [
            FieldPatternSpec(
                regex=_label_pattern(r"Brand\s*/\s*Trademark", brand_text),
                base_confidence=config.primary_field_confidence,
            ),
            FieldPatternSpec(
                regex=_label_pattern(r"(?:Brand|Trademark)", brand_text),
                base_confidence=config.secondary_field_confidence,
                default_notes=relaxed,
            ),
        ],
        MODEL_KEY: [
            FieldPatternSpec(
                regex=_label_pattern("Model", free_text),
                base_confidence=config.primary_field_confidence,
            ),
        ],
        TYPE_KEY: [
            FieldPatternSpec(
                regex=_label_pattern("Type", free_text),
                base_confidence=config.primary_field_confidence,
            ),
        ],
        RATING_KEY: [
            FieldPatternSpec(
                regex=_label_pattern("Rating", free_text),
                base_confidence=config.primary_field_confidence,
            ),
            FieldPatternSpec(
                regex=re.compile(r"\b(SAE\s*\d{1,2}W-?\d{1,2})\b", re.IGNORECASE),
                base_confidence=config.secondary_field_confidence,
                uppercase_result=True,
                default_notes=relaxed,
            ),
            FieldPatternSpec(
                regex=re.compile(r"\b(API\s*[A-Z]{2}(?:-\d+)?)\b", re.IGNORECASE),
                base_confidence=config.tertiary_field_confidence,
                uppercase_result=True,
                default_notes=relaxed,
            ),
        ],
        SIZE_KEY: [
            FieldPatternSpec(
                regex=re.compile(
                    r"\bSize\s*[:\-]?\s*(\d+\s*(?:L|ML|LITRE|LTR|KG))\b",
                    re.IGNORECASE,
                ),
                base_confidence=config.primary_field_confidence,
                uppercase_result=True,
            ),
            FieldPatternSpec(
                regex=re.compile(r"\b(\d+\s*(?:L|ML|LITRE|LTR|KG))\b", re.IGNORECASE),
                base_confidence=config.secondary_field_confidence,
                uppercase_result=True,
                default_notes=relaxed,
            ),
        ],
    }
