"""Type definitions for the label scanning engine.

This module defines the value types shared by the extractor, the QR
reconciler, the consensus aggregator and the validator. Every type here is
immutable: stages build new values instead of mutating the ones they receive.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, FrozenSet, Mapping, Optional, Tuple

import numpy as np

SERIAL_KEY = "serial"
BATCH_KEY = "batchNo"
BRAND_KEY = "brandTrademark"
MODEL_KEY = "model"
TYPE_KEY = "type"
RATING_KEY = "rating"
SIZE_KEY = "size"

# Closed set of field keys, serial first
FIELD_KEYS: Tuple[str, ...] = (
    SERIAL_KEY,
    BATCH_KEY,
    BRAND_KEY,
    MODEL_KEY,
    TYPE_KEY,
    RATING_KEY,
    SIZE_KEY,
)


class FieldSource(Enum):
    """Where a field value was read from."""

    OCR = "ocr"
    QR = "qr"
    USER = "user"


class FieldNote(Enum):
    """Diagnostic notes attached to a field value."""

    CORRECTED_CHARACTER = "corrected_character"
    PATTERN_RELAXED = "pattern_relaxed"
    LENGTH_TRIMMED = "length_trimmed"
    FORMAT_MISMATCH = "format_mismatch"
    CONFLICT = "conflict"
    VERIFIED_BY_MULTIPLE_SOURCES = "verified_by_multiple_sources"
    CONFLICTING_SOURCES = "conflicting_sources"


class ScanStatus(Enum):
    """Terminal status of one processed frame."""

    SUCCESS = "success"  # Consensus is stable
    PARTIAL = "partial"  # Fields found, consensus not yet stable
    EMPTY = "empty"  # No fields in frame, session window reset
    SKIPPED = "skipped"  # Dropped by the frame gate
    FAILURE = "failure"  # Upstream pipeline produced no text at all


def clamp_confidence(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp a confidence score into ``[low, high]``."""
    return float(np.clip(value, low, high))


@dataclass(frozen=True)
class FieldValue:
    """A single extracted field with its confidence and provenance.

    Attributes:
        text: Extracted (and possibly corrected) value.
        confidence: Trust score, always clamped to [0.0, 1.0].
        source: Where the value was read from.
        notes: Diagnostic notes; only ever grows across merges.
    """

    text: str
    confidence: float
    source: FieldSource = FieldSource.OCR
    notes: FrozenSet[FieldNote] = field(default_factory=frozenset)

    def __post_init__(self):
        object.__setattr__(self, "confidence", clamp_confidence(self.confidence))
        object.__setattr__(self, "notes", frozenset(self.notes))

    def with_confidence(self, confidence: float) -> "FieldValue":
        return replace(self, confidence=confidence)

    def with_notes(self, *notes: FieldNote) -> "FieldValue":
        return replace(self, notes=self.notes.union(notes))

    def has_note(self, note: FieldNote) -> bool:
        return note in self.notes

    def matches(self, other: "FieldValue") -> bool:
        """Case-insensitive text equality."""
        return self.text.upper() == other.text.upper()

    def merge_with(self, other: "FieldValue") -> "FieldValue":
        """Merge two readings of the same field.

        The higher-confidence reading wins (ties keep ``self``), the result
        takes the maximum confidence and the union of notes. Readings whose
        text differs are tagged CONFLICT.

        Args:
            other: Another reading of the same field.

        Returns:
            New merged FieldValue.
        """
        dominant = self if self.confidence >= other.confidence else other
        notes = self.notes | other.notes
        if not self.matches(other):
            notes = notes | {FieldNote.CONFLICT}
        return replace(
            dominant,
            confidence=max(self.confidence, other.confidence),
            notes=notes,
        )


FieldSet = Dict[str, FieldValue]


def mean_confidence(fields: Mapping[str, FieldValue]) -> float:
    """Average confidence over a field set, 0.0 when empty."""
    if not fields:
        return 0.0
    return float(np.mean([value.confidence for value in fields.values()]))


@dataclass(frozen=True)
class FrameObservation:
    """Extraction output of one processed frame.

    Attributes:
        fields: Fields extracted from the frame (after QR reconciliation).
        qr_field: Serial read from the QR payload, if any.
        mean_confidence: Mean confidence of ``fields``.
    """

    fields: Mapping[str, FieldValue]
    qr_field: Optional[FieldValue] = None
    mean_confidence: float = 0.0

    @classmethod
    def from_fields(
        cls,
        fields: Mapping[str, FieldValue],
        qr_field: Optional[FieldValue] = None,
    ) -> "FrameObservation":
        return cls(
            fields=dict(fields),
            qr_field=qr_field,
            mean_confidence=mean_confidence(fields),
        )

    def is_empty(self) -> bool:
        return not self.fields


@dataclass(frozen=True)
class ConsensusResult:
    """Consensus over the rolling window of recent frames.

    Attributes:
        fields: Merged and boosted fields.
        confidence: Mean confidence of ``fields``.
        frame_count: Number of frames currently in the window.
        is_stable: Whether enough fields recurred to commit to the result.
        stable_fields: Keys whose chosen value crossed the repetition threshold.
        qr_field: Merged serial value, if the window contains one.
    """

    fields: Mapping[str, FieldValue]
    confidence: float
    frame_count: int
    is_stable: bool
    stable_fields: FrozenSet[str] = field(default_factory=frozenset)
    qr_field: Optional[FieldValue] = None

    @classmethod
    def empty(cls) -> "ConsensusResult":
        return cls(fields={}, confidence=0.0, frame_count=0, is_stable=False)


@dataclass(frozen=True)
class ValidationResult:
    """Validator output.

    Attributes:
        sanitized: Cleaned field set with adjusted confidences.
        warnings: Recoverable issues keyed by field.
        errors: Blocking issues keyed by field.
    """

    sanitized: Mapping[str, FieldValue]
    warnings: Mapping[str, str]
    errors: Mapping[str, str]

    def has_errors(self) -> bool:
        return bool(self.errors)


@dataclass(frozen=True)
class SerialVerification:
    """Outcome of comparing an OCR serial against a QR serial."""

    ocr_serial: str
    qr_serial: str
    agreed: bool


@dataclass(frozen=True)
class FailureReason:
    """Structured reason for a FAILURE scan status.

    Attributes:
        code: Error code (e.g., "SCAN-E001")
        constant: String constant for programmatic checking
        message: Human-readable explanation
        stage: Pipeline stage where the failure occurred
    """

    code: str
    constant: str
    message: str
    stage: str


NO_TEXT_FAILURE = FailureReason(
    code="SCAN-E001",
    constant="NO_TEXT_RECOGNIZED",
    message="Upstream pipeline did not produce any recognized text",
    stage="UPSTREAM",
)


@dataclass(frozen=True)
class ScanResult:
    """Caller-visible result of processing one frame.

    Attributes:
        status: Terminal status of the frame.
        fields: Consensus fields (empty for EMPTY/SKIPPED/FAILURE).
        qr_code: Best serial/QR value known for the session.
        confidence: Consensus confidence.
        frame_count: Frames in the consensus window.
        validation: Validator output for ``fields``.
        failure_reason: Set only for FAILURE.
    """

    status: ScanStatus
    fields: Mapping[str, FieldValue] = field(default_factory=dict)
    qr_code: Optional[str] = None
    confidence: float = 0.0
    frame_count: int = 0
    validation: Optional[ValidationResult] = None
    failure_reason: Optional[FailureReason] = None

    def is_success(self) -> bool:
        return self.status == ScanStatus.SUCCESS

    def is_partial(self) -> bool:
        return self.status == ScanStatus.PARTIAL

