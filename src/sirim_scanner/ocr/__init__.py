"""Label OCR: Field Extraction & Temporal Consensus.

This module turns noisy per-frame OCR text and QR payloads from a SIRIM
certification label into a stable, confidence-ranked field set.

Core Components:
    - types: Value types (FieldValue, FrameObservation, ConsensusResult, etc.)
    - config_loader: Configuration loading with Pydantic validation
    - corrector: Glyph correction for common OCR misreads
    - extractor: Single-frame pattern-based field extraction
    - reconciler: OCR/QR serial reconciliation
    - consensus: Rolling-window consensus across frames
    - validator: Canonical format validation and warnings
    - processor: Per-frame pipeline with throttling

Example:
    >>> from sirim_scanner.ocr import LabelScanProcessor
    >>> processor = LabelScanProcessor()
    >>> result = processor.process(recognized_text, qr_payload)
    >>> if result.is_success():
    ...     print(result.fields["serial"].text)
"""

from .config_loader import (
    Config,
    ConsensusConfig,
    CorrectionConfig,
    ExtractionConfig,
    ReconciliationConfig,
    ScannerModuleConfig,
    ThrottleConfig,
    ValidationConfig,
    get_default_config,
    load_config,
)
from .consensus import ConsensusAggregator
from .corrector import CharacterCorrector, CorrectionResult
from .extractor import FieldExtractor, normalize_text
from .frame_gate import FrameGate
from .processor import LabelScanProcessor
from .reconciler import QRReconciler
from .types import (
    FIELD_KEYS,
    SERIAL_KEY,
    ConsensusResult,
    FailureReason,
    FieldNote,
    FieldSource,
    FieldValue,
    FrameObservation,
    ScanResult,
    ScanStatus,
    SerialVerification,
    ValidationResult,
)
from .validator import FieldValidator, field_label, is_valid_serial_format

__all__ = [
    # Types
    "FIELD_KEYS",
    "SERIAL_KEY",
    "FieldNote",
    "FieldSource",
    "FieldValue",
    "FrameObservation",
    "ConsensusResult",
    "ValidationResult",
    "SerialVerification",
    "FailureReason",
    "ScanResult",
    "ScanStatus",
    # Configuration
    "Config",
    "ScannerModuleConfig",
    "ExtractionConfig",
    "CorrectionConfig",
    "ReconciliationConfig",
    "ConsensusConfig",
    "ValidationConfig",
    "ThrottleConfig",
    "load_config",
    "get_default_config",
    # Pipeline
    "CharacterCorrector",
    "CorrectionResult",
    "FieldExtractor",
    "normalize_text",
    "QRReconciler",
    "ConsensusAggregator",
    "FieldValidator",
    "field_label",
    "is_valid_serial_format",
    "FrameGate",
    "LabelScanProcessor",
]
