"""Per-frame label scanning pipeline.

This module orchestrates one scanning session, frame by frame:
    0. ADMISSION: throttle + single-flight gate (dropped frames are SKIPPED)
    1. EXTRACTION: pattern-based fields from the recognized text
    2. RECONCILIATION: fold the QR serial into the OCR serial
    3. CONSENSUS: rolling-window vote across recent frames
    4. VALIDATION: canonical format checks, warnings and errors

Example:
    >>> processor = LabelScanProcessor()
    >>> result = processor.process("SIRIM Serial No: T123456789", qr_payload=None)
    >>> result.status
    <ScanStatus.PARTIAL: 'partial'>
"""

import logging
from pathlib import Path
from typing import Optional

from .config_loader import Config, get_default_config, load_config
from .consensus import ConsensusAggregator
from .extractor import FieldExtractor
from .frame_gate import FrameGate
from .reconciler import QRReconciler
from .types import (
    NO_TEXT_FAILURE,
    FrameObservation,
    ScanResult,
    ScanStatus,
)
from .validator import FieldValidator

logger = logging.getLogger(__name__)


class LabelScanProcessor:
    """Runs the extraction and consensus pipeline for one scanning session.

    Each processor owns its consensus window; concurrent sessions need one
    processor each.

    Args:
        config_path: Optional path to config YAML. Ignored when ``config`` is given.
        config: Optional ready configuration object.
        gate: Optional frame gate (e.g. with an injected clock).

    Attributes:
        config: Full configuration object
        extractor: Single-frame field extractor
        reconciler: OCR/QR serial reconciler
        aggregator: Consensus aggregator for this session
        validator: Field validator
        gate: Frame admission gate
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        config: Optional[Config] = None,
        gate: Optional[FrameGate] = None,
    ):
        if config is not None:
            self.config: Config = config
        elif config_path is not None:
            self.config = load_config(config_path)
        else:
            self.config = get_default_config()

        scanner = self.config.scanner
        self.extractor = FieldExtractor(self.config)
        self.reconciler = QRReconciler(self.config)
        self.aggregator = ConsensusAggregator(scanner.consensus)
        self.validator = FieldValidator(scanner.validation)
        self.gate = gate if gate is not None else FrameGate(scanner.throttle)

        logger.info(
            f"LabelScanProcessor initialized: window={self.aggregator.window_size}, "
            f"frame_interval={scanner.throttle.frame_interval_ms}ms"
        )

    def reset(self) -> None:
        """Start a new scanning session."""
        self.aggregator.reset()

    def process(
        self, recognized_text: Optional[str], qr_payload: Optional[str] = None
    ) -> ScanResult:
        """Process one frame's recognized text and optional QR payload.

        Args:
            recognized_text: Text recognized by the upstream pipeline, or None
                when the upstream stage failed to produce any.
            qr_payload: Raw QR payload decoded from the same frame.

        Returns:
            ScanResult with the frame's terminal status.
        """
        if not self.gate.try_acquire():
            return ScanResult(status=ScanStatus.SKIPPED)

        try:
            return self._process_admitted(recognized_text, qr_payload)
        finally:
            self.gate.release()

    def _process_admitted(
        self, recognized_text: Optional[str], qr_payload: Optional[str]
    ) -> ScanResult:
        if recognized_text is None:
            logger.debug("Upstream failure: no recognized text")
            return ScanResult(status=ScanStatus.FAILURE, failure_reason=NO_TEXT_FAILURE)

        # Stage 1 + 2: single-frame extraction and QR reconciliation
        fields = self.extractor.extract(recognized_text)
        qr_field = self.reconciler.reconcile(fields, qr_payload)

        if not fields:
            self.aggregator.reset()
            return ScanResult(status=ScanStatus.EMPTY, qr_code=qr_payload)

        # Stage 3: consensus
        observation = FrameObservation.from_fields(fields, qr_field)
        consensus = self.aggregator.push(observation)

        # Stage 4: validation
        validation = self.validator.validate(consensus.fields)

        if consensus.qr_field is not None:
            qr_code = consensus.qr_field.text
        elif qr_field is not None:
            qr_code = qr_field.text
        else:
            qr_code = qr_payload

        status = ScanStatus.SUCCESS if consensus.is_stable else ScanStatus.PARTIAL
        if consensus.is_stable:
            logger.info(
                f"Stable consensus after {consensus.frame_count} frame(s) "
                f"(confidence={consensus.confidence:.2f})"
            )

        return ScanResult(
            status=status,
            fields=consensus.fields,
            qr_code=qr_code,
            confidence=consensus.confidence,
            frame_count=consensus.frame_count,
            validation=validation,
        )
