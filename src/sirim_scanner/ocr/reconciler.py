"""OCR/QR serial reconciliation.

The QR code printed next to the serial encodes the same number. When both
readings are present the reconciler folds them into one value:

    - agreement (case-insensitive): confidence 0.99, VERIFIED_BY_MULTIPLE_SOURCES
    - disagreement: the QR reading replaces the OCR one at confidence 0.90,
      tagged CONFLICTING_SOURCES
    - QR only: confidence ``0.98 - correction_penalty``
"""

import logging
from typing import MutableMapping, Optional

from .config_loader import Config, get_default_config
from .corrector import CharacterCorrector
from .patterns import build_serial_specs
from .types import (
    SERIAL_KEY,
    FieldNote,
    FieldSource,
    FieldValue,
    SerialVerification,
    clamp_confidence,
)

logger = logging.getLogger(__name__)


class QRReconciler:
    """Merges a QR-decoded serial into an OCR field set.

    Args:
        config: Full configuration. If None, uses the bundled defaults.

    Attributes:
        last_verification: Comparison record of the most recent reconciliation
            against an existing OCR serial, None if none has happened yet.
    """

    def __init__(self, config: Optional[Config] = None):
        self.config: Config = config if config is not None else get_default_config()
        self.corrector = CharacterCorrector(self.config.scanner.correction)
        self.serial_specs = build_serial_specs(self.config.scanner.extraction)
        self.last_verification: Optional[SerialVerification] = None

    def find_serial(self, payload: str) -> Optional[str]:
        """Return the first serial-shaped substring of a QR payload."""
        for spec in self.serial_specs:
            match = spec.regex.search(payload)
            if match is None:
                continue
            digits = "".join(ch for ch in match.group(1) if ch.isdigit())
            if len(digits) == spec.digit_count:
                return spec.prefix + digits
        return None

    def reconcile(
        self,
        current: MutableMapping[str, FieldValue],
        qr_payload: Optional[str],
    ) -> Optional[FieldValue]:
        """Reconcile the QR serial with the OCR serial in ``current``.

        ``current[SERIAL_KEY]`` is overwritten with the result whenever a
        serial is found in the payload.

        Args:
            current: Field set of the current frame, updated in place.
            qr_payload: Raw QR payload, may be None.

        Returns:
            The reconciled serial, or None when the payload holds no serial.
        """
        if not qr_payload:
            return None

        qr_serial = self.find_serial(qr_payload)
        if qr_serial is None:
            logger.debug("QR payload holds no serial-shaped value")
            return None

        policy = self.config.scanner.reconciliation
        extraction = self.config.scanner.extraction

        correction = self.corrector.correct(qr_serial, uppercase=True, enabled=True)
        corrected = correction.corrected_text
        notes = set()
        penalty = 0.0
        if correction.correction_applied:
            notes.add(FieldNote.CORRECTED_CHARACTER)
            penalty = extraction.correction_penalty

        existing = current.get(SERIAL_KEY)
        if existing is None:
            result = FieldValue(
                text=corrected,
                confidence=clamp_confidence(
                    policy.qr_base_confidence - penalty,
                    extraction.min_confidence,
                    policy.verified_confidence,
                ),
                source=FieldSource.QR,
                notes=frozenset(notes),
            )
            logger.debug(
                f"QR-only serial {corrected[:12]} (confidence={result.confidence:.2f})"
            )
        else:
            agreed = existing.text.upper() == corrected.upper()
            notes |= existing.notes
            if agreed:
                notes.add(FieldNote.VERIFIED_BY_MULTIPLE_SOURCES)
                confidence = policy.verified_confidence
                logger.debug(f"OCR and QR agree on serial {corrected[:12]}")
            else:
                notes.add(FieldNote.CONFLICTING_SOURCES)
                confidence = policy.conflict_confidence
                logger.warning(
                    f"Serial conflict: OCR={existing.text[:12]} QR={corrected[:12]}, "
                    f"keeping QR reading"
                )
            result = FieldValue(
                text=corrected,
                confidence=confidence,
                source=FieldSource.QR,
                notes=frozenset(notes),
            )
            self.last_verification = SerialVerification(
                ocr_serial=existing.text,
                qr_serial=corrected,
                agreed=agreed,
            )

        current[SERIAL_KEY] = result
        return result
