"""Glyph correction for common OCR misreads.

Label OCR regularly confuses letters with the digits they resemble. The
corrector replaces each confusable glyph with its digit counterpart:

    O/o/D/d -> 0    I/i/l -> 1    Z/z -> 2    S/s -> 5    G/g -> 6    B/b -> 8

No replacement digit is itself a key of the rule table, so correcting an
already-corrected value changes nothing.

Example:
    >>> corrector = CharacterCorrector(CorrectionConfig())
    >>> result = corrector.correct("T12345678O", uppercase=True)
    >>> result.corrected_text, result.correction_applied
    ('T123456780', True)
"""

from dataclasses import dataclass
from typing import Tuple

from .config_loader import CorrectionConfig

Correction = Tuple[int, str, str]  # (position, glyph, digit)


@dataclass(frozen=True)
class CorrectionResult:
    """Outcome of correcting one captured value.

    Attributes:
        original_text: Value as captured.
        corrected_text: Value after substitution (and case folding).
        corrections: Substitutions made, in text order.
    """

    original_text: str
    corrected_text: str
    corrections: Tuple[Correction, ...] = ()

    @property
    def correction_applied(self) -> bool:
        return bool(self.corrections)


class CharacterCorrector:
    """Replaces visually confusable glyphs with digits.

    Args:
        config: Correction configuration with the glyph mapping.
    """

    def __init__(self, config: CorrectionConfig):
        self.config = config
        self.rules = {glyph: digit for glyph, digit in config.rules.items() if glyph != digit}
        self._table = str.maketrans(self.rules)

    def correct(
        self, text: str, uppercase: bool = False, enabled: bool = True
    ) -> CorrectionResult:
        """Substitute confusable glyphs in ``text``.

        Args:
            text: Raw value captured by a pattern.
            uppercase: Upper-case the result after substitution.
            enabled: When False only the case adjustment is applied.
        """
        if enabled and text:
            corrections = tuple(
                (pos, glyph, self.rules[glyph])
                for pos, glyph in enumerate(text)
                if glyph in self.rules
            )
            corrected = text.translate(self._table) if corrections else text
        else:
            corrections = ()
            corrected = text

        if uppercase:
            corrected = corrected.upper()

        return CorrectionResult(
            original_text=text,
            corrected_text=corrected,
            corrections=corrections,
        )
