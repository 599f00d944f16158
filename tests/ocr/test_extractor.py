"""Unit tests for single-frame field extraction."""

import pytest

from sirim_scanner.ocr.config_loader import Config
from sirim_scanner.ocr.extractor import FieldExtractor, enforce_length, normalize_text
from sirim_scanner.ocr.types import FieldNote, FieldSource


@pytest.fixture
def extractor():
    """Provide FieldExtractor with default configuration."""
    return FieldExtractor(Config())


class TestNormalizeText:
    """Test text normalization."""

    def test_collapses_whitespace(self):
        """Test newlines and runs of spaces become single spaces."""
        assert normalize_text("  Model:\n\n AB-12 \t Size: 4L ") == "Model: AB-12 Size: 4L"

    def test_full_width_colon(self):
        """Test the full-width colon is converted."""
        assert normalize_text("Model：AB-12") == "Model:AB-12"


class TestEnforceLength:
    """Test per-field length limits."""

    def test_within_limit(self):
        """Test short values are untouched."""
        assert enforce_length("batchNo", "AB-1") == ("AB-1", False)

    def test_batch_limit(self):
        """Test batch numbers are cut at 200 characters."""
        value, trimmed = enforce_length("batchNo", "1" * 201)
        assert len(value) == 200
        assert trimmed

    def test_unknown_field_default_limit(self):
        """Test unknown fields use the default limit."""
        value, trimmed = enforce_length("other", "x" * 600)
        assert len(value) == 512
        assert trimmed


class TestBlankInput:
    """Test empty and whitespace-only input."""

    @pytest.mark.parametrize("text", ["", " ", "\n\t  \n"])
    def test_returns_empty_field_set(self, extractor, text):
        """Test blank input yields no fields."""
        assert extractor.extract(text) == {}

    def test_unrelated_text(self, extractor):
        """Test text with no recognisable fields."""
        assert extractor.extract("hello world") == {}


class TestSerialExtraction:
    """Test serial tiers and their confidences."""

    def test_legacy_serial(self, extractor):
        """Test a TEA serial behind a label."""
        fields = extractor.extract("SIRIM Serial No: TEA1234567")

        serial = fields["serial"]
        assert serial.text == "TEA1234567"
        assert serial.confidence == pytest.approx(0.78)
        assert serial.confidence > 0.75
        assert serial.source == FieldSource.OCR
        assert FieldNote.PATTERN_RELAXED in serial.notes
        assert list(fields) == ["serial"]

    def test_exact_serial(self, extractor):
        """Test T + 9 digits."""
        serial = extractor.extract("Serial: T123456789")["serial"]

        assert serial.text == "T123456789"
        assert serial.confidence == pytest.approx(0.90)
        assert serial.notes == frozenset()

    @pytest.mark.parametrize("text", ["T-123456789", "T 123456789"])
    def test_relaxed_serial(self, extractor, text):
        """Test a separator between T and the digits."""
        serial = extractor.extract(text)["serial"]

        assert serial.text == "T123456789"
        assert serial.confidence == pytest.approx(0.85)
        assert FieldNote.PATTERN_RELAXED in serial.notes

    def test_exact_preferred_over_legacy(self, extractor):
        """Test the exact tier wins even when the legacy serial comes first."""
        serial = extractor.extract("TEA1234567 and T987654321")["serial"]

        assert serial.text == "T987654321"
        assert serial.confidence == pytest.approx(0.90)

    def test_lowercase_prefix(self, extractor):
        """Test the prefix is upper-cased."""
        assert extractor.extract("t123456789")["serial"].text == "T123456789"

    @pytest.mark.parametrize("text", ["XT123456789", "T1234567890", "T12345678", "TEA123456"])
    def test_rejects_adjacent_or_wrong_length(self, extractor, text):
        """Test serials glued to other characters or with wrong digit count."""
        assert "serial" not in extractor.extract(text)


class TestSecondaryFields:
    """Test label-anchored and relaxed secondary fields."""

    def test_batch_with_label(self, extractor):
        """Test a labelled batch number."""
        batch = extractor.extract("Batch No: AB-1234")["batchNo"]

        assert batch.text == "AB-1234"
        assert batch.confidence == pytest.approx(0.75)
        assert batch.notes == frozenset()

    def test_batch_number_label(self, extractor):
        """Test the spelled-out 'Batch Number' label."""
        assert extractor.extract("Batch Number: XZ-778")["batchNo"].text == "XZ-778"

    def test_bare_batch(self, extractor):
        """Test the relaxed batch fallback."""
        batch = extractor.extract("Lot XY-98765")["batchNo"]

        assert batch.text == "XY-98765"
        assert batch.confidence == pytest.approx(0.65)
        assert FieldNote.PATTERN_RELAXED in batch.notes

    def test_brand_and_model_do_not_bleed(self, extractor):
        """Test captures stop at the next label."""
        fields = extractor.extract("Brand/Trademark: ACME Model: X-100")

        assert fields["brandTrademark"].text == "ACME"
        assert fields["brandTrademark"].confidence == pytest.approx(0.75)
        assert fields["model"].text == "X-100"

    def test_relaxed_brand(self, extractor):
        """Test a brand without the full label."""
        brand = extractor.extract("Brand: ACME & SONS")["brandTrademark"]

        assert brand.text == "ACME & SONS"
        assert brand.confidence == pytest.approx(0.65)
        assert FieldNote.PATTERN_RELAXED in brand.notes

    def test_model_and_type_on_separate_lines(self, extractor):
        """Test multi-line labels."""
        fields = extractor.extract("Model: AB-12\nType: Portable")

        assert fields["model"].text == "AB-12"
        assert fields["type"].text == "Portable"

    def test_full_width_colon_label(self, extractor):
        """Test labels written with a full-width colon."""
        assert extractor.extract("Model： AB-12")["model"].text == "AB-12"

    def test_sae_rating(self, extractor):
        """Test SAE oil grade fallback."""
        rating = extractor.extract("Engine oil sae 10w-40")["rating"]

        assert rating.text == "SAE 10W-40"
        assert rating.confidence == pytest.approx(0.65)
        assert FieldNote.PATTERN_RELAXED in rating.notes

    def test_api_rating(self, extractor):
        """Test API service class fallback."""
        rating = extractor.extract("api sn")["rating"]

        assert rating.text == "API SN"
        assert rating.confidence == pytest.approx(0.60)

    def test_labelled_rating_preferred(self, extractor):
        """Test the labelled rating wins over the SAE fallback."""
        rating = extractor.extract("Rating: 230V 10A SAE 10W-40")["rating"]

        assert rating.confidence == pytest.approx(0.75)
        assert rating.text.startswith("230V 10A")

    def test_size_with_label(self, extractor):
        """Test a labelled size is upper-cased."""
        size = extractor.extract("Size: 500 ml")["size"]

        assert size.text == "500 ML"
        assert size.confidence == pytest.approx(0.75)

    def test_bare_size(self, extractor):
        """Test the bare size fallback."""
        size = extractor.extract("Net 4L")["size"]

        assert size.text == "4L"
        assert size.confidence == pytest.approx(0.65)
        assert FieldNote.PATTERN_RELAXED in size.notes

    def test_label_preferred_over_earlier_bare_value(self, extractor):
        """Test first matching spec wins, not first position in text."""
        assert extractor.extract("4L Size: 1 L")["size"].text == "1 L"

    def test_full_label(self, extractor, full_label_text):
        """Test a complete label."""
        fields = extractor.extract(full_label_text)

        assert fields["serial"].text == "T123456789"
        assert fields["batchNo"].text == "AB-1234"
        assert fields["brandTrademark"].text == "ACME"
        assert fields["size"].text == "4L"
        assert set(fields) == {"serial", "batchNo", "brandTrademark", "size"}


class TestPenalties:
    """Test correction and length penalties."""

    def test_overlong_batch_trimmed(self, extractor):
        """Test a 201-character batch is cut to 200 and penalized."""
        batch = extractor.extract("Batch No: " + "1" * 201)["batchNo"]

        assert len(batch.text) == 200
        assert FieldNote.LENGTH_TRIMMED in batch.notes
        assert batch.confidence == pytest.approx(0.70)

    def test_correction_penalty_when_spec_allows(self, extractor):
        """Test corrected glyphs cost the correction penalty."""
        spec = extractor.field_specs["batchNo"][0]
        corrected = extractor._score(
            field="batchNo",
            raw="AB-12O4",
            base_confidence=spec.base_confidence,
            allow_corrections=True,
            uppercase=False,
            default_notes=frozenset(),
            cap=0.95,
        )

        assert corrected.text == "A8-1204"
        assert FieldNote.CORRECTED_CHARACTER in corrected.notes
        assert corrected.confidence == pytest.approx(0.72)

    @pytest.mark.parametrize(
        "text",
        [
            "SIRIM Serial No: TEA1234567",
            "T 123456789 Batch No: " + "9" * 400,
            "Brand: " + "A" * 2000,
            "Rating: " + "x" * 900 + " Size: 12 KG",
            "api sn sae 5w30 Net 4L Lot QQ-1234",
        ],
    )
    def test_confidence_bounds(self, extractor, text):
        """Test every emitted confidence stays within [0.10, 0.99]."""
        for value in extractor.extract(text).values():
            assert 0.10 <= value.confidence <= 0.99
