"""
Unit tests for classification results and label rendering.
"""

from livescan.core.result import (
    CLASSIFYING,
    NOTHING_RECOGNIZED,
    Classification,
    ClassificationResult,
    format_classifications,
)


class TestFormatClassifications:
    """Tests for the classification label text."""

    def test_nothing_recognized(self):
        assert format_classifications([]) == "Nothing recognized."
        assert NOTHING_RECOGNIZED == "Nothing recognized."

    def test_classifying_placeholder(self):
        assert CLASSIFYING == "Classifying..."

    def test_top_two_only(self):
        classifications = [
            Classification("golden retriever", 0.9123),
            Classification("labrador retriever", 0.0511),
            Classification("tennis ball", 0.02),
        ]

        text = format_classifications(classifications)

        assert text == (
            "Classification:\n"
            "(0.91): golden retriever\n"
            "(0.05): labrador retriever"
        )

    def test_single_classification(self):
        text = format_classifications([Classification("pizza", 1.0)])
        assert text == "Classification:\n(1.00): pizza"

    def test_custom_limit(self):
        classifications = [Classification(f"label{i}", 0.1) for i in range(5)]
        text = format_classifications(classifications, limit=4)
        assert text.count("\n") == 4


class TestClassificationResult:
    """Tests for ClassificationResult."""

    def test_empty_result(self):
        result = ClassificationResult()

        assert result.is_empty
        assert result.top is None
        assert result.label_text() == NOTHING_RECOGNIZED

    def test_top(self):
        result = ClassificationResult([Classification("cat", 0.7), Classification("dog", 0.2)])
        assert result.top == Classification("cat", 0.7)

    def test_to_dict(self):
        result = ClassificationResult(
            [Classification("cat", 0.71234), Classification("dog", 0.2)],
            processing_time_ms=12.3456,
            source="static",
        )

        data = result.to_dict()

        assert data["classifications"][0] == {"identifier": "cat", "confidence": 0.7123}
        assert data["label"] == "Classification:\n(0.71): cat\n(0.20): dog"
        assert data["processing_time_ms"] == 12.35
        assert data["source"] == "static"
