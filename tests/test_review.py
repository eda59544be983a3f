"""Tests for the review queue."""

from kakeibo_receipts.parse import ReceiptParseResult
from kakeibo_receipts.parsers import ExtractedItem
from kakeibo_receipts.review import ReviewQueue


def _complete_result(**overrides):
    fields = dict(
        store_name="ローソン",
        amount=198,
        date="2025-10-07",
        items=[ExtractedItem(id="1", name="牛乳", amount=198)],
    )
    fields.update(overrides)
    return ReceiptParseResult(**fields)


class TestReviewQueue:
    """Test suite for ReviewQueue."""

    def setup_method(self):
        """Set up test fixtures."""
        self.queue = ReviewQueue(snippet_length=20)

    def test_complete_result_not_queued(self):
        """Test that a consistent receipt is not sent to review."""
        assert self.queue.add_from_result("a.txt", _complete_result(), "合計 ¥198") is False
        assert self.queue.items == []

    def test_incomplete_result_queued(self):
        """Test that missing fields are listed as review reasons."""
        result = _complete_result(amount=None, date=None, items=[])

        assert self.queue.add_from_result("/tmp/b.txt", result, "ローソン") is True

        item = self.queue.items[0]
        assert item.reason == "missing amount; missing date; no items"
        assert item.suggested_store == "ローソン"
        assert item.raw_snippet == "ローソン"

    def test_mismatch_warning_queued(self):
        """Test that an item total mismatch sends the receipt to review."""
        result = _complete_result(amount=1000, warnings=["Item total ¥198 does not match amount ¥1,000"])

        self.queue.add_from_result("c.txt", result, "")

        assert self.queue.items[0].reason == "item total mismatch"
        assert self.queue.items[0].warnings == result.warnings

    def test_snippet_is_single_line_and_truncated(self):
        """Test that long OCR text is flattened and shortened."""
        text = "セブンイレブン\n" + "おにぎり ¥130\n" * 5

        self.queue.add_from_result("d.txt", _complete_result(date=None), text)

        snippet = self.queue.items[0].raw_snippet
        assert "\n" not in snippet
        assert snippet.endswith("...")
        assert len(snippet) == 23

    def test_summary(self):
        """Test summary statistics."""
        self.queue.add_from_result("a.txt", _complete_result(amount=None), "")
        self.queue.add_from_result("b.txt", _complete_result(warnings=["mismatch"]), "")
        self.queue.add_item("c.json", "OCR text unavailable: timeout")

        summary = self.queue.get_summary()

        assert summary["total"] == 3
        assert summary["missing_data"] == 1
        assert summary["mismatches"] == 1
        assert summary["reason_breakdown"]["missing amount"] == 1

    def test_empty_summary_and_clear(self):
        """Test the summary of an empty queue and clearing."""
        assert self.queue.get_summary() == {"total": 0}

        self.queue.add_item("a.txt", "no items")
        self.queue.clear()

        assert self.queue.items == []
