"""Tests for the command-line interface."""

import json

from click.testing import CliRunner
from kakeibo_receipts.cli import BatchProcessor, cli
from kakeibo_receipts.parse import JapaneseReceiptParser


RECEIPT_TEXT = """まいばすけっと
2025/10/07(火) 18:42
牛乳 ¥198
食パン ¥150
合計 ¥348
"""


class TestParseCommand:
    """Tests for `receipts parse`."""

    def setup_method(self):
        """Set up test fixtures."""
        self.runner = CliRunner()

    def test_parse_text_file(self, tmp_path):
        """Test JSON output for a plain text OCR dump."""
        path = tmp_path / "receipt.txt"
        path.write_text(RECEIPT_TEXT, encoding="utf-8")

        result = self.runner.invoke(cli, ["parse", str(path), "--no-classify"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["store_name"] == "まいばすけっと"
        assert data["amount"] == 348
        assert data["date"] == "2025-10-07"
        assert data["suggested_category"] is None
        assert [item["name"] for item in data["items"]] == ["牛乳", "食パン"]

    def test_parse_with_classification(self, tmp_path):
        """Test that the packaged rules suggest a category."""
        path = tmp_path / "receipt.txt"
        path.write_text(RECEIPT_TEXT, encoding="utf-8")

        result = self.runner.invoke(cli, ["parse", str(path), "--pretty"])

        assert result.exit_code == 0
        assert json.loads(result.output)["suggested_category"] == "食費"

    def test_parse_missing_rules_file(self, tmp_path):
        """Test that an unreadable rules file exits non-zero without a traceback."""
        path = tmp_path / "receipt.txt"
        path.write_text(RECEIPT_TEXT, encoding="utf-8")

        result = self.runner.invoke(cli, ["parse", str(path), "--rules", str(tmp_path / "missing.yml")])

        assert result.exit_code == 1
        assert "cannot load category rules" in result.output
        assert not isinstance(result.exception, FileNotFoundError)

    def test_parse_failed_ocr_response(self, tmp_path):
        """Test that an OCR error exits non-zero with a manual-entry hint."""
        path = tmp_path / "receipt.json"
        path.write_text(json.dumps({
            "IsErroredOnProcessing": True,
            "ErrorMessage": "Timed out waiting for results",
        }), encoding="utf-8")

        result = self.runner.invoke(cli, ["parse", str(path)])

        assert result.exit_code == 1
        assert "enter the receipt manually" in result.output


class TestBatchCommand:
    """Tests for `receipts batch` and BatchProcessor."""

    def test_batch_writes_workbook(self, tmp_path):
        """Test a batch run over text and JSON OCR results."""
        input_dir = tmp_path / "ocr"
        input_dir.mkdir()
        (input_dir / "a.txt").write_text(RECEIPT_TEXT, encoding="utf-8")
        (input_dir / "b.json").write_text(json.dumps({"IsErroredOnProcessing": True}), encoding="utf-8")
        output_dir = tmp_path / "out"

        result = CliRunner().invoke(cli, ["batch", "--in", str(input_dir), "--out", str(output_dir),
                                          "--max-workers", "2", "--summary"])

        assert result.exit_code == 0
        assert (output_dir / "receipts.xlsx").exists()
        assert "Successfully parsed: 1" in result.output
        assert "Failed: 1" in result.output

    def test_batch_processor_queues_failures(self, tmp_path):
        """Test that unreadable files go to the review queue."""
        (tmp_path / "a.txt").write_text(RECEIPT_TEXT, encoding="utf-8")
        (tmp_path / "nested").mkdir()
        (tmp_path / "nested" / "b.json").write_text("{broken", encoding="utf-8")
        processor = BatchProcessor(JapaneseReceiptParser(), max_workers=1)

        rows = processor.process_batch(tmp_path)

        assert [row["file_name"] for row in rows] == ["a.txt"]
        assert processor.stats == {'total_files': 2, 'processed': 1, 'failed': 1}
        assert [item.file_path.endswith("b.json") for item in processor.review_queue.items] == [True]

    def test_batch_processor_empty_directory(self, tmp_path):
        """Test a directory without OCR files."""
        processor = BatchProcessor(JapaneseReceiptParser())

        assert processor.process_batch(tmp_path) == []
        assert processor.stats['total_files'] == 0
