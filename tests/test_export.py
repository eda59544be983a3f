"""Tests for Excel export."""

from openpyxl import load_workbook
from kakeibo_receipts.export import ExcelExporter, RECEIPT_HEADERS
from kakeibo_receipts.parse import ReceiptParseResult
from kakeibo_receipts.parsers import ExtractedItem
from kakeibo_receipts.review import ReviewItem


def _rows():
    ok = ReceiptParseResult(
        store_name="ローソン",
        amount=348,
        date="2025-10-07",
        items=[
            ExtractedItem(id="1", name="牛乳", amount=198),
            ExtractedItem(id="2", name="食パン", amount=150),
        ],
        suggested_category="食費",
    )
    needs_review = ReceiptParseResult(store_name="まいばすけっと", amount=500)
    return [
        ExcelExporter.create_receipt_row(needs_review, "/data/ocr/b.txt"),
        ExcelExporter.create_receipt_row(ok, "/data/ocr/a.txt"),
    ]


class TestExcelExporter:
    """Test suite for ExcelExporter."""

    def test_create_receipt_row(self):
        """Test flattening of a parse result."""
        row = _rows()[1]

        assert row['file_name'] == "a.txt"
        assert row['items_total'] == 348
        assert row['category'] == "食費"
        assert row['items'][0] == {"id": "1", "name": "牛乳", "amount": 198, "category": None}

    def test_export_sheets(self, tmp_path):
        """Test the receipts and items sheets."""
        output = tmp_path / "out" / "receipts.xlsx"
        review_items = [
            ReviewItem(file_path="/data/ocr/b.txt", reason="missing date; no items"),
            ReviewItem(file_path="/data/ocr/c.json", reason="OCR text unavailable: timeout"),
        ]

        ExcelExporter(output).export(_rows(), review_items)

        workbook = load_workbook(output)
        assert workbook.sheetnames == ["Receipts", "Items"]

        receipts = workbook["Receipts"]
        assert [cell.value for cell in receipts[1]] == RECEIPT_HEADERS
        # OK receipts first, then review, then files that failed outright
        assert receipts["A2"].value == "a.txt"
        assert receipts["I2"].value == "OK"
        assert receipts["A3"].value == "b.txt"
        assert receipts["I3"].value == "REVIEW"
        assert receipts["J3"].value == "missing date; no items"
        assert receipts["A4"].value == "c.json"
        assert receipts["I4"].value == "REVIEW"

        items = workbook["Items"]
        assert items["B2"].value == "牛乳"
        assert items["C3"].value == 150
        assert items["A4"].value is None

    def test_export_with_summary(self, tmp_path):
        """Test the summary block above the receipt table."""
        output = tmp_path / "receipts.xlsx"

        ExcelExporter(output).export(_rows(), [], include_summary=True)

        receipts = load_workbook(output)["Receipts"]
        assert receipts["A1"].value == "RECEIPT SUMMARY"
        assert receipts["B3"].value == 2
        assert receipts["E3"].value == "¥848"

    def test_export_empty(self, tmp_path):
        """Test exporting with no receipts."""
        output = tmp_path / "receipts.xlsx"

        ExcelExporter(output).export([], [], include_summary=True)

        receipts = load_workbook(output)["Receipts"]
        assert receipts["A1"].value == "No receipts to summarize"
