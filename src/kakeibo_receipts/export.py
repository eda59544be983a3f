"""Excel export of parsed receipts, their items and review status."""

import logging
from typing import List, Dict, Any
from pathlib import Path
import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment
from openpyxl.utils import get_column_letter

from .parse import ReceiptParseResult
from .review import ReviewItem

logger = logging.getLogger(__name__)

RECEIPT_HEADERS = ["File Name", "Date", "Store", "Amount", "Tax", "Items", "Items Total",
                   "Category", "Review Status", "Review Reason"]
ITEM_HEADERS = ["File Name", "Item", "Amount", "Category"]


class ExcelExporter:
    """Export parsed receipts and review data to Excel."""

    def __init__(self, output_path: Path):
        """
        Args:
            output_path: Path for the output Excel file
        """
        self.output_path = Path(output_path)
        self.workbook = Workbook()

    def export(self,
               rows: List[Dict[str, Any]],
               review_items: List[ReviewItem],
               include_summary: bool = False):
        """
        Write a "Receipts" sheet and an "Items" sheet.

        Args:
            rows: Receipt rows built with create_receipt_row
            review_items: Receipts that need review
            include_summary: Add totals above the receipt table
        """
        try:
            if "Sheet" in self.workbook.sheetnames:
                self.workbook.remove(self.workbook["Sheet"])

            self._create_receipts_sheet(rows, review_items, include_summary)
            self._create_items_sheet(rows)

            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            self.workbook.save(str(self.output_path))
            logger.info(f"Excel file exported to: {self.output_path}")

        except Exception as e:
            logger.error(f"Failed to export Excel file: {e}")
            raise

    def _write_headers(self, ws, headers: List[str], row: int):
        for col, header in enumerate(headers, 1):
            cell = ws.cell(row=row, column=col, value=header)
            cell.font = Font(bold=True)
            cell.fill = PatternFill(start_color="E6E6E6", end_color="E6E6E6", fill_type="solid")
            cell.alignment = Alignment(horizontal="center")

    def _create_receipts_sheet(self, rows: List[Dict[str, Any]], review_items: List[ReviewItem],
                               include_summary: bool):
        ws = self.workbook.create_sheet("Receipts")
        current_row = 1

        if include_summary:
            current_row = self._add_summary_section(ws, rows, current_row) + 2

        review_lookup = {Path(item.file_path).name: item for item in review_items}

        self._write_headers(ws, RECEIPT_HEADERS, current_row)
        current_row += 1

        # OK receipts first, receipts needing review at the end
        ordered = sorted(rows, key=lambda r: r['file_name'] in review_lookup)
        for row in ordered:
            review_item = review_lookup.get(row['file_name'])
            values = [
                row['file_name'], row['date'], row['store_name'], row['amount'], row['tax'],
                len(row['items']), row['items_total'], row['category'],
                "REVIEW" if review_item else "OK",
                review_item.reason if review_item else "",
            ]
            for col, value in enumerate(values, 1):
                ws.cell(row=current_row, column=col, value=value)
            current_row += 1

        # Files that failed before a result existed
        exported = {row['file_name'] for row in rows}
        for item in review_items:
            file_name = Path(item.file_path).name
            if file_name in exported:
                continue
            ws.cell(row=current_row, column=1, value=file_name)
            ws.cell(row=current_row, column=9, value="REVIEW")
            ws.cell(row=current_row, column=10, value=item.reason)
            current_row += 1

        for i, width in enumerate([25, 12, 25, 12, 8, 8, 12, 20, 12, 40], 1):
            ws.column_dimensions[get_column_letter(i)].width = width

        logger.info(f"Created receipts sheet with {len(rows)} receipts and {len(review_items)} review items")

    def _create_items_sheet(self, rows: List[Dict[str, Any]]):
        ws = self.workbook.create_sheet("Items")
        self._write_headers(ws, ITEM_HEADERS, 1)

        current_row = 2
        for row in rows:
            for item in row['items']:
                ws.cell(row=current_row, column=1, value=row['file_name'])
                ws.cell(row=current_row, column=2, value=item['name'])
                ws.cell(row=current_row, column=3, value=item['amount'])
                ws.cell(row=current_row, column=4, value=item['category'] or "")
                current_row += 1

        for i, width in enumerate([25, 40, 12, 20], 1):
            ws.column_dimensions[get_column_letter(i)].width = width

    def _add_summary_section(self, ws, rows: List[Dict[str, Any]], start_row: int) -> int:
        """Add summary statistics to the top of the receipts sheet."""
        amounts = [row for row in rows if row['amount'] is not None]
        if not amounts:
            ws.cell(row=start_row, column=1, value="No receipts to summarize")
            return start_row + 1

        df = pd.DataFrame(amounts)

        ws.cell(row=start_row, column=1, value="RECEIPT SUMMARY").font = Font(bold=True, size=14)
        current_row = start_row + 2

        ws.cell(row=current_row, column=1, value="Receipts:").font = Font(bold=True)
        ws.cell(row=current_row, column=2, value=len(df))
        ws.cell(row=current_row, column=4, value="Total Amount:").font = Font(bold=True)
        ws.cell(row=current_row, column=5, value=f"¥{int(df['amount'].sum()):,}")
        ws.cell(row=current_row, column=7, value="Average Amount:").font = Font(bold=True)
        ws.cell(row=current_row, column=8, value=f"¥{df['amount'].mean():,.0f}")
        current_row += 2

        categorized = df.dropna(subset=['category'])
        if not categorized.empty:
            ws.cell(row=current_row, column=1, value="Category Breakdown:").font = Font(bold=True)
            current_row += 1
            by_category = categorized.groupby('category')['amount'].agg(['count', 'sum'])
            for category, data in by_category.sort_values('sum', ascending=False).iterrows():
                ws.cell(row=current_row, column=1, value=category)
                ws.cell(row=current_row, column=2, value=int(data['count']))
                ws.cell(row=current_row, column=3, value=f"¥{int(data['sum']):,}")
                current_row += 1

        return current_row

    @staticmethod
    def create_receipt_row(result: ReceiptParseResult, file_path: str = "") -> Dict[str, Any]:
        """
        Flatten a parse result into an export row.

        Args:
            result: Assembled receipt result
            file_path: Source file path (for the file name column)

        Returns:
            Row dictionary
        """
        return {
            'file_name': Path(file_path).name if file_path else '',
            'date': result.date,
            'store_name': result.store_name,
            'amount': result.amount,
            'tax': result.tax,
            'items': [item.to_dict() for item in result.items],
            'items_total': result.items_total,
            'category': result.suggested_category,
        }
