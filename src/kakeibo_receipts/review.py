"""Review queue for receipts whose extraction needs a human look."""

import logging
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from pathlib import Path

from .parse import ReceiptParseResult

logger = logging.getLogger(__name__)


@dataclass
class ReviewItem:
    """Represents a receipt that needs manual review."""
    file_path: str
    reason: str
    suggested_date: Optional[str] = None
    suggested_amount: Optional[int] = None
    suggested_store: Optional[str] = None
    raw_snippet: str = ""
    warnings: List[str] = field(default_factory=list)


class ReviewQueue:
    """Manages receipts that need manual review."""

    def __init__(self, snippet_length: int = 200):
        """
        Args:
            snippet_length: Characters of OCR text kept with each review item
        """
        self.items: List[ReviewItem] = []
        self.snippet_length = snippet_length

    def review_reasons(self, result: ReceiptParseResult) -> List[str]:
        """List why a parsed receipt should be reviewed (empty if it looks fine)."""
        reasons = []
        if result.amount is None:
            reasons.append("missing amount")
        if result.date is None:
            reasons.append("missing date")
        if not result.items:
            reasons.append("no items")
        if result.warnings:
            reasons.append("item total mismatch")
        return reasons

    def add_item(self,
                 file_path: str,
                 reason: str,
                 suggested_date: Optional[str] = None,
                 suggested_amount: Optional[int] = None,
                 suggested_store: Optional[str] = None,
                 raw_snippet: str = "",
                 warnings: Optional[List[str]] = None):
        """Add an item to the review queue."""
        item = ReviewItem(
            file_path=file_path,
            reason=reason,
            suggested_date=suggested_date,
            suggested_amount=suggested_amount,
            suggested_store=suggested_store,
            raw_snippet=raw_snippet,
            warnings=list(warnings or []),
        )
        self.items.append(item)
        logger.debug(f"Added to review queue: {Path(file_path).name} - {reason}")

    def add_from_result(self, file_path: str, result: ReceiptParseResult, raw_text: str) -> bool:
        """
        Queue a parsed receipt if its extraction is incomplete or inconsistent.

        Returns:
            True if the receipt was queued
        """
        reasons = self.review_reasons(result)
        if not reasons:
            return False

        reason = "; ".join(reasons)
        logger.info(f"Sending {Path(file_path).name} to review: {reason}")
        self.add_item(
            file_path=file_path,
            reason=reason,
            suggested_date=result.date,
            suggested_amount=result.amount,
            suggested_store=result.store_name,
            raw_snippet=self._snippet(raw_text),
            warnings=result.warnings,
        )
        return True

    def _snippet(self, raw_text: str) -> str:
        """Single-line excerpt of the OCR text, safe for spreadsheet cells."""
        raw_text = raw_text or ""
        snippet = ' '.join(raw_text.split())[:self.snippet_length]
        snippet = ''.join(char for char in snippet if ord(char) >= 32)
        if len(raw_text) > self.snippet_length:
            snippet += "..."
        return snippet

    def get_summary(self) -> Dict[str, Any]:
        """Get summary statistics for the review queue."""
        if not self.items:
            return {"total": 0}

        reason_counts = {}
        for item in self.items:
            for reason in item.reason.split(';'):
                reason = reason.strip()
                reason_counts[reason] = reason_counts.get(reason, 0) + 1

        return {
            "total": len(self.items),
            "missing_data": sum(1 for item in self.items if 'missing' in item.reason),
            "mismatches": sum(1 for item in self.items if 'mismatch' in item.reason),
            "reason_breakdown": reason_counts,
        }

    def clear(self):
        """Clear all items from the review queue."""
        self.items.clear()
        logger.info("Review queue cleared")
