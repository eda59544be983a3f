"""Store name extraction from the header of a receipt."""

import re
import logging
from typing import Optional, List
from .base import BaseParser, ParseResult, ReceiptContext, compile_all, matches_any

logger = logging.getLogger(__name__)

HEADER_LINES = 10
MAX_DIGIT_RATIO = 0.3


class StoreNameParser(BaseParser):
    """Guesses the store name from the first lines of a receipt."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        super().__init__(logger)

        # Header lines that are never the store name
        self.exclude_patterns = compile_all([
            r'^[\W_]+$',                       # Symbols only
            r'^[/\\EON]+$',                    # Logo fragments read as letters
            r'tel|fax|http|www',               # Contact info, URLs
            r'株式会社|登録番号|レジ',          # Corporate and register info
            r'^\d+$',                          # Digits only
            r'ありがとう|welcome',              # Greetings
            r'\d{4}[/\-]\d{2}[/\-]\d{2}',      # Dates
            r'\d{1,2}:\d{2}',                  # Times
        ], re.IGNORECASE)

    def parse(self, context: ReceiptContext) -> Optional[ParseResult]:
        """
        Extract store name from receipt text.

        A line ending in 店 wins; otherwise the first line that is not
        mostly digits; otherwise the first line that survived filtering.

        Args:
            context: Receipt context with full text and lines

        Returns:
            ParseResult with the store name and confidence
        """
        candidates = self._candidate_lines(context.lines[:HEADER_LINES])
        if not candidates:
            self.logger.debug("No store name found")
            return None

        for line_idx, line in enumerate(candidates):
            if line.endswith('店'):
                return self._result(line, 0.9, 'store_suffix', line_idx)

        for line_idx, line in enumerate(candidates):
            if self._digit_ratio(line) < MAX_DIGIT_RATIO:
                return self._result(line, 0.7, 'low_digit_ratio', line_idx)

        return self._result(candidates[0], 0.3, 'fallback', 0)

    def _candidate_lines(self, lines: List[str]) -> List[str]:
        """Header lines that survive the exclusion filter."""
        return [
            line for line in lines
            if len(line) >= 2 and not matches_any(self.exclude_patterns, line)
        ]

    @staticmethod
    def _digit_ratio(line: str) -> float:
        digits = sum(1 for char in line if char.isdigit())
        return digits / len(line)

    def _result(self, name: str, confidence: float, kind: str, line_idx: int) -> ParseResult:
        result = ParseResult(
            value=name,
            confidence=confidence,
            source_text=name,
            metadata={'type': kind, 'candidate_index': line_idx}
        )
        self._log_result(result)
        return result
