"""Date parsing with phone-number rejection and calendar validation."""

import re
import logging
from typing import Optional
from datetime import date
from .base import BaseParser, ParseResult, ReceiptContext, compile_all, matches_any

logger = logging.getLogger(__name__)

MIN_YEAR = 2020
MAX_YEAR = 2030


class DateParser(BaseParser):
    """Specialized parser for extracting dates from Japanese receipts."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        super().__init__(logger)

        # Date patterns in priority order
        self.date_patterns = [
            (re.compile(r'(\d{4})\s*年\s*(\d{1,2})\s*月\s*(\d{1,2})\s*日?'), 'japanese_full'),
            (re.compile(r'(\d{4})[/.](\d{1,2})[/.](\d{1,2})\s*[(（][月火水木金土日][)）]'), 'with_weekday'),
            (re.compile(r'(\d{4})[/.](\d{1,2})[/.](\d{1,2})'), 'slash'),
            (re.compile(r'(?:^|\D)(\d{2})[/.](\d{1,2})[/.](\d{1,2})(?:\D|$)'), 'short_year'),
        ]

        # Phone numbers are the main source of false dates
        self.phone_patterns = compile_all([
            r'\d{2,4}[\-\s]\d{3,4}[\-\s]\d{4}',   # 03-1234-5678
            r'\d{3,4}\(\d+\)\d{3,4}',             # 03(1234)5678
        ])

    def parse(self, context: ReceiptContext) -> Optional[ParseResult]:
        """
        Extract the first valid date in document order.

        Args:
            context: Receipt context with full text and lines

        Returns:
            ParseResult with ISO date string and confidence
        """
        for line in context.lines:
            if matches_any(self.phone_patterns, line):
                self.logger.debug(f"Skipping phone-number line: {line}")
                continue

            for pattern, pattern_type in self.date_patterns:
                match = pattern.search(line)
                if not match:
                    continue

                date_str = self._to_iso_date(*match.groups())
                if date_str:
                    result = ParseResult(
                        value=date_str,
                        confidence=0.9 if pattern_type != 'short_year' else 0.7,
                        source_text=line,
                        metadata={'pattern_type': pattern_type, 'original_match': match.group()}
                    )
                    self._log_result(result)
                    return result

        self.logger.debug("No valid date found in text")
        return None

    @staticmethod
    def _to_iso_date(year: str, month: str, day: str) -> Optional[str]:
        """Validate the parts and format them as YYYY-MM-DD."""
        year_int, month_int, day_int = int(year), int(month), int(day)

        # Two-digit years
        if year_int < 100:
            year_int += 2000

        if not (MIN_YEAR <= year_int <= MAX_YEAR):
            return None
        if not (1 <= month_int <= 12 and 1 <= day_int <= 31):
            return None

        try:
            parsed = date(year_int, month_int, day_int)
        except ValueError:
            # e.g. 31st of a 30-day month
            return None

        return parsed.isoformat()
