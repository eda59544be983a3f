"""Separately stated (external) consumption tax extraction."""

import re
import logging
from typing import Optional, List
from .base import AMOUNT_DIGITS, BaseParser, ParseResult, ReceiptContext, parse_yen

logger = logging.getLogger(__name__)

LOOKAHEAD_LINES = 15

# Japan's 8% and 10% rates are easily read as yen amounts
TAX_RATE_VALUES = (8, 10)


class TaxParser(BaseParser):
    """Finds the 外税 amount printed on a receipt."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        super().__init__(logger)

        self.same_line_patterns = [
            re.compile(r'(?:外税|消費税|tax)\s*[:：]?\s*[¥￥]?\s*' + AMOUNT_DIGITS, re.IGNORECASE),
            re.compile(r'^[¥￥]\s*' + AMOUNT_DIGITS + r'\s*(?:外税|消費税|tax)', re.IGNORECASE),
        ]

        self.label_pattern = re.compile(r'^(?:外税|消費税|tax)\s*(?:8%|10%)?$', re.IGNORECASE)
        self.noise_pattern = re.compile(r'waon|支払|お釣り|おつり|合計|小計|商品数|印は|対象商品', re.IGNORECASE)
        self.amount_pattern = re.compile(r'^[¥￥]?\s*' + AMOUNT_DIGITS + r'\s*円?$')

    def parse(self, context: ReceiptContext) -> Optional[ParseResult]:
        """
        Extract the external tax amount.

        Args:
            context: Receipt context with full text and lines

        Returns:
            ParseResult with the tax in JPY, or None
        """
        result = self._find_same_line_tax(context.lines) or self._find_next_line_tax(context.lines)
        self._log_result(result)
        return result

    def _find_same_line_tax(self, lines: List[str]) -> Optional[ParseResult]:
        for line in lines:
            for pattern in self.same_line_patterns:
                match = pattern.search(line)
                if not match:
                    continue

                amount = parse_yen(match.group(1))
                if amount is not None and 0 < amount < 10000 and amount not in TAX_RATE_VALUES:
                    return ParseResult(
                        value=amount,
                        confidence=0.9,
                        source_text=line,
                        metadata={'type': 'same_line'}
                    )
        return None

    def _find_next_line_tax(self, lines: List[str]) -> Optional[ParseResult]:
        for i, line in enumerate(lines):
            if not self.label_pattern.match(line) or '対象' in line:
                continue

            self.logger.debug(f"Tax label found: '{line}' at line {i}")
            for j in range(i + 1, min(i + 1 + LOOKAHEAD_LINES, len(lines))):
                next_line = lines[j]
                if self.noise_pattern.search(next_line):
                    continue

                match = self.amount_pattern.match(next_line)
                if not match:
                    continue

                amount = parse_yen(match.group(1))
                if amount is not None and 10 <= amount < 3000 and amount not in TAX_RATE_VALUES:
                    return ParseResult(
                        value=amount,
                        confidence=0.7,
                        source_text=f"{line} -> {next_line}",
                        metadata={'type': 'next_line', 'distance': j - i}
                    )
        return None
