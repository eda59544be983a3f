"""Grand-total extraction using a tiered cascade of total patterns."""

import re
import logging
from typing import Optional, List
from .base import (
    AMOUNT_DIGITS, AmountCandidate, BaseParser, ParseResult, PatternRule,
    ReceiptContext, compile_all, matches_any, parse_yen, select_best,
)

logger = logging.getLogger(__name__)

MAX_AMOUNT = 1000000
LOOKAHEAD_LINES = 15


class AmountParser(BaseParser):
    """Specialized parser for extracting the total from Japanese receipts."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        super().__init__(logger)

        # Lines that carry points, balances, change or payment amounts
        self.exclude_patterns = compile_all([
            r'ポイント|point',
            r'番号|tel|fax',
            r'残高|balance',
            r'waon|ワオン',
            r'id|登録',
            r'お釣り|おつり|お預かり|預り|change',
            r'対象|累計|獲得',
            r'支払',
        ], re.IGNORECASE)

        # Same-line total patterns, most trusted first
        self.total_rules = [
            PatternRule(re.compile(r'^計\s+[¥￥]?\s*' + AMOUNT_DIGITS + r'$'), 1, '計（行全体）'),
            PatternRule(re.compile(r'^[¥￥]?\s*' + AMOUNT_DIGITS + r'\s+計$'), 1, '計（逆順）'),
            PatternRule(re.compile(r'(?:合計|お会計|(?<!sub)total)\s*[:：]?\s*[¥￥]?\s*' + AMOUNT_DIGITS,
                                   re.IGNORECASE), 2, '合計'),
        ]

        # A totals label alone on its line; the amount follows later
        self.label_pattern = re.compile(r'^(合計|小計|計|お会計|total|subtotal)$', re.IGNORECASE)
        self.lookahead_amount_pattern = re.compile(r'^[¥￥]?\s*' + AMOUNT_DIGITS + r'$')

        self.subtotal_pattern = re.compile(
            r'(?:小計|subtotal)\s*[:：]?\s*[¥￥]?\s*' + AMOUNT_DIGITS, re.IGNORECASE)
        self.yen_pattern = re.compile(r'[¥￥]\s*' + AMOUNT_DIGITS)

    def parse(self, context: ReceiptContext) -> Optional[ParseResult]:
        """
        Extract the grand total from Japanese receipt text.

        Tiers are tried in order and never mixed: total labels (same line
        or label-then-lookahead), then an explicit subtotal, then the
        largest yen amount anywhere.

        Args:
            context: Receipt context with full text and lines

        Returns:
            ParseResult with amount in JPY and confidence
        """
        lines = context.lines

        candidates = self._find_same_line_totals(lines)
        candidates.extend(self._find_label_lookahead_totals(lines))
        best = select_best(candidates)
        if best:
            confidence = 0.9 if best.priority == 1 else 0.8
            return self._to_result(best, confidence, 'total')

        subtotal = self._find_subtotal(lines)
        if subtotal:
            return self._to_result(subtotal, 0.6, 'subtotal')

        largest = self._find_largest_yen(lines)
        if largest:
            return self._to_result(largest, 0.4, 'largest')

        self.logger.debug("No amount candidates found")
        return None

    def _to_result(self, candidate: AmountCandidate, confidence: float, tier: str) -> ParseResult:
        self.logger.info(f"Amount selected ({candidate.source}): ¥{candidate.amount} from '{candidate.line}'")
        result = ParseResult(
            value=candidate.amount,
            confidence=confidence,
            source_text=candidate.line,
            metadata={
                'tier': tier,
                'priority': candidate.priority,
                'source': candidate.source,
                **candidate.metadata,
            }
        )
        self._log_result(result)
        return result

    def _is_excluded(self, line: str) -> bool:
        return matches_any(self.exclude_patterns, line)

    @staticmethod
    def _valid_amount(amount: Optional[int]) -> bool:
        return amount is not None and 0 < amount < MAX_AMOUNT

    def _find_same_line_totals(self, lines: List[str]) -> List[AmountCandidate]:
        """Collect total amounts printed on the same line as their label."""
        candidates = []
        for rule in self.total_rules:
            for line in lines:
                if self._is_excluded(line):
                    continue

                match = rule.pattern.search(line)
                if not match:
                    continue

                amount = parse_yen(match.group(1))
                self.logger.debug(f"Amount candidate ({rule.name}, priority={rule.priority}): {line} -> {amount}")
                if self._valid_amount(amount):
                    candidates.append(AmountCandidate(amount, rule.priority, rule.name, line))
        return candidates

    def _find_label_lookahead_totals(self, lines: List[str]) -> List[AmountCandidate]:
        """
        Handle a bare totals label whose amount is printed further down.

        Each label occurrence yields at most one candidate: the largest
        amount in its lookahead window. Receipts often print a discounted
        subtotal before the final total, so the larger value wins.
        """
        candidates = []
        for i, line in enumerate(lines):
            if not self.label_pattern.match(line):
                continue

            priority = 1 if line == '計' else 2
            cluster = []
            for j in range(i + 1, min(i + 1 + LOOKAHEAD_LINES, len(lines))):
                next_line = lines[j]
                if self._is_excluded(next_line):
                    continue

                match = self.lookahead_amount_pattern.match(next_line)
                if not match:
                    continue

                # Neighbouring change/point lines taint the amount too
                prev_line = lines[j - 1]
                after_line = lines[j + 1] if j + 1 < len(lines) else ''
                if self._is_excluded(prev_line) or self._is_excluded(after_line):
                    self.logger.debug(f"Skipping '{next_line}': excluded neighbour")
                    continue

                amount = parse_yen(match.group(1))
                if self._valid_amount(amount):
                    distance = j - i
                    cluster.append(AmountCandidate(
                        amount, priority, f"{line}（{distance}行後）",
                        f"{line} -> {next_line}", {'distance': distance}
                    ))

            best = select_best(cluster, prefer_larger=True)
            if best:
                self.logger.debug(f"Lookahead candidate for '{line}': ¥{best.amount}")
                candidates.append(best)
        return candidates

    def _find_subtotal(self, lines: List[str]) -> Optional[AmountCandidate]:
        for line in lines:
            if self._is_excluded(line):
                continue

            match = self.subtotal_pattern.search(line)
            if match:
                amount = parse_yen(match.group(1))
                if self._valid_amount(amount):
                    return AmountCandidate(amount, 3, '小計', line)
        return None

    def _find_largest_yen(self, lines: List[str]) -> Optional[AmountCandidate]:
        largest = None
        for line in lines:
            if self._is_excluded(line):
                continue

            for match in self.yen_pattern.finditer(line):
                amount = parse_yen(match.group(1))
                if self._valid_amount(amount) and (largest is None or amount > largest.amount):
                    largest = AmountCandidate(amount, 4, '最大値', line)
        return largest
