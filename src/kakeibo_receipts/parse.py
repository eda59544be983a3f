"""Receipt assembly: runs every field parser and builds the form pre-fill."""

import logging
from typing import Optional, Dict, Any, List
from dataclasses import dataclass, field
from .parsers import AmountParser, StoreNameParser, DateParser, TaxParser, ItemParser, ExtractedItem
from .parsers.base import ReceiptContext
from .classify import CategoryClassifier

logger = logging.getLogger(__name__)

TAX_ITEM_NAME = '消費税（外税）'
DEFAULT_MISMATCH_TOLERANCE = 10


@dataclass
class ReceiptParseResult:
    """Everything extracted from one receipt, ready for user review."""
    store_name: Optional[str] = None
    amount: Optional[int] = None
    date: Optional[str] = None
    items: List[ExtractedItem] = field(default_factory=list)
    tax: Optional[int] = None
    suggested_category: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    confidence_scores: Dict[str, float] = field(default_factory=dict)

    @property
    def items_total(self) -> int:
        return sum(item.amount for item in self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'store_name': self.store_name,
            'amount': self.amount,
            'date': self.date,
            'items': [item.to_dict() for item in self.items],
            'tax': self.tax,
            'items_total': self.items_total,
            'suggested_category': self.suggested_category,
            'warnings': list(self.warnings),
            'confidence_scores': dict(self.confidence_scores),
        }


class JapaneseReceiptParser:
    """
    Runs the field parsers over one OCR text and assembles the result.

    The parsers are independent; the only cross-check is the item total
    against the extracted amount, which produces a warning and is never
    corrected.
    """

    def __init__(self,
                 classifier: Optional[CategoryClassifier] = None,
                 mismatch_tolerance: int = DEFAULT_MISMATCH_TOLERANCE,
                 trace_logger: Optional[logging.Logger] = None):
        """
        Args:
            classifier: Optional category suggester
            mismatch_tolerance: Largest item-total vs amount gap (yen) accepted silently
            trace_logger: Logger handed to every field parser
        """
        self.amount_parser = AmountParser(trace_logger)
        self.store_parser = StoreNameParser(trace_logger)
        self.date_parser = DateParser(trace_logger)
        self.tax_parser = TaxParser(trace_logger)
        self.item_parser = ItemParser(trace_logger)
        self.classifier = classifier
        self.mismatch_tolerance = mismatch_tolerance

    def parse_receipt(self, text: Optional[str]) -> ReceiptParseResult:
        """
        Parse a complete receipt.

        Args:
            text: Raw OCR text from receipt

        Returns:
            ReceiptParseResult; fields that were not found are None/empty
        """
        context = ReceiptContext(full_text=text)

        amount_result = self.amount_parser.parse(context)
        store_result = self.store_parser.parse(context)
        date_result = self.date_parser.parse(context)
        tax_result = self.tax_parser.parse(context)
        items_result = self.item_parser.parse(context)

        result = ReceiptParseResult(
            store_name=store_result.value if store_result else None,
            amount=amount_result.value if amount_result else None,
            date=date_result.value if date_result else None,
            items=list(items_result.value),
            tax=tax_result.value if tax_result else None,
            confidence_scores={
                'amount': amount_result.confidence if amount_result else 0.0,
                'store_name': store_result.confidence if store_result else 0.0,
                'date': date_result.confidence if date_result else 0.0,
                'tax': tax_result.confidence if tax_result else 0.0,
                'items': items_result.confidence,
            }
        )

        if result.tax and result.tax > 0:
            result.items.append(ExtractedItem(
                id=self.item_parser.id_factory(), name=TAX_ITEM_NAME, amount=result.tax
            ))
            logger.debug(f"Added external tax as item: ¥{result.tax}")

        self._check_items_total(result)

        if self.classifier:
            category, confidence = self.classifier.classify(
                result.store_name, [item.name for item in result.items], context.full_text
            )
            result.suggested_category = category
            result.confidence_scores['category'] = confidence

        logger.info(f"Parsed receipt: store={result.store_name}, amount=¥{result.amount}, "
                    f"date={result.date}, items={len(result.items)}")
        return result

    def _check_items_total(self, result: ReceiptParseResult):
        """Warn when the items do not add up to the extracted amount."""
        if result.amount is None:
            return

        items_total = result.items_total
        if abs(items_total - result.amount) > self.mismatch_tolerance:
            message = f"Item total ¥{items_total:,} does not match amount ¥{result.amount:,}"
            logger.warning(message)
            result.warnings.append(message)

    def parse_amount(self, text: Optional[str]) -> Optional[int]:
        return self.amount_parser.extract(text)

    def parse_store_name(self, text: Optional[str]) -> Optional[str]:
        return self.store_parser.extract(text)

    def parse_date(self, text: Optional[str]) -> Optional[str]:
        return self.date_parser.extract(text)

    def parse_tax(self, text: Optional[str]) -> Optional[int]:
        return self.tax_parser.extract(text)

    def parse_items(self, text: Optional[str]) -> List[ExtractedItem]:
        return self.item_parser.extract(text)


def extract_amount(text: Optional[str]) -> Optional[int]:
    """Grand total in yen, or None."""
    return AmountParser().extract(text)


def extract_store_name(text: Optional[str]) -> Optional[str]:
    """Store name guessed from the receipt header, or None."""
    return StoreNameParser().extract(text)


def extract_date(text: Optional[str]) -> Optional[str]:
    """Transaction date as YYYY-MM-DD, or None."""
    return DateParser().extract(text)


def extract_tax(text: Optional[str]) -> Optional[int]:
    """Separately stated consumption tax in yen, or None."""
    return TaxParser().extract(text)


def extract_items(text: Optional[str]) -> List[ExtractedItem]:
    """Purchased line items; empty when none were recognized."""
    return ItemParser().extract(text)
