"""Household receipts - extract transaction data from Japanese receipt OCR text."""

import logging

__version__ = "1.0.0"

from .parse import (
    JapaneseReceiptParser,
    ReceiptParseResult,
    extract_amount,
    extract_store_name,
    extract_date,
    extract_tax,
    extract_items,
)
from .parsers import ExtractedItem, tokenize
from .classify import CategoryClassifier
from .ocr import OCRError, extract_parsed_text, load_ocr_text
from .review import ReviewQueue, ReviewItem
from .export import ExcelExporter

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    'JapaneseReceiptParser',
    'ReceiptParseResult',
    'ExtractedItem',
    'tokenize',
    'extract_amount',
    'extract_store_name',
    'extract_date',
    'extract_tax',
    'extract_items',
    'CategoryClassifier',
    'OCRError',
    'extract_parsed_text',
    'load_ocr_text',
    'ReviewQueue',
    'ReviewItem',
    'ExcelExporter',
]
