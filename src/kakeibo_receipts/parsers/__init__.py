"""Receipt parsing components - one focused parser per field."""

from .tokenizer import tokenize
from .amount_parser import AmountParser
from .store_parser import StoreNameParser
from .date_parser import DateParser
from .tax_parser import TaxParser
from .item_parser import ItemParser, ExtractedItem

__all__ = [
    'tokenize',
    'AmountParser',
    'StoreNameParser',
    'DateParser',
    'TaxParser',
    'ItemParser',
    'ExtractedItem',
]
