"""Line item extraction: name/amount pairing, discounts and quantity folding."""

import re
import uuid
import logging
from typing import Callable, Dict, List, Optional, Tuple, Any
from dataclasses import dataclass, asdict
from .base import (
    AMOUNT_DIGITS, BaseParser, ParseResult, PatternRule, ReceiptContext,
    compile_all, matches_any, parse_yen,
)

logger = logging.getLogger(__name__)

MAX_ITEM_AMOUNT = 100000
MAX_BUFFERED_LINES = 3
DEFAULT_DISCOUNT_NAME = '値引き'

# Plausibility guard thresholds. A blunt heuristic against catastrophic
# misreads, not a correctness guarantee.
IMPLAUSIBLE_TOTAL = 1000000
IMPLAUSIBLE_ITEM = 50000

# Lines containing any of these are totals, payment or advertising noise.
# Keywords of 3 characters or fewer only reject an item name on exact match.
EXCLUDE_KEYWORDS = [
    '合計', '小計', '税込', '税抜', '消費税', 'total', 'subtotal',
    'お会計', 'おつり', 'お預かり', '預り', '釣銭', '釣り',
    '現金', 'クレジット', 'カード', 'payment', 'change', 'cash',
    '承認番号', '伝票番号', '担当者', 'tel', '電話', '住所',
    'レジ', '領収', '印紙', 'no.', '管理', 'お客様',
    'book-off', 'bookoff', 'ブックオフ', '駅前店',
    '割引', '値引', 'waon', 'ポイント', 'point', '残高',
    '会員様', '登録', '対象額', '獲得', '累計', '基本', 'ボーナス',
    'お買上', 'ありがとう', '買上', '商品数', '印は', '対象商品',
    '外税', '内税', 'fax', 'http', 'www', '株式会社',
    '責任者', 'レジ担当',
    'paypay', 'ペイペイ', 'line pay', 'd払い', 'au pay', '楽天pay', 'メルペイ',
    'edy', 'id', 'quicpay', 'pitapa', 'icoca',
    'ダウンロード', 'アプリ', 'キャンペーン', 'プレゼント', '公式',
]

EXCLUDE_NAME_PATTERNS = compile_all([
    r'^[0-9]+$',                        # Digits only
    r'^[*\-=]+$',                       # Symbols only
    r'^.$',                             # Single character
    r'^\d{2,4}[/\-]\d{2}[/\-]\d{2}',    # Dates
    r'^\d{3,4}-\d{3,4}-\d{3,4}',        # Phone numbers
    r'^[0-9]{6,}$',                     # Register and member IDs
    r'^[iI]+$',                         # Misread logo glyphs
])

# Narrower than rejecting any name containing 日: only a digit next to
# 年/月/日 counts, so product names such as 日本茶 survive.
DATE_FRAGMENT = re.compile(r'\d{4}年|年\d|月\d|\d日')
DIGITS_AND_SEPARATORS = re.compile(r'^[\d/\-()]+$')
CURRENCY = re.compile(r'[¥￥円]')
TIME_OF_DAY = re.compile(r'\d{1,2}:\d{2}')
NAME_CHARACTER = re.compile(r'[a-zA-Z0-9Ａ-Ｚａ-ｚ０-９ぁ-んァ-ヶｦ-ﾟー一-龠々]')

DISCOUNT_WORDING = re.compile(r'割引|引き|値引')
# Exclude keywords a discount caption may contain and still name a discount
CAPTION_KEYWORDS = ('割引', '値引', '会員様')
DISCOUNT_LABEL = re.compile(r'割引|値引')
DISCOUNT_LINE = re.compile(r'^-[¥￥]?\s*' + AMOUNT_DIGITS)
PERCENT_ONLY = re.compile(r'^\d+%$')
AMOUNT_ONLY = re.compile(r'^[¥￥]?\s*' + AMOUNT_DIGITS + r'\s*円?$')
NUMBERS_ONLY = re.compile(r'^[0-9,]+$')

FULLWIDTH_ALNUM = {
    code: code - 0xFEE0
    for start, end in (('Ａ', 'Ｚ'), ('ａ', 'ｚ'), ('０', '９'))
    for code in range(ord(start), ord(end) + 1)
}


@dataclass
class ExtractedItem:
    """A purchased line item. Discounts carry a negative amount."""
    id: str
    name: str
    amount: int
    category: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def clean_item_name(name: str) -> str:
    """Strip OCR debris around a product name."""
    name = re.sub(r'^[\-\+\*\s]+', '', name).strip()
    # Parenthetical quantity or unit-price notes
    name = re.sub(r'\([^)]*\)|（[^）]*）', '', name).strip()
    name = re.sub(r'[×xX]\s*\d+$', '', name).strip()
    # iAEON -> AEON, lDOLE -> DOLE
    name = re.sub(r'^[iIlL](?=[A-Z])', '', name).strip()
    return name


def _matches_exclude_keyword(name: str) -> bool:
    lower_name = name.lower()
    for keyword in EXCLUDE_KEYWORDS:
        if len(keyword) <= 3:
            if lower_name == keyword:
                return True
        elif keyword in lower_name:
            return True
    return False


def is_valid_item_name(name: str) -> bool:
    """Check whether a cleaned string can be a product name."""
    if matches_any(EXCLUDE_NAME_PATTERNS, name):
        return False
    if _matches_exclude_keyword(name):
        return False
    if DATE_FRAGMENT.search(name):
        return False
    if DIGITS_AND_SEPARATORS.match(name):
        return False
    if len(name) < 2:
        return False
    if CURRENCY.search(name):
        return False
    if TIME_OF_DAY.search(name):
        return False
    # Personal names are allowed; anything with a letter, digit or kana/kanji
    return bool(NAME_CHARACTER.search(name))


def normalize_product_name(name: str) -> str:
    """Grouping key text: no whitespace, half-width alphanumerics, lower case."""
    return re.sub(r'\s+', '', name).translate(FULLWIDTH_ALNUM).lower()


def fold_duplicate_items(items: List[ExtractedItem]) -> List[ExtractedItem]:
    """
    Collapse repeated items into one entry per product and unit price.

    Two items are the same product when their normalized names and
    amounts are equal. A group of N becomes ``name ×N`` with the amount
    multiplied by N. First-seen order is kept.
    """
    groups: Dict[Tuple[str, int], List[ExtractedItem]] = {}
    for item in items:
        key = (normalize_product_name(item.name), item.amount)
        groups.setdefault(key, []).append(item)

    folded = []
    for group in groups.values():
        first = group[0]
        count = len(group)
        if count > 1:
            folded.append(ExtractedItem(
                id=first.id,
                name=f"{first.name} ×{count}",
                amount=first.amount * count,
                category=first.category,
            ))
        else:
            folded.append(first)
    return folded


def apply_plausibility_guard(items: List[ExtractedItem],
                             log: Optional[logging.Logger] = None) -> List[ExtractedItem]:
    """
    Drop single items of ¥50,000 or more when the items sum past ¥1,000,000.

    This is a heuristic against OCR misreads, not a guarantee that the
    remaining items are correct.
    """
    log = log or logger
    total = sum(item.amount for item in items)
    if total <= IMPLAUSIBLE_TOTAL:
        return items

    log.warning(
        f"Item total ¥{total:,} exceeds ¥{IMPLAUSIBLE_TOTAL:,}; "
        f"dropping items of ¥{IMPLAUSIBLE_ITEM:,} or more (heuristic)"
    )
    return [item for item in items if item.amount < IMPLAUSIBLE_ITEM]


class ItemParser(BaseParser):
    """
    Segments the receipt body into purchased line items.

    Lines are scanned once. Names that wrap over several physical lines
    are held in a short buffer until a bare amount line completes them.

    Every line the ``wide_spaced`` and ``quantity`` inline rules match is
    tried against ``spaced`` first, so in practice they never win. They
    are kept to preserve the full rule order.
    """

    def __init__(self, logger: Optional[logging.Logger] = None,
                 id_factory: Optional[Callable[[], str]] = None):
        super().__init__(logger)
        self.id_factory = id_factory or (lambda: uuid.uuid4().hex)

        # Inline "name amount" layouts, most general first
        self.inline_rules = [
            PatternRule(re.compile(r'^(.+?)\s+[¥￥]?\s*' + AMOUNT_DIGITS + r'\s*円?$'), 1, 'spaced'),
            PatternRule(re.compile(r'^(.+?)\s{2,}' + AMOUNT_DIGITS + r'$'), 2, 'wide_spaced'),
            PatternRule(re.compile(r'^(.+?)\s*[*×xX]\s*\d+\s+[¥￥]?\s*' + AMOUNT_DIGITS + r'\s*円?$'),
                        3, 'quantity'),
        ]

    def parse(self, context: ReceiptContext) -> ParseResult:
        """
        Extract line items from receipt text.

        Args:
            context: Receipt context with full text and lines

        Returns:
            ParseResult whose value is the (possibly empty) item list
        """
        items = self._scan(context.lines)
        folded = fold_duplicate_items(items)
        self.logger.debug(f"Extracted {len(items)} items, {len(folded)} after folding duplicates")

        result_items = apply_plausibility_guard(folded, self.logger)
        for item in result_items:
            self.logger.debug(f"  - {item.name}: ¥{item.amount}")

        return ParseResult(
            value=result_items,
            confidence=0.6 if result_items else 0.0,
            source_text="",
            metadata={'raw_count': len(items), 'folded_count': len(folded)}
        )

    def _scan(self, lines: List[str]) -> List[ExtractedItem]:
        items = []
        buffer: List[str] = []

        for line in lines:
            # A discount caption names the "-¥N" line that follows it
            if (DISCOUNT_WORDING.search(line) and not CURRENCY.search(line)
                    and not self._contains_exclude_keyword(line, ignore=CAPTION_KEYWORDS)):
                buffer = [line]
                continue

            if self._contains_exclude_keyword(line):
                buffer = []
                continue

            # Tax-rate annotation: neither noise nor part of a name
            if PERCENT_ONLY.match(line):
                continue

            discount = DISCOUNT_LINE.match(line)
            if discount:
                label = ''.join(buffer).strip()
                name = label if DISCOUNT_LABEL.search(label) else DEFAULT_DISCOUNT_NAME
                items.append(self._new_item(name, -parse_yen(discount.group(1))))
                buffer = []
                continue

            amount_only = AMOUNT_ONLY.match(line)
            if amount_only and buffer:
                name = clean_item_name(''.join(buffer))
                amount = parse_yen(amount_only.group(1))
                if self._accept(name, amount) and not DISCOUNT_LABEL.search(name):
                    items.append(self._new_item(name, amount))
                    buffer = []
                    continue
                self.logger.debug(f"Rejected buffered name '{name}' with ¥{amount}")

            if self._match_inline(line, items):
                buffer = []
                continue

            if not amount_only and self._is_name_fragment(line):
                # A new fragment ends any pending discount caption
                buffer = [part for part in buffer if not DISCOUNT_WORDING.search(part)]
                buffer.append(line)
                if len(buffer) > MAX_BUFFERED_LINES:
                    buffer.pop(0)

        return items

    def _match_inline(self, line: str, items: List[ExtractedItem]) -> bool:
        for rule in self.inline_rules:
            match = rule.pattern.match(line)
            if not match:
                continue

            name = clean_item_name(match.group(1))
            amount = parse_yen(match.group(2))
            if self._accept(name, amount):
                items.append(self._new_item(name, amount))
                return True
            self.logger.debug(f"Rejected ({rule.name}): '{name}' ¥{amount}")
        return False

    @staticmethod
    def _accept(name: str, amount: Optional[int]) -> bool:
        return (bool(name) and is_valid_item_name(name)
                and amount is not None and 0 < amount < MAX_ITEM_AMOUNT)

    @staticmethod
    def _contains_exclude_keyword(line: str, ignore: Tuple[str, ...] = ()) -> bool:
        lower_line = line.lower()
        return any(keyword in lower_line for keyword in EXCLUDE_KEYWORDS if keyword not in ignore)

    @staticmethod
    def _is_name_fragment(line: str) -> bool:
        return not (
            matches_any(EXCLUDE_NAME_PATTERNS, line)
            or NUMBERS_ONLY.match(line)
            or DISCOUNT_LINE.match(line)
            or DISCOUNT_WORDING.search(line)
        )

    def _new_item(self, name: str, amount: int) -> ExtractedItem:
        self.logger.debug(f"Item: {name} ¥{amount}")
        return ExtractedItem(id=self.id_factory(), name=name, amount=amount)
