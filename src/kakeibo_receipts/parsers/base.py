"""Base classes and shared helpers for receipt parsers."""

from abc import ABC, abstractmethod
from typing import Optional, Any, Dict, List, Iterable, Pattern
from dataclasses import dataclass, field
import logging
import re

from .tokenizer import tokenize

logger = logging.getLogger(__name__)

# Digits with optional thousands separators; never a bare comma
AMOUNT_DIGITS = r'([0-9][0-9,]*)'


@dataclass
class ParseResult:
    """Result of a parsing operation with confidence and metadata."""
    value: Any
    confidence: float
    source_text: str = ""
    metadata: Dict[str, Any] = None

    def __post_init__(self):
        if self.metadata is None:
            self.metadata = {}


@dataclass
class ReceiptContext:
    """Raw OCR text together with its tokenized lines."""
    full_text: str
    lines: List[str] = None

    def __post_init__(self):
        if self.full_text is None:
            self.full_text = ""
        if self.lines is None:
            self.lines = tokenize(self.full_text)


@dataclass(frozen=True)
class PatternRule:
    """One entry of an ordered pattern table."""
    pattern: Pattern
    priority: int
    name: str


@dataclass
class AmountCandidate:
    """An amount found by a pattern rule, with the line it came from."""
    amount: int
    priority: int
    source: str
    line: str
    metadata: Dict[str, Any] = field(default_factory=dict)


def select_best(candidates: Iterable[AmountCandidate],
                prefer_larger: bool = False) -> Optional[AmountCandidate]:
    """
    Pick the most trusted candidate.

    The lowest priority wins. Equal priorities keep the first candidate
    found, unless ``prefer_larger`` is set, in which case the larger
    amount wins (the first of equal amounts is kept).
    """
    best = None
    for candidate in candidates:
        if best is None or candidate.priority < best.priority:
            best = candidate
        elif (prefer_larger and candidate.priority == best.priority
              and candidate.amount > best.amount):
            best = candidate
    return best


def parse_yen(digits: str) -> Optional[int]:
    """Convert a matched digit run such as ``1,234`` to an integer."""
    cleaned = digits.replace(',', '').strip()
    if not cleaned.isdigit():
        return None
    return int(cleaned)


def matches_any(patterns: List[Pattern], line: str) -> bool:
    """True if any of the compiled patterns is found in the line."""
    return any(pattern.search(line) for pattern in patterns)


def compile_all(patterns: List[str], flags: int = 0) -> List[Pattern]:
    return [re.compile(p, flags) for p in patterns]


class BaseParser(ABC):
    """Base class for all receipt parsers."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    @abstractmethod
    def parse(self, context: ReceiptContext) -> Optional[ParseResult]:
        """
        Parse the specific field from receipt context.

        Args:
            context: Receipt context with text and lines

        Returns:
            ParseResult with value and confidence, or None if nothing was found
        """
        pass

    def extract(self, text: Optional[str]) -> Any:
        """Run the parser over raw text and return the bare value."""
        result = self.parse(ReceiptContext(full_text=text))
        return result.value if result else None

    def _log_result(self, result: Optional[ParseResult]):
        """Log parsing result for debugging."""
        if result:
            self.logger.debug(f"Parsed: {result.value} (confidence: {result.confidence:.2f})")
        else:
            self.logger.debug("Parsing found nothing")
