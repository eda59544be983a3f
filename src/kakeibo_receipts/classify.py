"""Transaction category suggestion using keyword rules and fuzzy matching."""

import yaml
import logging
from typing import Dict, List, Optional, Tuple
from pathlib import Path
from rapidfuzz import fuzz

from .categories import DEFAULT_EXPENSE_CATEGORIES, DEFAULT_INCOME_CATEGORIES, flatten_categories

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).parent / 'rules' / 'categories.yml'


class CategoryClassifier:
    """Suggest a ledger category for a parsed receipt."""

    def __init__(self, rules_path: Optional[Path] = None):
        """
        Initialize classifier with category rules.

        Args:
            rules_path: Path to categories.yml file (defaults to the packaged rules)
        """
        self.rules_path = Path(rules_path) if rules_path else DEFAULT_RULES_PATH
        self.categories: Dict[str, Dict[str, List[str]]] = {}
        self.load_rules()

    def load_rules(self):
        """Load category rules from YAML file."""
        try:
            with open(self.rules_path, 'r', encoding='utf-8') as f:
                rules = yaml.safe_load(f) or {}
        except Exception as e:
            logger.error(f"Failed to load category rules: {e}")
            raise

        known = set(flatten_categories(DEFAULT_EXPENSE_CATEGORIES + DEFAULT_INCOME_CATEGORIES))
        self.categories = {}
        for category, rule in rules.items():
            if category not in known:
                logger.warning(f"Ignoring rules for unknown category '{category}'")
                continue
            self.categories[category] = rule or {}

        logger.info(f"Loaded {len(self.categories)} category rules")

    def classify(self, store_name: Optional[str], item_names: List[str],
                 text: str = "") -> Tuple[Optional[str], float]:
        """
        Suggest a category for a receipt.

        Args:
            store_name: Extracted store name
            item_names: Names of the extracted items
            text: Full OCR text

        Returns:
            Tuple of (category, confidence_score); category is None when
            nothing matched or the best matches are too close to call
        """
        all_text = f"{store_name or ''} {' '.join(item_names)} {text or ''}".lower()

        category_scores = {}
        for category, rules in self.categories.items():
            score = self._calculate_category_score(all_text, rules.get('any', []))
            if score > 0:
                category_scores[category] = score

        if not category_scores:
            logger.debug("No category match found")
            return None, 0.0

        best_category, best_score = max(category_scores.items(), key=lambda x: x[1])

        close_scores = [cat for cat, score in category_scores.items()
                        if abs(score - best_score) <= 1.0]
        if len(close_scores) > 1:
            logger.info(f"Category conflict detected: {close_scores}")
            return None, 0.3

        confidence = min(best_score / 10.0, 1.0)
        logger.info(f"Suggested category '{best_category}' with confidence {confidence:.2f}")
        return best_category, confidence

    def _calculate_category_score(self, text: str, keywords: List[str]) -> float:
        """Calculate score for a category based on keyword matches."""
        score = 0.0
        words = text.split()

        for keyword in keywords:
            keyword_lower = str(keyword).lower()

            # Exact match gets highest score
            if keyword_lower in text:
                score += 5.0
                continue

            # Fuzzy match for OCR-garbled words
            for word in words:
                similarity = fuzz.ratio(keyword_lower, word)
                if similarity >= 80:
                    score += similarity / 100.0 * 3.0

        return score
