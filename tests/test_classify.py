"""Tests for CategoryClassifier and the category tree helpers."""

import pytest
from kakeibo_receipts.classify import CategoryClassifier
from kakeibo_receipts.categories import (
    UNCATEGORIZED,
    flatten_categories,
    get_available_categories,
    get_parent_category,
    get_subcategory_name,
    is_subcategory,
)


RULES_YAML = """
食費:
  any:
    - おにぎり
    - 弁当
    - ミネラルウォーター
交通費:
  any:
    - タクシー
未知カテゴリ:
  any:
    - foo
"""


class TestCategoryClassifier:
    """Test suite for CategoryClassifier."""

    @pytest.fixture
    def classifier(self, tmp_path):
        rules_path = tmp_path / "categories.yml"
        rules_path.write_text(RULES_YAML, encoding="utf-8")
        return CategoryClassifier(rules_path)

    def test_unknown_categories_ignored(self, classifier):
        """Test that rules for categories outside the ledger are dropped."""
        assert set(classifier.categories) == {"食費", "交通費"}

    def test_exact_keyword_match(self, classifier):
        """Test a single exact keyword hit."""
        category, confidence = classifier.classify(None, ["おにぎり"])

        assert category == "食費"
        assert confidence == pytest.approx(0.5)

    def test_fuzzy_match_for_ocr_variants(self, classifier):
        """Test that a slightly misread word still matches."""
        category, confidence = classifier.classify(None, ["ミネラルウオーター"])

        assert category == "食費"
        assert 0 < confidence < 0.5

    def test_conflict_returns_no_category(self, classifier):
        """Test that equally strong categories give no suggestion."""
        assert classifier.classify("タクシー", ["弁当"]) == (None, 0.3)

    def test_no_match(self, classifier):
        """Test that unrelated text gives no suggestion."""
        assert classifier.classify("ABC", []) == (None, 0.0)

    def test_missing_rules_file(self, tmp_path):
        """Test that a missing rules file raises."""
        with pytest.raises(FileNotFoundError):
            CategoryClassifier(tmp_path / "missing.yml")

    def test_packaged_rules_load(self):
        """Test that the default rules cover subcategories."""
        classifier = CategoryClassifier()

        assert "日用品 > 洗剤" in classifier.categories
        assert classifier.classify("ドラッグストア", ["柔軟剤", "洗剤"])[0] == "日用品 > 洗剤"


class TestCategories:
    """Tests for the category tree helpers."""

    def test_flatten_categories(self):
        """Test flattening of nested subcategories."""
        tree = ['食費', {'name': '日用品', 'subcategories': ['洗剤', 'ティッシュ']}]

        assert flatten_categories(tree) == ['食費', '日用品', '日用品 > 洗剤', '日用品 > ティッシュ']

    def test_parent_and_subcategory_names(self):
        """Test splitting stored subcategory names."""
        assert get_parent_category('日用品 > 洗剤') == '日用品'
        assert get_parent_category('食費') is None
        assert get_parent_category(None) is None
        assert get_subcategory_name('日用品 > 洗剤') == '洗剤'
        assert get_subcategory_name('食費') == '食費'
        assert is_subcategory('日用品 > 洗剤')
        assert not is_subcategory('食費')

    def test_available_expense_categories(self):
        """Test deleted defaults are hidden and custom categories appended."""
        available = get_available_categories('expense', ['ペット', UNCATEGORIZED], ['家賃'])

        assert '家賃' not in available
        assert '日用品 > 洗剤' in available
        assert available[-1] == 'ペット'
        assert UNCATEGORIZED not in available

    def test_available_income_categories(self):
        """Test the income category list."""
        assert get_available_categories('income', [], []) == ['給料', 'ボーナス', '副業', '投資', 'その他収入']
