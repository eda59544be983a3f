"""Category tree shared with the household ledger."""

from typing import List, Optional, Union, Dict, Any

# Transactions whose category was deleted
UNCATEGORIZED = '___UNCATEGORIZED___'

# Stored form of a subcategory: "parent > child"
CATEGORY_SEPARATOR = ' > '

CategoryNode = Union[str, Dict[str, Any]]

DEFAULT_EXPENSE_CATEGORIES: List[CategoryNode] = [
    '食費',
    '交通費',
    {
        'name': '日用品',
        'subcategories': ['洗剤', 'トイレットペーパー', 'ティッシュ', 'その他日用品'],
    },
    '娯楽',
    '医療費',
    '光熱費',
    '通信費',
    '家賃',
    '衣服',
    '教育',
]

DEFAULT_INCOME_CATEGORIES: List[CategoryNode] = [
    '給料', 'ボーナス', '副業', '投資', 'その他収入',
]


def flatten_categories(categories: List[CategoryNode]) -> List[str]:
    """
    Flatten a category tree into stored names.

    Example:
        [{'name': '日用品', 'subcategories': ['洗剤']}] -> ['日用品', '日用品 > 洗剤']
    """
    result = []
    for category in categories:
        if isinstance(category, str):
            result.append(category)
        elif category.get('name'):
            result.append(category['name'])
            for sub in category.get('subcategories') or []:
                result.append(f"{category['name']}{CATEGORY_SEPARATOR}{sub}")
    return result


def get_parent_category(category_name: Optional[str]) -> Optional[str]:
    """'日用品 > 洗剤' -> '日用品'; top-level names have no parent."""
    if not category_name or not isinstance(category_name, str):
        return None
    parts = category_name.split(CATEGORY_SEPARATOR)
    return parts[0] if len(parts) > 1 else None


def get_subcategory_name(category_name: Optional[str]) -> Optional[str]:
    """'日用品 > 洗剤' -> '洗剤'; top-level names are returned unchanged."""
    if not category_name or not isinstance(category_name, str):
        return category_name
    parts = category_name.split(CATEGORY_SEPARATOR)
    return parts[1] if len(parts) > 1 else category_name


def is_subcategory(category_name: Optional[str]) -> bool:
    return bool(category_name) and CATEGORY_SEPARATOR in category_name


def get_available_categories(kind: str,
                             custom_categories: List[str],
                             deleted_categories: List[str]) -> List[str]:
    """
    Selectable categories for an expense or income transaction.

    Args:
        kind: 'expense' or 'income'
        custom_categories: User-defined flat category names
        deleted_categories: Default categories the user removed

    Returns:
        Remaining defaults followed by custom categories, never UNCATEGORIZED
    """
    defaults = DEFAULT_EXPENSE_CATEGORIES if kind == 'expense' else DEFAULT_INCOME_CATEGORIES
    available = [c for c in flatten_categories(defaults) if c not in deleted_categories]
    return [c for c in available + list(custom_categories) if c != UNCATEGORIZED]
