"""
Catalog Service - lookup, uniqueness and description resolution for a
shop's pricing categories.

Holds categories in memory; the persistence layer loads them and hands
them over. Inactive (soft-deleted) categories are invisible to every query.
"""
import itertools
import logging
from dataclasses import fields, replace
from typing import Any, Optional

from ..engine.models import Category, Descriptions, JewelryType, Metal, utcnow
from ..errors import NotFoundError, ValidationError
from .validation import validate_category

logger = logging.getLogger(__name__)


def resolve_description(category: Category, role: Any) -> str:
    """Description of the category as seen by the given role."""
    return category.descriptions.for_role(role)


def _parse_type(value: Any) -> JewelryType:
    if isinstance(value, JewelryType):
        return value
    return JewelryType(str(value).strip().upper())


def _key(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def _normalise(category: Category):
    """Trim code and item category; resale options only live while resale is enabled."""
    category.code = (category.code or "").strip()
    if category.item_category:
        category.item_category = category.item_category.strip()
    if category.type == JewelryType.OLD and not category.resale_enabled:
        category.resale_categories = []


class CategoryCatalog:
    """Active-category queries over one or more shops."""

    def __init__(self, categories: Optional[list[Category]] = None):
        self._categories: dict[str, Category] = {}
        self._ids = itertools.count(1)
        for category in categories or []:
            self._store(category)

    def _store(self, category: Category) -> Category:
        if not category.id:
            category.id = self._next_id()
        self._categories[category.id] = category
        return category

    def _next_id(self) -> str:
        candidate = f"cat-{next(self._ids)}"
        while candidate in self._categories:
            candidate = f"cat-{next(self._ids)}"
        return candidate

    def __len__(self) -> int:
        return sum(1 for c in self._categories.values() if c.is_active)

    def is_code_unique(
        self,
        shop_id: str,
        type: JewelryType,
        metal: Metal,
        item_category: Optional[str],
        code: str,
        exclude_id: Optional[str] = None,
    ) -> bool:
        """
        True when no other active category of the shop shares the code.

        The key is (shop, type, metal, code), plus item category for NEW
        jewelry. Code and item category compare trimmed and case-insensitive.
        """
        kind = _parse_type(type)
        metal = Metal.parse(metal)

        for existing in self._categories.values():
            if not existing.is_active or existing.id == exclude_id:
                continue
            if existing.shop_id != shop_id:
                continue
            if JewelryType(existing.type) is not kind or Metal.parse(existing.metal) is not metal:
                continue
            if _key(existing.code) != _key(code):
                continue
            if kind is JewelryType.NEW and _key(existing.item_category) != _key(item_category):
                continue
            return False
        return True

    def find(
        self,
        shop_id: str,
        type: Optional[JewelryType] = None,
        metal: Optional[Metal] = None,
        item_category: Optional[str] = None,
    ) -> list[Category]:
        """Active categories of a shop, optionally filtered, in display order."""
        kind = _parse_type(type) if type else None
        metal = Metal.parse(metal) if metal else None

        matches = []
        for category in self._categories.values():
            if not category.is_active or category.shop_id != shop_id:
                continue
            if kind and JewelryType(category.type) is not kind:
                continue
            if metal and Metal.parse(category.metal) is not metal:
                continue
            if item_category and kind is JewelryType.NEW and _key(category.item_category) != _key(item_category):
                continue
            matches.append(category)

        matches.sort(key=lambda c: (
            JewelryType(c.type).value,
            Metal.parse(c.metal).value,
            c.item_category or "",
            c.code,
        ))
        return matches

    def item_categories(self, shop_id: str, metal: Optional[Metal] = None) -> list[str]:
        """Distinct item categories of the shop's active NEW categories."""
        names = {c.item_category for c in self.find(shop_id, JewelryType.NEW, metal) if c.item_category}
        return sorted(names)

    def get(self, shop_id: str, category_id: str) -> Category:
        """Fetch an active category of the shop or raise NotFoundError."""
        category = self._categories.get(category_id)
        if category is None or not category.is_active or category.shop_id != shop_id:
            raise NotFoundError(f"Category '{category_id}' not found")
        return category

    def add(self, category: Category) -> Category:
        """Validate and store a new category."""
        _normalise(category)
        validation = validate_category(category)
        validation.raise_if_invalid("Category validation failed")

        if not self.is_code_unique(category.shop_id, category.type, category.metal,
                                   category.item_category, category.code):
            raise ValidationError(
                f"Code '{category.code.strip()}' already exists for this category",
                field="code",
            )

        stored = self._store(category)
        logger.info("Category %s added for shop %s", stored.display_name, stored.shop_id)
        return stored

    def update(self, shop_id: str, category_id: str, updates: dict) -> Category:
        """
        Apply field updates to an existing category.

        ``descriptions`` may be a partial dict of slots; slots not given keep
        their current text. Activation is not editable here, see deactivate.
        """
        current = self.get(shop_id, category_id)
        editable = {f.name for f in fields(current)} - {"id", "shop_id", "created_at", "is_active"}
        changes = {k: v for k, v in updates.items() if k in editable}
        for key in ("descriptions", "resale_categories"):
            if changes.get(key, ()) is None:
                del changes[key]

        descriptions = changes.get("descriptions")
        if isinstance(descriptions, dict):
            slots = {f.name for f in fields(Descriptions)}
            changes["descriptions"] = replace(
                current.descriptions,
                **{k: v for k, v in descriptions.items() if k in slots and v is not None},
            )

        candidate = replace(current, **changes)
        _normalise(candidate)

        validate_category(candidate).raise_if_invalid("Category validation failed")
        if not self.is_code_unique(shop_id, candidate.type, candidate.metal,
                                   candidate.item_category, candidate.code, exclude_id=category_id):
            raise ValidationError(
                f"Code '{candidate.code.strip()}' already exists for this category",
                field="code",
            )

        candidate.updated_at = utcnow()
        self._categories[category_id] = candidate
        return candidate

    def deactivate(self, shop_id: str, category_id: str) -> Category:
        """Soft delete; the category disappears from all queries."""
        category = self.get(shop_id, category_id)
        category.is_active = False
        category.updated_at = utcnow()
        logger.info("Category %s deactivated for shop %s", category.display_name, shop_id)
        return category

    def describe_for_role(self, category: Category, role: Any) -> dict[str, Any]:
        """Category payload plus the description resolved for the role."""
        data = category.to_dict()
        data["description"] = resolve_description(category, role)
        return data
