"""
Data models for the pricing engine.

Uses dataclasses for structured, type-safe data representation. Rates are
whole rupees per 10 g for gold and per 1000 g for silver.
"""
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class Metal(str, Enum):
    GOLD = "GOLD"
    SILVER = "SILVER"

    @classmethod
    def parse(cls, value: "str | Metal") -> "Metal":
        return cls(str(value.value if isinstance(value, Enum) else value).strip().upper())


class JewelryType(str, Enum):
    NEW = "NEW"
    OLD = "OLD"


class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    PRO_CLIENT = "pro_client"
    CLIENT = "client"


class RateType(str, Enum):
    BUYING = "buying"
    SELLING = "selling"


class RoundDirection(str, Enum):
    HIGH = "high"
    LOW = "low"


class RoundingType(str, Enum):
    DECIMALS = "decimals"
    NEAREST_5_0 = "nearest_5_0"
    LAST_DIGIT_0 = "last_digit_0"


class ScrapSource(str, Enum):
    OWN = "own"
    OTHER = "other"


class ResaleRateType(str, Enum):
    SELLING = "SELLING"
    BUYING = "BUYING"


# Rates are quoted per 10 g of gold and per kilogram of silver
PER_GRAM_DIVISOR = {
    Metal.GOLD: 10,
    Metal.SILVER: 1000,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_role(value: Any) -> Optional[Role]:
    """Role from an enum or a header string; None when unknown."""
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value).strip().lower())
    except ValueError:
        return None


# Role -> description slot. pro_client is stored as proClient on the wire.
_DESCRIPTION_SLOTS = {
    Role.ADMIN: "admin",
    Role.MANAGER: "manager",
    Role.PRO_CLIENT: "pro_client",
    Role.CLIENT: "client",
}


@dataclass
class Rate:
    """The single live rate record of a shop."""
    gold_buy: int
    gold_sell: int
    silver_buy: int
    silver_sell: int
    updated_by: str = ""
    updated_by_role: str = Role.ADMIN.value
    updated_at: datetime = field(default_factory=utcnow)
    shop_id: Optional[str] = None

    def buy_rate(self, metal: Metal) -> int:
        return self.gold_buy if Metal.parse(metal) is Metal.GOLD else self.silver_buy

    def sell_rate(self, metal: Metal) -> int:
        return self.gold_sell if Metal.parse(metal) is Metal.GOLD else self.silver_sell

    def rate_for(self, metal: Metal, use_rate: RateType) -> int:
        if RateType(use_rate) is RateType.BUYING:
            return self.buy_rate(metal)
        return self.sell_rate(metal)

    @staticmethod
    def per_gram_divisor(metal: Metal) -> int:
        return PER_GRAM_DIVISOR[Metal.parse(metal)]

    def as_rate_dict(self) -> dict[str, int]:
        return {
            "goldBuy": self.gold_buy,
            "goldSell": self.gold_sell,
            "silverBuy": self.silver_buy,
            "silverSell": self.silver_sell,
        }


@dataclass
class Descriptions:
    """Audience-specific category descriptions."""
    universal: str = ""
    admin: str = ""
    manager: str = ""
    pro_client: str = ""
    client: str = ""

    def for_role(self, role: Any) -> str:
        """
        Pick the description a role should see.

        The role's own description wins when it is non-blank, then the
        universal one, then an empty string.
        """
        parsed = parse_role(role)
        if parsed is not None:
            role_text = getattr(self, _DESCRIPTION_SLOTS[parsed]) or ""
            if role_text.strip():
                return role_text.strip()
        return (self.universal or "").strip()

    def to_dict(self) -> dict[str, str]:
        return {
            "universal": self.universal,
            "admin": self.admin,
            "manager": self.manager,
            "proClient": self.pro_client,
            "client": self.client,
        }


@dataclass
class ResaleCategory:
    """A resale option attached to an OLD category."""
    item_category: str
    direct_resale_percentage: float
    buying_from_wholesaler_percentage: float
    direct_resale_rate_type: ResaleRateType = ResaleRateType.SELLING
    wholesaler_labour_per_gram: float = 0
    polish_repair_enabled: bool = False
    polish_repair_resale_percentage: Optional[float] = None
    polish_repair_rate_type: Optional[ResaleRateType] = None
    polish_repair_cost_percentage: Optional[float] = None
    polish_repair_labour_per_gram: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "itemCategory": self.item_category,
            "directResalePercentage": self.direct_resale_percentage,
            "directResaleRateType": ResaleRateType(self.direct_resale_rate_type).value,
            "buyingFromWholesalerPercentage": self.buying_from_wholesaler_percentage,
            "wholesalerLabourPerGram": self.wholesaler_labour_per_gram,
            "polishRepairEnabled": self.polish_repair_enabled,
        }
        if self.polish_repair_enabled:
            data.update({
                "polishRepairResalePercentage": self.polish_repair_resale_percentage,
                "polishRepairRateType": ResaleRateType(
                    self.polish_repair_rate_type or ResaleRateType.SELLING
                ).value,
                "polishRepairCostPercentage": self.polish_repair_cost_percentage,
                "polishRepairLabourPerGram": self.polish_repair_labour_per_gram or 0,
            })
        return data


@dataclass
class Category:
    """
    A pricing category.

    NEW categories carry markup fields, OLD categories carry scrap buy-back
    fields; the other group is left as None.
    """
    type: JewelryType
    metal: Metal
    code: str
    shop_id: Optional[str] = None
    id: Optional[str] = None
    descriptions: Descriptions = field(default_factory=Descriptions)

    # NEW jewelry
    item_category: Optional[str] = None
    purity_percentage: Optional[float] = None
    buying_from_wholesaler_percentage: Optional[float] = None
    selling_percentage: Optional[float] = None
    wholesaler_labour_per_gram: Optional[float] = None

    # OLD jewelry
    true_purity_percentage: Optional[float] = None
    scrap_buy_own_percentage: Optional[float] = None
    scrap_buy_other_percentage: Optional[float] = None
    resale_enabled: bool = False
    resale_categories: list[ResaleCategory] = field(default_factory=list)

    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def display_name(self) -> str:
        kind = JewelryType(self.type)
        metal = Metal.parse(self.metal)
        if kind is JewelryType.NEW:
            return f"{kind.value} {metal.value} {self.item_category} - {self.code}"
        return f"{kind.value} {metal.value} - {self.code}"

    def to_dict(self) -> dict[str, Any]:
        data = {
            "id": self.id,
            "shopId": self.shop_id,
            "type": JewelryType(self.type).value,
            "metal": Metal.parse(self.metal).value,
            "code": self.code,
            "displayName": self.display_name,
            "descriptions": self.descriptions.to_dict(),
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }
        if JewelryType(self.type) is JewelryType.NEW:
            data.update({
                "itemCategory": self.item_category,
                "purityPercentage": self.purity_percentage,
                "buyingFromWholesalerPercentage": self.buying_from_wholesaler_percentage,
                "sellingPercentage": self.selling_percentage,
                "wholesalerLabourPerGram": self.wholesaler_labour_per_gram,
            })
        else:
            data.update({
                "truePurityPercentage": self.true_purity_percentage,
                "scrapBuyOwnPercentage": self.scrap_buy_own_percentage,
                "scrapBuyOtherPercentage": self.scrap_buy_other_percentage,
                "resaleEnabled": self.resale_enabled,
                "resaleCategories": [r.to_dict() for r in self.resale_categories],
            })
        return data


@dataclass
class RowConfig:
    row_index: int
    title: str = "Row"


@dataclass
class ColumnConfig:
    col_index: int
    title: str = "Column"
    rounding_enabled: bool = False
    round_direction: RoundDirection = RoundDirection.LOW
    rounding_type: RoundingType = RoundingType.DECIMALS


@dataclass
class CellConfig:
    row_index: int
    col_index: int
    use_rate: RateType = RateType.BUYING
    percentage: float = 100


@dataclass
class RateTableConfig:
    """Tenant-editable rate table definition, one per shop and metal."""
    metal_type: Metal
    value_per_gram: float = 1
    rows: list[RowConfig] = field(default_factory=list)
    columns: list[ColumnConfig] = field(default_factory=list)
    cells: list[CellConfig] = field(default_factory=list)
    id: Optional[str] = None
    shop_id: Optional[str] = None
    updated_at: datetime = field(default_factory=utcnow)
    updated_by: str = ""

    @classmethod
    def empty(cls, shop_id: str, metal_type: Metal, updated_by: str = "",
              table_id: Optional[str] = None) -> 'RateTableConfig':
        """The grid a shop starts with before an admin edits it."""
        return cls(metal_type=Metal.parse(metal_type), shop_id=shop_id,
                   updated_by=updated_by, id=table_id)

    def find_cell(self, row_index: int, col_index: int) -> Optional[CellConfig]:
        for cell in self.cells:
            if cell.row_index == row_index and cell.col_index == col_index:
                return cell
        return None

    def find_column(self, col_index: int) -> Optional[ColumnConfig]:
        for col in self.columns:
            if col.col_index == col_index:
                return col
        return None

    def find_row(self, row_index: int) -> Optional[RowConfig]:
        for row in self.rows:
            if row.row_index == row_index:
                return row
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "metalType": Metal.parse(self.metal_type).value.lower(),
            "valuePerGram": self.value_per_gram,
            "rows": [{"rowIndex": r.row_index, "title": r.title} for r in self.rows],
            "columns": [
                {
                    "colIndex": c.col_index,
                    "title": c.title,
                    "roundingEnabled": c.rounding_enabled,
                    "roundDirection": RoundDirection(c.round_direction).value,
                    "roundingType": RoundingType(c.rounding_type).value,
                }
                for c in self.columns
            ],
            "cells": [
                {
                    "rowIndex": c.row_index,
                    "colIndex": c.col_index,
                    "useRate": RateType(c.use_rate).value,
                    "percentage": c.percentage,
                }
                for c in self.cells
            ],
            "updatedAt": self.updated_at.isoformat(),
            "updatedBy": self.updated_by,
        }


@dataclass
class TraceStep:
    """A single step in the price resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class RoundingInfo:
    before_rounding: float
    after_rounding: float

    @property
    def rounding_applied(self) -> bool:
        return self.before_rounding != self.after_rounding

    def to_dict(self) -> dict[str, Any]:
        return {
            "beforeRounding": self.before_rounding,
            "afterRounding": self.after_rounding,
            "roundingApplied": self.rounding_applied,
        }


@dataclass
class _TracedResult:
    trace: list[TraceStep] = field(default_factory=list, kw_only=True)
    calculated_at: datetime = field(default_factory=utcnow, kw_only=True)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the trace for this calculation."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)


@dataclass
class NewJewelryResult(_TracedResult):
    """Price and margin breakdown for selling new jewelry."""
    category_id: Optional[str]
    code: str
    item_category: Optional[str]
    metal: Metal
    weight: float
    role: str
    description: str

    base_rate: int
    rate_per_gram: float

    purity_percentage: float
    selling_percentage: float
    buying_from_wholesaler_percentage: float
    wholesaler_labour_per_gram: float

    actual_rate_per_gram: float
    selling_rate_per_gram: float
    buying_rate_per_gram: float

    final_selling_amount: float
    rounding: RoundingInfo

    purchase_from_wholesaler: float
    actual_value_by_purity: float
    wholesaler_margin: float
    our_margin: float

    @property
    def making_charges_per_gram(self) -> float:
        return self.selling_rate_per_gram - self.actual_rate_per_gram

    def to_dict(self) -> dict[str, Any]:
        return {
            "input": {
                "categoryId": self.category_id,
                "code": self.code,
                "itemCategory": self.item_category,
                "metal": self.metal.value,
                "weight": self.weight,
                "role": self.role,
                "description": self.description,
            },
            "rates": {
                "baseRate": self.base_rate,
                "ratePerGram": self.rate_per_gram,
            },
            "percentages": {
                "purity": self.purity_percentage,
                "selling": self.selling_percentage,
                "buyingFromWholesaler": self.buying_from_wholesaler_percentage,
                "wholesalerLabourPerGram": self.wholesaler_labour_per_gram,
            },
            "finalSellingAmount": self.final_selling_amount,
            "sellingRateBreakdown": {
                "actualRatePerGram": self.actual_rate_per_gram,
                "sellingRatePerGram": self.selling_rate_per_gram,
                "buyingRatePerGram": self.buying_rate_per_gram,
                "makingChargesPerGram": self.making_charges_per_gram,
            },
            "marginBreakdown": {
                "purchaseFromWholesaler": self.purchase_from_wholesaler,
                "actualValueByPurity": self.actual_value_by_purity,
                "wholesalerMargin": self.wholesaler_margin,
                "ourMargin": self.our_margin,
            },
            "roundingInfo": self.rounding.to_dict(),
            "metadata": {
                "calculatedAt": self.calculated_at.isoformat(),
                "trace": [asdict(t) for t in self.trace],
            },
        }


@dataclass
class OldJewelryResult(_TracedResult):
    """Scrap value and margin breakdown for buying back old jewelry."""
    category_id: Optional[str]
    code: str
    metal: Metal
    weight: float
    source: ScrapSource
    role: str
    description: str

    base_rate: int
    rate_per_gram: float

    true_purity_percentage: float
    scrap_buy_percentage: float

    scrap_value_per_gram: float
    total_scrap_value: float
    rounding: RoundingInfo

    actual_value_by_purity: float
    scrap_margin: float

    resale_enabled: bool = False
    resale_categories: list[ResaleCategory] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "input": {
                "categoryId": self.category_id,
                "code": self.code,
                "metal": self.metal.value,
                "weight": self.weight,
                "source": self.source.value,
                "role": self.role,
                "description": self.description,
            },
            "rates": {
                "baseRate": self.base_rate,
                "ratePerGram": self.rate_per_gram,
            },
            "percentages": {
                "truePurity": self.true_purity_percentage,
                "scrapBuy": self.scrap_buy_percentage,
            },
            "totalScrapValue": self.total_scrap_value,
            "scrapBreakdown": {
                "scrapValuePerGram": self.scrap_value_per_gram,
            },
            "marginBreakdown": {
                "actualValueByPurity": self.actual_value_by_purity,
                "totalScrapValue": self.total_scrap_value,
                "scrapMargin": self.scrap_margin,
            },
            "roundingInfo": self.rounding.to_dict(),
            "resaleInfo": {
                "resaleEnabled": self.resale_enabled,
                "categories": [r.to_dict() for r in self.resale_categories],
                "message": (
                    f"{len(self.resale_categories)} resale option(s) configured for this code"
                    if self.resale_enabled else "Resale is not enabled for this code"
                ),
            },
            "metadata": {
                "calculatedAt": self.calculated_at.isoformat(),
                "trace": [asdict(t) for t in self.trace],
            },
        }
