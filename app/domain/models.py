from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class InstrumentType(str, Enum):
    """
    Asset classes as labelled in the upstream sheet.

    The enum values are the exact strings the sheet writes in the `type`
    column of the assets tab and in the column headers of the history tab.
    """

    CASH = "現金・預金"
    STOCKS = "株式(現物)"
    MARGIN_STOCKS = "株式(信用)"
    SPOT_FX = "FX(現物)"
    LEVERAGED_FX = "FX(レバレッジ)"
    INVESTMENT_TRUST = "投資信託"
    CRYPTO = "暗号資産"
    BONDS = "債券"
    REAL_ESTATE = "不動産"
    PENSION_DC = "DC年金"
    OTHER = "その他資産"
    LIABILITY = "負債"

    @classmethod
    def from_label(cls, label: Any) -> Optional["InstrumentType"]:
        """Exact match on the sheet label only (history column headers)."""
        if not isinstance(label, str):
            return None
        return _BY_LABEL.get(label)

    @classmethod
    def parse(cls, raw: Any) -> Optional["InstrumentType"]:
        """Accept the sheet label or the member name ("MARGIN_STOCKS", "MarginStocks")."""
        if isinstance(raw, InstrumentType):
            return raw
        if not isinstance(raw, str):
            return None
        text = raw.strip()
        hit = _BY_LABEL.get(text)
        if hit is not None:
            return hit
        return _BY_NAME.get(text.replace("_", "").lower())


_BY_LABEL: Dict[str, InstrumentType] = {t.value: t for t in InstrumentType}
_BY_NAME: Dict[str, InstrumentType] = {t.name.replace("_", "").lower(): t for t in InstrumentType}

# valued by (current - average) x quantity; the value already is the gain/loss
DELTA_PRICED_TYPES = frozenset({InstrumentType.MARGIN_STOCKS, InstrumentType.LEVERAGED_FX})
# valued by current x quantity
MARK_TO_MARKET_TYPES = frozenset(
    {
        InstrumentType.STOCKS,
        InstrumentType.SPOT_FX,
        InstrumentType.INVESTMENT_TRUST,
        InstrumentType.CRYPTO,
    }
)
TRADABLE_TYPES = DELTA_PRICED_TYPES | MARK_TO_MARKET_TYPES


class Grouping(str, Enum):
    INDIVIDUAL = "individual"
    NAME = "name"
    OWNER = "owner"


@dataclass(frozen=True)
class Position:
    id: str
    name: str
    type: InstrumentType
    value: float
    account: Optional[str] = None
    owner: Optional[str] = None
    ticker_symbol: Optional[str] = None
    shares: Optional[float] = None
    avg_purchase_price: Optional[float] = None
    current_price: Optional[float] = None
    day_change: Optional[float] = None
    purchase_amount: Optional[float] = None
    profit_or_loss: Optional[float] = None
    profit_or_loss_rate: Optional[float] = None

    @property
    def is_liability(self) -> bool:
        return self.type is InstrumentType.LIABILITY

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["type"] = self.type.value
        return out


@dataclass(frozen=True)
class CategorySlice:
    name: InstrumentType
    value: float

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name.value, "value": self.value}


@dataclass(frozen=True)
class PortfolioSummary:
    total_assets: float = 0.0
    total_liabilities: float = 0.0
    net_worth: float = 0.0
    total_profit_or_loss: float = 0.0
    total_investment_amount: float = 0.0
    total_profit_or_loss_rate: float = 0.0
    category_breakdown: List[CategorySlice] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_assets": self.total_assets,
            "total_liabilities": self.total_liabilities,
            "net_worth": self.net_worth,
            "total_profit_or_loss": self.total_profit_or_loss,
            "total_investment_amount": self.total_investment_amount,
            "total_profit_or_loss_rate": self.total_profit_or_loss_rate,
            "category_breakdown": [s.to_dict() for s in self.category_breakdown],
        }


@dataclass(frozen=True)
class PositionGroup:
    group_name: str
    positions: List[Position]
    total_value: float
    total_profit_or_loss: float
    total_purchase_amount: float
    total_profit_or_loss_rate: float

    @property
    def count(self) -> int:
        return len(self.positions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "group_name": self.group_name,
            "count": self.count,
            "total_value": self.total_value,
            "total_profit_or_loss": self.total_profit_or_loss,
            "total_purchase_amount": self.total_purchase_amount,
            "total_profit_or_loss_rate": self.total_profit_or_loss_rate,
            "positions": [p.to_dict() for p in self.positions],
        }
