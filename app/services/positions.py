from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from app.domain.models import (
    DELTA_PRICED_TYPES,
    MARK_TO_MARKET_TYPES,
    TRADABLE_TYPES,
    InstrumentType,
    Position,
)
from app.services.numeric import finite_or_none, to_number

log = logging.getLogger(__name__)


def _field(raw: Mapping[str, Any], *names: str) -> Any:
    # sheet headers are camelCase; accept snake_case for hand-written payloads
    for name in names:
        if name in raw:
            return raw[name]
    return None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def row_name(raw: Any) -> Optional[str]:
    """Name of a raw asset row, or None when the row should be skipped."""
    if not isinstance(raw, Mapping):
        return None
    return _text(raw.get("name"))


def compute_value(
    kind: InstrumentType,
    shares: Optional[float],
    avg_purchase_price: Optional[float],
    current_price: Optional[float],
    fallback: Optional[float],
) -> float:
    """
    Valuation of one row.

    - Delta-priced (margin stocks, leveraged FX): (current - avg) * shares,
      only when all three numbers are known.
    - Mark-to-market (stocks, spot FX, funds, crypto): current * shares.
    - Everything else, or missing price data: the sheet's own value (0 if unusable).
    """
    value = fallback
    if shares is not None and current_price is not None:
        if kind in DELTA_PRICED_TYPES:
            if avg_purchase_price is not None:
                value = (current_price - avg_purchase_price) * shares
        elif kind in MARK_TO_MARKET_TYPES:
            value = current_price * shares
    value = finite_or_none(value)
    return 0.0 if value is None else value


def compute_profit(
    kind: InstrumentType,
    value: float,
    shares: Optional[float],
    avg_purchase_price: Optional[float],
) -> Tuple[Optional[float], Optional[float], Optional[float]]:
    """
    (purchase_amount, profit_or_loss, profit_or_loss_rate) for tradable rows.

    All three stay None unless both shares and average price are known, so a
    row without position data is distinguishable from a flat position.
    """
    if kind not in TRADABLE_TYPES or shares is None or avg_purchase_price is None:
        return None, None, None

    purchase_amount = shares * avg_purchase_price
    if kind in DELTA_PRICED_TYPES:
        # cost basis already nets out of (current - avg) * shares
        pnl = value
    else:
        pnl = value - purchase_amount
    rate = pnl / purchase_amount if purchase_amount != 0 else 0.0
    return finite_or_none(purchase_amount), finite_or_none(pnl), finite_or_none(rate)


def normalize_position(raw: Mapping[str, Any], index: int) -> Optional[Position]:
    """
    Build one Position from a raw sheet row. Returns None for nameless rows.

    `index` only feeds the id; it never affects the numbers.
    """
    name = row_name(raw)
    if name is None:
        return None

    kind = InstrumentType.parse(raw.get("type"))
    if kind is None:
        log.debug("row %r has unknown type %r; treating as %s", name, raw.get("type"), InstrumentType.OTHER.name)
        kind = InstrumentType.OTHER

    shares = to_number(raw.get("shares"))
    avg_purchase_price = to_number(_field(raw, "avgPurchasePrice", "avg_purchase_price"))
    current_price = to_number(_field(raw, "currentPrice", "current_price"))

    value = compute_value(kind, shares, avg_purchase_price, current_price, to_number(raw.get("value")))

    tradable = kind in TRADABLE_TYPES
    if tradable:
        purchase_amount, pnl, rate = compute_profit(kind, value, shares, avg_purchase_price)
        ticker = _text(_field(raw, "tickerSymbol", "ticker_symbol"))
        day_change = to_number(_field(raw, "dayChange", "day_change"))
    else:
        # price columns on a cash / bond / liability row are stale or misrouted
        purchase_amount = pnl = rate = None
        shares = avg_purchase_price = current_price = day_change = None
        ticker = None

    return Position(
        id=f"{name}-{index}",
        name=name,
        type=kind,
        value=value,
        account=_text(raw.get("account")),
        owner=_text(raw.get("owner")),
        ticker_symbol=ticker,
        shares=shares,
        avg_purchase_price=avg_purchase_price,
        current_price=current_price,
        day_change=day_change,
        purchase_amount=purchase_amount,
        profit_or_loss=pnl,
        profit_or_loss_rate=rate,
    )


def normalize_positions(rows: Iterable[Any]) -> List[Position]:
    """
    Normalize the assets tab. Rows without a name (blank sheet lines) are
    dropped before ids are assigned, so ids count surviving rows only.
    """
    named: List[Dict[str, Any]] = []
    skipped = 0
    for raw in rows:
        if row_name(raw) is None:
            skipped += 1
            continue
        named.append(raw)
    if skipped:
        log.debug("dropped %d asset rows without a name", skipped)

    out: List[Position] = []
    for index, raw in enumerate(named):
        position = normalize_position(raw, index)
        if position is not None:
            out.append(position)
    return out
