from __future__ import annotations

import logging
import math
from typing import Iterable

from app.domain.models import TRADABLE_TYPES, PortfolioSummary, Position
from app.services.rollups import compute_category_breakdown

log = logging.getLogger(__name__)


def summarize_portfolio(positions: Iterable[Position]) -> PortfolioSummary:
    """
    Portfolio totals for the headline cards.

    Liabilities are expected to arrive negative from the sheet. Their sign is
    not corrected here; a positive liability is logged and flows through
    as-is so the bad row stays visible.
    """
    positions = list(positions)

    total_assets = 0.0
    total_liabilities = 0.0
    total_pnl = 0.0
    total_invested = 0.0

    for p in positions:
        if p.is_liability:
            if p.value > 0:
                log.warning("liability %r has positive value %.2f; net worth will include it as-is", p.name, p.value)
            total_liabilities += p.value
        else:
            total_assets += p.value

        total_pnl += p.profit_or_loss or 0.0
        if p.type in TRADABLE_TYPES:
            total_invested += p.purchase_amount or 0.0

    if not math.isfinite(total_invested) or total_invested == 0:
        pnl_rate = 0.0
    else:
        pnl_rate = total_pnl / total_invested

    return PortfolioSummary(
        total_assets=total_assets,
        total_liabilities=total_liabilities,
        net_worth=total_assets + total_liabilities,
        total_profit_or_loss=total_pnl,
        total_investment_amount=total_invested,
        total_profit_or_loss_rate=pnl_rate,
        category_breakdown=compute_category_breakdown(positions),
    )
