from __future__ import annotations

from typing import Dict, Iterable, List, Union

from app.domain.models import Grouping, Position, PositionGroup

UNCLASSIFIED_GROUP = "未分類"


def _group_key(p: Position, grouping: Grouping) -> str:
    key = p.name if grouping is Grouping.NAME else p.owner
    return key or UNCLASSIFIED_GROUP


def _build_group(name: str, members: List[Position]) -> PositionGroup:
    total_value = sum(p.value for p in members)
    total_pnl = sum(p.profit_or_loss or 0.0 for p in members)
    total_purchase = sum(p.purchase_amount or 0.0 for p in members)
    rate = total_pnl / total_purchase if total_purchase != 0 else 0.0
    return PositionGroup(
        group_name=name,
        positions=members,
        total_value=total_value,
        total_profit_or_loss=total_pnl,
        total_purchase_amount=total_purchase,
        total_profit_or_loss_rate=rate,
    )


def group_positions(
    positions: Iterable[Position],
    grouping: Union[Grouping, str] = Grouping.NAME,
) -> Union[List[Position], List[PositionGroup]]:
    """
    Group rows for the assets table.

    - individual: the positions themselves, one table row each
    - name / owner: one PositionGroup per distinct name (or owner, with
      ownerless rows under UNCLASSIFIED_GROUP), largest total value first.
      Equal totals keep the order in which the groups were first seen.
    """
    grouping = Grouping(grouping)
    positions = list(positions)
    if grouping is Grouping.INDIVIDUAL:
        return positions

    buckets: Dict[str, List[Position]] = {}
    for p in positions:
        buckets.setdefault(_group_key(p, grouping), []).append(p)

    groups = [_build_group(name, members) for name, members in buckets.items()]
    groups.sort(key=lambda g: g.total_value, reverse=True)
    return groups
