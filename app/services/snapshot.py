from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from app.domain.models import Grouping, PortfolioSummary, Position, PositionGroup
from app.services.history import (
    DEFAULT_TOP_N,
    HistoryReshape,
    TrendProjection,
    TrendView,
    project_trend,
    reshape_history,
)
from app.services.portfolio import summarize_portfolio
from app.services.positions import normalize_positions
from app.services.rollups import group_positions

log = logging.getLogger(__name__)

HISTORY_FIELD = "historyByCategory"
LEGACY_HISTORY_FIELD = "history"


class MalformedSnapshotError(ValueError):
    """The fetched payload does not have the assets/history shape."""


@dataclass(frozen=True)
class SnapshotPayload:
    assets: List[Any]
    history: List[Any]
    # which payload field the history came from
    history_field: str


def _is_list(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def parse_snapshot_payload(payload: Any) -> SnapshotPayload:
    """
    Check the payload shape and pick the history field.

    `historyByCategory` wins over the older `history` field when both are
    lists. Anything else is fatal for this fetch: nothing is derived from a
    payload of the wrong shape.
    """
    if not isinstance(payload, Mapping):
        raise MalformedSnapshotError(f"snapshot payload must be an object, got {type(payload).__name__}")

    assets = payload.get("assets")
    if not _is_list(assets):
        raise MalformedSnapshotError("snapshot payload has no 'assets' list")

    for name in (HISTORY_FIELD, LEGACY_HISTORY_FIELD):
        history = payload.get(name)
        if _is_list(history):
            if name == LEGACY_HISTORY_FIELD:
                log.debug("using legacy '%s' field for history", LEGACY_HISTORY_FIELD)
            return SnapshotPayload(assets=list(assets), history=list(history), history_field=name)

    raise MalformedSnapshotError(
        f"snapshot payload has neither a '{HISTORY_FIELD}' nor a '{LEGACY_HISTORY_FIELD}' list"
    )


@dataclass(frozen=True)
class Dashboard:
    positions: List[Position]
    summary: PortfolioSummary
    grouping: Grouping
    groups: Union[List[Position], List[PositionGroup]]
    history: HistoryReshape
    trend: TrendProjection

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary.to_dict(),
            "positions": [p.to_dict() for p in self.positions],
            "grouping": self.grouping.value,
            "groups": [g.to_dict() for g in self.groups],
            "history": self.history.to_dict(),
            "trend": self.trend.to_dict(),
        }


def build_dashboard(
    payload: Any,
    grouping: Union[Grouping, str] = Grouping.NAME,
    view: Union[TrendView, str] = TrendView.CATEGORY,
    selection: Optional[Sequence[str]] = None,
    focus: Optional[str] = None,
    top_n: int = DEFAULT_TOP_N,
) -> Dashboard:
    """
    Full derivation for one fetched snapshot:
    normalize -> summarize -> group, and reshape -> project for the trend chart.

    Raises MalformedSnapshotError before any derivation if the payload shape is wrong.
    """
    snap = parse_snapshot_payload(payload)
    grouping = Grouping(grouping)

    positions = normalize_positions(snap.assets)
    summary = summarize_portfolio(positions)
    groups = group_positions(positions, grouping)

    history = reshape_history(snap.history, top_n=top_n)
    trend = project_trend(history, view=view, selection=selection, focus=focus)

    log.info(
        "dashboard built: %d positions, net worth %.2f, %d history points (%s)",
        len(positions),
        summary.net_worth,
        len(history.processed_points),
        history.status.value,
    )
    return Dashboard(
        positions=positions,
        summary=summary,
        grouping=grouping,
        groups=groups,
        history=history,
        trend=trend,
    )
