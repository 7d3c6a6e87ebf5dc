from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from app.domain.models import InstrumentType
from app.services.numeric import number_or_zero, to_number

log = logging.getLogger(__name__)

DATE_KEY = "date"
# synthetic column written on every processed point; also ignored if the sheet has it
NET_WORTH_KEY = "純資産"
# the pre-category history tab had a single total column
LEGACY_VALUE_KEY = "value"
DEFAULT_TOP_N = 5

_LIABILITY_KEY = InstrumentType.LIABILITY.value
_RESERVED_KEYS = frozenset({DATE_KEY, NET_WORTH_KEY, _LIABILITY_KEY})
# already net deltas, so they are added to net worth instead of the positive stack
_NETTED_KEYS = frozenset({InstrumentType.MARGIN_STOCKS.value, InstrumentType.LEVERAGED_FX.value})


class HistoryStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    INVALID = "invalid"
    LEGACY = "legacy"


class TrendView(str, Enum):
    CATEGORY = "category"
    INSTRUMENT = "instrument"


@dataclass(frozen=True)
class HistoryReshape:
    processed_points: List[Dict[str, Any]] = field(default_factory=list)
    category_keys: List[str] = field(default_factory=list)
    instrument_keys: List[str] = field(default_factory=list)
    # category series with at least one non-zero point; the stacked chart draws only these
    active_category_keys: List[str] = field(default_factory=list)
    default_instrument_keys: List[str] = field(default_factory=list)
    status: HistoryStatus = HistoryStatus.EMPTY

    @property
    def is_empty(self) -> bool:
        return not self.processed_points

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "processed_points": self.processed_points,
            "category_keys": self.category_keys,
            "instrument_keys": self.instrument_keys,
            "active_category_keys": self.active_category_keys,
            "default_instrument_keys": self.default_instrument_keys,
        }


@dataclass(frozen=True)
class TrendProjection:
    view: TrendView
    series_keys: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"view": self.view.value, "series_keys": self.series_keys}


def detect_history_status(points: Any) -> HistoryStatus:
    """
    Classify a raw history series before reshaping.

    LEGACY means the first point only carries `date` and the old single
    `value` total. It is reported so the caller can ask for the category
    layout; the series is still reshaped like any other.
    """
    if not isinstance(points, Sequence) or isinstance(points, (str, bytes)):
        return HistoryStatus.INVALID
    if len(points) == 0:
        return HistoryStatus.EMPTY
    first = points[0]
    if not isinstance(first, Mapping):
        return HistoryStatus.INVALID
    if LEGACY_VALUE_KEY in first and set(first) <= {DATE_KEY, LEGACY_VALUE_KEY}:
        return HistoryStatus.LEGACY
    return HistoryStatus.OK


def discover_keys(records: Iterable[Mapping[str, Any]]) -> List[str]:
    """Union of series keys over all points, in first-seen order."""
    seen: Dict[str, None] = {}
    for r in records:
        for k in r:
            if isinstance(k, str) and k not in _RESERVED_KEYS:
                seen.setdefault(k, None)
    return list(seen)


def rank_instrument_keys(latest: Mapping[str, float], keys: Sequence[str], top_n: int = DEFAULT_TOP_N) -> List[str]:
    # sorted() is stable, so equal balances keep discovery order
    ranked = sorted(keys, key=lambda k: latest.get(k, 0.0), reverse=True)
    return ranked[: max(top_n, 0)]


def reshape_history(points: Any, top_n: int = DEFAULT_TOP_N) -> HistoryReshape:
    """
    Turn the history tab into chart-ready series.

    Every discovered key is coerced per point (unusable -> 0), so stacked
    series have no gaps. Each processed point also gets the liability balance
    and a synthetic net worth:

        spot total (categories except margin stocks / leveraged FX)
        + margin stocks + leveraged FX + liability
    """
    status = detect_history_status(points)
    if status in (HistoryStatus.EMPTY, HistoryStatus.INVALID):
        return HistoryReshape(status=status)

    records: List[Mapping[str, Any]] = [p if isinstance(p, Mapping) else {} for p in points]
    keys = discover_keys(records)
    category_keys = [k for k in keys if InstrumentType.from_label(k) is not None]
    instrument_keys = [k for k in keys if InstrumentType.from_label(k) is None]

    index = pd.RangeIndex(len(records))
    values = pd.DataFrame(
        {k: [to_number(r.get(k)) for r in records] for k in keys},
        index=index,
        columns=keys,
        dtype=float,
    ).fillna(0.0)

    spot_keys = [k for k in category_keys if k not in _NETTED_KEYS]
    netted = [values[k] for k in category_keys if k in _NETTED_KEYS]
    liability = pd.Series([number_or_zero(r.get(_LIABILITY_KEY)) for r in records], index=index, dtype=float)

    net_worth = values[spot_keys].sum(axis=1) + liability
    for column in netted:
        net_worth = net_worth + column

    columns = {k: values[k].tolist() for k in keys}
    liabilities = liability.tolist()
    net_worths = net_worth.tolist()

    processed: List[Dict[str, Any]] = []
    for i, r in enumerate(records):
        point: Dict[str, Any] = {DATE_KEY: r.get(DATE_KEY)}
        for k in keys:
            point[k] = columns[k][i]
        point[_LIABILITY_KEY] = liabilities[i]
        point[NET_WORTH_KEY] = net_worths[i]
        processed.append(point)

    active = [k for k in category_keys if bool((values[k] != 0).any())]
    latest = {k: columns[k][-1] for k in instrument_keys}
    defaults = rank_instrument_keys(latest, instrument_keys, top_n)

    log.debug(
        "reshaped %d history points: %d category keys, %d instrument keys",
        len(processed),
        len(category_keys),
        len(instrument_keys),
    )
    return HistoryReshape(
        processed_points=processed,
        category_keys=category_keys,
        instrument_keys=instrument_keys,
        active_category_keys=active,
        default_instrument_keys=defaults,
        status=status,
    )


def project_trend(
    reshape: HistoryReshape,
    view: TrendView | str = TrendView.CATEGORY,
    selection: Optional[Sequence[str]] = None,
    focus: Optional[str] = None,
) -> TrendProjection:
    """
    Pick the series to draw.

    A focus on a known instrument key wins over everything: instrument view,
    that key only. Otherwise the category view draws the active category
    keys, and the instrument view draws the selection (unknown keys dropped)
    or the default top-N when nothing usable is selected.
    """
    if focus is not None and focus in reshape.instrument_keys:
        return TrendProjection(view=TrendView.INSTRUMENT, series_keys=[focus])

    view = TrendView(view)
    if view is TrendView.CATEGORY:
        return TrendProjection(view=view, series_keys=list(reshape.active_category_keys))

    known = set(reshape.instrument_keys)
    chosen = [k for k in (selection or []) if k in known]
    if not chosen:
        chosen = list(reshape.default_instrument_keys)
    return TrendProjection(view=view, series_keys=chosen)


@dataclass
class TrendSelection:
    """
    Caller-owned state for the trend chart.

    `user_selection` is the instrument picker's checked keys (None until the
    first instrument-view projection fills it with the defaults).
    `focus_request` is a one-shot "show only this instrument" request coming
    from the assets table; project() consumes it.
    """

    view: TrendView = TrendView.CATEGORY
    user_selection: Optional[List[str]] = None
    focus_request: Optional[str] = None

    def set_view(self, view: TrendView | str) -> None:
        self.view = TrendView(view)

    def toggle(self, key: str) -> None:
        current = list(self.user_selection or [])
        if key in current:
            current.remove(key)
        else:
            current.append(key)
        self.user_selection = current

    def select_only(self, key: str) -> None:
        self.user_selection = [key]

    def request_focus(self, key: str) -> None:
        self.focus_request = key

    def project(self, reshape: HistoryReshape) -> TrendProjection:
        focus, self.focus_request = self.focus_request, None
        projection = project_trend(reshape, self.view, self.user_selection, focus)

        if focus is not None and focus in reshape.instrument_keys:
            self.view = TrendView.INSTRUMENT
            self.user_selection = [focus]
        elif projection.view is TrendView.INSTRUMENT and not self.user_selection:
            self.user_selection = list(projection.series_keys)
        return projection
