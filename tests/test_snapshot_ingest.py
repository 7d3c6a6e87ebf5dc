import pytest

from app.domain.models import Grouping, InstrumentType, PositionGroup
from app.services.history import HistoryStatus, NET_WORTH_KEY, TrendView
from app.services.snapshot import (
    HISTORY_FIELD,
    LEGACY_HISTORY_FIELD,
    MalformedSnapshotError,
    build_dashboard,
    parse_snapshot_payload,
)

T = InstrumentType


def _payload():
    return {
        "assets": [
            {"name": "AAA", "type": T.STOCKS.value, "owner": "Taro", "shares": "10", "currentPrice": "1500", "avgPurchasePrice": "1000"},
            {"name": "Savings", "type": T.CASH.value, "owner": "Taro", "value": "20000"},
            {"type": T.CASH.value, "value": 100},
            {"name": "Loan", "type": T.LIABILITY.value, "value": "-5000"},
        ],
        "historyByCategory": [
            {"date": "2024/01", T.CASH.value: 18000, T.STOCKS.value: 14000, T.LIABILITY.value: -6000, "AAA": 14000},
            {"date": "2024/02", T.CASH.value: 20000, T.STOCKS.value: 15000, T.LIABILITY.value: -5000, "AAA": 15000},
        ],
    }


def test_prefers_history_by_category():
    snap = parse_snapshot_payload({"assets": [], HISTORY_FIELD: [{"date": "a"}], LEGACY_HISTORY_FIELD: [{"date": "b"}]})
    assert snap.history_field == HISTORY_FIELD
    assert snap.history == [{"date": "a"}]


def test_accepts_legacy_history_field():
    snap = parse_snapshot_payload({"assets": [], LEGACY_HISTORY_FIELD: []})
    assert snap.history_field == LEGACY_HISTORY_FIELD
    assert snap.history == []


def test_non_list_history_by_category_falls_back_to_history():
    snap = parse_snapshot_payload({"assets": [], HISTORY_FIELD: "oops", LEGACY_HISTORY_FIELD: [{"date": "b"}]})
    assert snap.history_field == LEGACY_HISTORY_FIELD


@pytest.mark.parametrize(
    "payload",
    [
        None,
        [],
        "assets",
        {"historyByCategory": []},
        {"assets": {"name": "A"}, "history": []},
        {"assets": "A,B", "history": []},
        {"assets": []},
        {"assets": [], "history": {"date": "x"}},
    ],
)
def test_malformed_payloads_raise(payload):
    with pytest.raises(MalformedSnapshotError):
        parse_snapshot_payload(payload)


def test_malformed_payload_derives_nothing():
    with pytest.raises(MalformedSnapshotError):
        build_dashboard({"assets": None, "history": []})


def test_build_dashboard_end_to_end():
    d = build_dashboard(_payload(), grouping=Grouping.NAME)

    assert len(d.positions) == 3
    assert d.summary.total_assets == 15000 + 20000
    assert d.summary.total_liabilities == -5000
    assert d.summary.net_worth == 30000
    assert d.summary.total_profit_or_loss == 5000
    assert d.summary.total_profit_or_loss_rate == 0.5

    assert all(isinstance(g, PositionGroup) for g in d.groups)
    assert [g.group_name for g in d.groups] == ["Savings", "AAA", "Loan"]

    assert d.history.status is HistoryStatus.OK
    assert d.history.processed_points[-1][NET_WORTH_KEY] == 30000
    assert d.trend.view is TrendView.CATEGORY


def test_build_dashboard_focus_switches_trend_to_instrument():
    d = build_dashboard(_payload(), focus="AAA")
    assert d.trend.view is TrendView.INSTRUMENT
    assert d.trend.series_keys == ["AAA"]


def test_empty_assets_with_history_is_not_an_error():
    d = build_dashboard({"assets": [], "history": [{"date": "2024/01", T.CASH.value: 10}]})
    assert d.positions == []
    assert d.summary.total_assets == 0
    assert d.summary.net_worth == 0
    assert d.groups == []
    assert d.history.category_keys == [T.CASH.value]


def test_dashboard_to_dict_is_json_ready():
    out = build_dashboard(_payload(), grouping="owner").to_dict()
    assert out["grouping"] == "owner"
    assert out["summary"]["net_worth"] == 30000
    assert out["positions"][0]["type"] == T.STOCKS.value
    assert out["groups"][0]["group_name"] == "Taro"
    assert out["groups"][0]["count"] == 2
    assert out["history"]["status"] == "ok"
    assert out["trend"] == {"view": "category", "series_keys": [T.CASH.value, T.STOCKS.value]}


def test_individual_grouping_lists_positions():
    out = build_dashboard(_payload(), grouping="individual").to_dict()
    assert [g["id"] for g in out["groups"]] == ["AAA-0", "Savings-1", "Loan-2"]
