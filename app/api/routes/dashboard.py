from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from app.domain.models import Grouping
from app.infra.settings import settings
from app.services.history import TrendView
from app.services.sheet_client import SheetClient, SnapshotFetchError
from app.services.snapshot import MalformedSnapshotError, build_dashboard

router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])


class DashboardRequest(BaseModel):
    snapshot: Dict[str, Any]
    grouping: Optional[Grouping] = None
    view: TrendView = TrendView.CATEGORY
    keys: Optional[List[str]] = None
    focus: Optional[str] = None
    top_n: Optional[int] = Field(default=None, ge=0)


def get_client() -> SheetClient:
    """Construct a sheet client using the configured script URL."""
    return SheetClient()


def _derive(
    payload: Any,
    grouping: Optional[Grouping],
    view: TrendView,
    keys: Optional[List[str]],
    focus: Optional[str],
    top_n: Optional[int],
) -> Dict[str, Any]:
    try:
        dashboard = build_dashboard(
            payload,
            grouping=grouping or settings.kura_default_grouping,
            view=view,
            selection=keys,
            focus=focus,
            top_n=settings.kura_trend_top_n if top_n is None else top_n,
        )
    except MalformedSnapshotError as e:
        raise HTTPException(
            status_code=422,
            detail=f"The data from the spreadsheet is not in the expected format: {e}",
        )
    return dashboard.to_dict()


@router.get("/")
def get_dashboard(
    grouping: Optional[Grouping] = Query(None),
    view: TrendView = Query(TrendView.CATEGORY),
    keys: Optional[List[str]] = Query(None),
    focus: Optional[str] = Query(None),
    top_n: Optional[int] = Query(None, ge=0),
) -> Dict[str, Any]:
    """
    Fetch the current snapshot from the sheet and derive the whole dashboard.

    - grouping: individual / name / owner (defaults to KURA_DEFAULT_GROUPING)
    - view, keys: trend chart view and picked instrument series
    - focus: show only this instrument in the trend chart
    """
    try:
        client = get_client()
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))

    try:
        payload = client.fetch_snapshot()
    except SnapshotFetchError as e:
        raise HTTPException(
            status_code=502,
            detail=f"{e}. Check that the URL is correct and the spreadsheet is shared.",
        )
    finally:
        client.close()

    return _derive(payload, grouping, view, keys, focus, top_n)


@router.post("/")
def post_dashboard(payload: DashboardRequest) -> Dict[str, Any]:
    """Derive the dashboard from a snapshot supplied in the request body."""
    return _derive(payload.snapshot, payload.grouping, payload.view, payload.keys, payload.focus, payload.top_n)


@router.get("/config")
def get_config() -> Dict[str, Any]:
    return {
        "source_configured": bool(settings.kura_sheet_script_url),
        "spreadsheet_url": settings.kura_spreadsheet_url,
        "default_grouping": settings.kura_default_grouping,
        "trend_top_n": settings.kura_trend_top_n,
    }
