from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from app.infra.settings import settings

log = logging.getLogger(__name__)


class SnapshotFetchError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SheetClient:
    """
    Reads the dashboard snapshot from the sheet's published Apps Script URL.

    The script answers a plain GET with {"assets": [...], "historyByCategory": [...]}.
    Shape checks happen in app.services.snapshot, not here.
    """

    def __init__(
        self,
        script_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.script_url = script_url or settings.kura_sheet_script_url
        if not self.script_url:
            raise RuntimeError("KURA_SHEET_SCRIPT_URL is not set")

        self._client = httpx.Client(
            timeout=timeout or settings.kura_fetch_timeout_seconds,
            # Apps Script web apps answer through a redirect to googleusercontent
            follow_redirects=True,
            transport=transport,
        )

    def _headers(self) -> Dict[str, str]:
        return {"Accept": "application/json"}

    def fetch_snapshot(self) -> Any:
        try:
            resp = self._client.get(self.script_url, headers=self._headers())
        except httpx.HTTPError as exc:
            log.warning("snapshot fetch failed: %s", exc)
            raise SnapshotFetchError(f"could not reach the sheet script: {exc}") from exc

        if resp.status_code >= 400:
            log.warning("snapshot fetch returned HTTP %s", resp.status_code)
            raise SnapshotFetchError(
                f"failed to fetch data (HTTP status: {resp.status_code})",
                status_code=resp.status_code,
            )

        try:
            return resp.json()
        except ValueError as exc:
            raise SnapshotFetchError("sheet script did not return JSON", status_code=resp.status_code) from exc

    def close(self) -> None:
        self._client.close()
