"""Fetch raw CSV text for a logical sheet from its published export URL."""

from __future__ import annotations

import logging
from typing import Optional

import requests

from fleet_core.config import Settings, get_settings
from fleet_core.sheets import SHEET_GIDS, build_csv_url

logger = logging.getLogger(__name__)


class SheetFetchError(RuntimeError):
    """Raised when the CSV export for a sheet cannot be retrieved."""

    def __init__(self, sheet_name: str, message: str) -> None:
        super().__init__(message)
        self.sheet_name = sheet_name


class UnknownSheetError(SheetFetchError):
    """The sheet name has no GID mapping; no request is made."""

    def __init__(self, sheet_name: str) -> None:
        super().__init__(sheet_name, f"No GID mapping for sheet '{sheet_name}'.")


class SheetHTTPError(SheetFetchError):
    def __init__(self, sheet_name: str, status_code: int) -> None:
        super().__init__(sheet_name, f"{sheet_name}: HTTP error status {status_code}.")
        self.status_code = status_code


class SheetTransportError(SheetFetchError):
    """Network failure or timeout while talking to the export endpoint."""


def resolve_gid(sheet_name: str) -> str:
    gid = SHEET_GIDS.get(sheet_name)
    if not gid:
        raise UnknownSheetError(sheet_name)
    return gid


def fetch_sheet_csv(
    sheet_name: str,
    *,
    session: Optional[requests.Session] = None,
    settings: Optional[Settings] = None,
) -> str:
    gid = resolve_gid(sheet_name)
    settings = settings or get_settings()
    url = build_csv_url(gid, settings.spreadsheet_id)
    http = session or requests

    logger.debug("fetching %s (gid=%s)", sheet_name, gid)
    try:
        response = http.get(
            url,
            timeout=settings.http_timeout_seconds,
            headers={"User-Agent": settings.user_agent},
        )
    except requests.RequestException as exc:
        raise SheetTransportError(sheet_name, f"{sheet_name}: request failed: {exc}") from exc

    if not 200 <= response.status_code < 300:
        raise SheetHTTPError(sheet_name, response.status_code)
    # Exports are UTF-8, occasionally with a BOM.
    return response.content.decode("utf-8-sig", errors="replace")
