from __future__ import annotations

import asyncio
import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

import requests

from fleet_core.config import Settings, get_settings
from fleet_core.csv_parser import parse_csv
from fleet_core.dates import normalize_date
from fleet_core.fetcher import fetch_sheet_csv
from fleet_core.filters import DashboardFilters, filter_records, normalize_filters
from fleet_core.sheets import sheet_names as all_sheet_names
from fleet_core.transformers import Record, SheetShape, transform_sheet
from fleet_core.values import is_positive_zone, zone_number

logger = logging.getLogger(__name__)

Dataset = Dict[str, List[Record]]


@dataclass
class SheetLoadResult:
    sheet_name: str
    records: List[Record] = field(default_factory=list)
    raw_rows: int = 0
    shape: Optional[SheetShape] = None
    skipped: Counter = field(default_factory=Counter)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


SheetLoader = Callable[[str], SheetLoadResult]


# ---------------- Single sheet pipeline ----------------
def load_sheet(
    sheet_name: str,
    *,
    session: Optional[requests.Session] = None,
    settings: Optional[Settings] = None,
) -> SheetLoadResult:
    """Fetch, parse and transform one sheet. Fetch errors propagate to the caller."""
    text = fetch_sheet_csv(sheet_name, session=session, settings=settings)
    rows = parse_csv(text)
    outcome = transform_sheet(sheet_name, rows)
    if outcome.skipped:
        logger.debug("%s: skipped rows %s", sheet_name, dict(outcome.skipped))
    logger.debug("%s: %d raw rows -> %d records (%s)", sheet_name, len(rows), len(outcome.records), outcome.shape)
    return SheetLoadResult(
        sheet_name=sheet_name,
        records=outcome.records,
        raw_rows=len(rows),
        shape=outcome.shape,
        skipped=outcome.skipped,
    )


async def _load_sheet_safely(sheet_name: str, loader: SheetLoader) -> SheetLoadResult:
    try:
        return await asyncio.to_thread(loader, sheet_name)
    except Exception as exc:
        logger.warning("%s: load failed, using empty data: %s", sheet_name, exc)
        return SheetLoadResult(sheet_name=sheet_name, error=f"{type(exc).__name__}: {exc}")


# ---------------- Fan-out over every sheet ----------------
async def fetch_all_sheet_results(
    sheet_names: Optional[Iterable[str]] = None,
    *,
    loader: Optional[SheetLoader] = None,
) -> List[SheetLoadResult]:
    names = list(sheet_names) if sheet_names is not None else all_sheet_names()
    loader = loader or load_sheet
    results = await asyncio.gather(*(_load_sheet_safely(name, loader) for name in names))
    if names and all(not r.ok for r in results):
        logger.error("every sheet failed to load (%d sheets)", len(names))
    return list(results)


async def fetch_all_sheets(
    sheet_names: Optional[Iterable[str]] = None,
    *,
    loader: Optional[SheetLoader] = None,
) -> Dataset:
    results = await fetch_all_sheet_results(sheet_names, loader=loader)
    return {r.sheet_name: r.records for r in results}


def load_all_sheets(sheet_names: Optional[Iterable[str]] = None, *, loader: Optional[SheetLoader] = None) -> Dataset:
    return asyncio.run(fetch_all_sheets(sheet_names, loader=loader))


# ---------------- Derived views ----------------
def get_unique_zones(dataset: Dataset) -> List[str]:
    zones = set()
    for records in dataset.values():
        for row in records:
            zone = row.get("Zone")
            if zone not in (None, "") and is_positive_zone(zone):
                zones.add(str(zone).strip())
    return sorted(zones, key=lambda z: zone_number(z) or 0.0)


def get_unique_dates(dataset: Dataset) -> List[str]:
    dates = set()
    for records in dataset.values():
        for row in records:
            if row.get("Date"):
                normalized = normalize_date(row["Date"])
                if normalized:
                    dates.add(normalized)
    return sorted(dates)


# ---------------- Store ----------------
class DatasetStore:
    """Holds the latest dataset and notifies subscribers after each refresh.

    Built once per entrypoint and passed around explicitly. Each refresh
    replaces the dataset wholesale; overlapping refreshes are not serialized,
    so whichever finishes last wins.
    """

    def __init__(
        self,
        *,
        loader: Optional[SheetLoader] = None,
        sheet_names: Optional[Iterable[str]] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._loader = loader
        self._sheet_names = list(sheet_names) if sheet_names is not None else all_sheet_names()
        self._settings = settings or get_settings()
        self._clock = clock
        self._dataset: Dataset = {}
        self._results: Dict[str, SheetLoadResult] = {}
        self._refreshed_at: Optional[float] = None
        self._refreshed_at_utc: Optional[datetime] = None
        self._listeners: List[Callable[["DatasetStore"], None]] = []

    @property
    def dataset(self) -> Dataset:
        return self._dataset

    @property
    def results(self) -> Dict[str, SheetLoadResult]:
        return self._results

    @property
    def sheet_names(self) -> List[str]:
        return list(self._sheet_names)

    @property
    def refreshed_at(self) -> Optional[datetime]:
        return self._refreshed_at_utc

    @property
    def is_loaded(self) -> bool:
        return self._refreshed_at is not None

    @property
    def errors(self) -> Dict[str, str]:
        return {name: r.error for name, r in self._results.items() if r.error}

    @property
    def all_failed(self) -> bool:
        return bool(self._results) and all(not r.ok for r in self._results.values())

    def is_stale(self) -> bool:
        if self._refreshed_at is None:
            return True
        return self._clock() - self._refreshed_at >= self._settings.refresh_interval_seconds

    def subscribe(self, listener: Callable[["DatasetStore"], None]) -> Callable[[], None]:
        """Register ``listener``; call the returned function to unsubscribe."""
        self._listeners.append(listener)

        def dispose() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return dispose

    async def refresh(self) -> Dataset:
        results = await fetch_all_sheet_results(self._sheet_names, loader=self._loader)
        self._results = {r.sheet_name: r for r in results}
        self._dataset = {r.sheet_name: r.records for r in results}
        self._refreshed_at = self._clock()
        self._refreshed_at_utc = datetime.now(timezone.utc)
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("dataset listener %r failed", listener)
        return self._dataset

    async def ensure_fresh(self) -> Dataset:
        if self.is_stale():
            await self.refresh()
        return self._dataset


# ---------------- Page context ----------------
def prepare_context(filters: Dict[str, Any] | DashboardFilters, dataset: Dataset) -> Dict[str, Any]:
    filt = filters if isinstance(filters, DashboardFilters) else normalize_filters(filters)
    filtered = {name: filter_records(records, filt) for name, records in dataset.items()}
    return {
        "filters": filt,
        "dataset": dataset,
        "filtered": filtered,
        "zones": get_unique_zones(dataset),
        "dates": get_unique_dates(dataset),
    }
