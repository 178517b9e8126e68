from __future__ import annotations

import functools
from typing import Dict

import pytest

from fleet_core.config import Settings
from fleet_core.data import DatasetStore, load_sheet
from fleet_core.sheets import SHEET_GIDS

from fakes import FakeResponse, FakeSession

SHEET_CSV: Dict[str, str] = {
    "onRouteVehicles": "Date,Zone 1,Zone 2,Zone -1\n2024-03-01,5,0,3\n2024-03-02,4,2,1\n",
    "onBoardAfter3PM": "Date,Zone,Count\n2024-03-01,Zone 1,4\n2024-03-01,Zone 2,2\n",
    "lessThan3Trips": (
        "Date,Zone,0 Trip Count Vehicles,1 Trip Count Vehicles,2 Trip Count Vehicles\n"
        "2024-03-01,Zone 1,1,2,0\n"
        "2024-03-01,Zone 2,0,0,3\n"
        "2024-03-02,Zone 3,0,0,0\n"
    ),
    "glitchPercentage": "Date,Zone,Software %,Actual %,Remarks\n2024-03-01,Zone 1,87%,80%,GPS drift\n2024-03-01,Zone 2,0%,0%,\n",
    "issuesPost0710": (
        "Date,Zone,Driver Issue,Helper Issue,Breakdown Issue,Workshop Issue,Other Issue\n"
        "2024-03-01,Zone 1,2,1,0,0,0\n"
        "2024-03-01,Zone 2,0,0,0,0,0\n"
    ),
    "fuelStation": 'Date,Zone,Count of Vehicles,Fuel Station Times\n2024-03-01,Zone -2,2,"07:15, 07:40"\n',
    "post06AMOpenIssues": (
        "Date,Zone,Driver Issue,Helper Issue,Breakdown Issue,Workshop Issue,Other Issue\n"
        "2024-03-02,Zone 3,12,0,0,0,0\n"
    ),
    "vehicleBreakdown": (
        "Date,Zone,Vehicle No.,Issue,Breakdown Time,Spare/OK,Spare/OK Time\n"
        "2024-03-01,Zone 1,MH01,Engine,08:00,Spare,09:00\n"
        "2024-03-01,Zone 1,MH02,Tyre,08:30,OK,09:10\n"
        "2024-03-02,Zone 2,MH03,Engine,10:00,OK,11:00\n"
    ),
    "vehicleNumbers": "Date,Zone,Vehicle Numbers,Total Vehicles\n2024-03-01,Zone 1,MH01 / MH02 OPEN,\n",
    "sphereWorkshopExit": (
        "Date,Zone,Ward,Permanent Vehicle Number,Spare Vehicle Number,Workshop Departure Time\n"
        "2024-03-01,Zone 1,12,MH10,MH20,06:30\n"
        "2024-03-01,Zone 1,12,MH11,,\n"
    ),
}


@pytest.fixture
def settings() -> Settings:
    return Settings(spreadsheet_id="test-sheet", http_timeout_seconds=5.0, refresh_interval_seconds=60.0)


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession({SHEET_GIDS[name]: FakeResponse(200, text) for name, text in SHEET_CSV.items()})


@pytest.fixture
def sheet_loader(fake_session, settings):
    return functools.partial(load_sheet, session=fake_session, settings=settings)


@pytest.fixture
def store(sheet_loader, settings) -> DatasetStore:
    return DatasetStore(loader=sheet_loader, settings=settings)
