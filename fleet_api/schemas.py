from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DateRangeModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None


class FilterStateModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    dateRange: DateRangeModel = Field(default_factory=DateRangeModel)
    quickDate: Optional[str] = None
    selectedZone: Optional[str] = None
    tripCountFilter: str = "all"
    sheetName: Optional[str] = None


class SheetMeta(BaseModel):
    name: str
    title: str


class MetaSheetsResponse(BaseModel):
    sheets: List[SheetMeta]


class MetaListResponse(BaseModel):
    values: List[str]


class RefreshResponse(BaseModel):
    refreshed_at: Optional[str]
    row_counts: Dict[str, int]
    errors: Dict[str, str]
