from __future__ import annotations

import logging
import warnings

import pandas as pd

logger = logging.getLogger(__name__)


def normalize_date(value: object) -> str:
    """Reformat any parseable date to ``YYYY-MM-DD``; return the input unchanged otherwise.

    Shared by the transformers and the filter engine, so the same input always
    produces the same output in both places. Never raises.
    """
    if value is None:
        return ""
    original = str(value)
    text = original.strip()
    if not text:
        return original
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            parsed = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError) as exc:
        logger.debug("date %r not parseable: %s", text, exc)
        return original
    if parsed is None or pd.isna(parsed):
        return original
    # strftime("%Y") does not zero-pad years below 1000 on every platform.
    return f"{parsed.year:04d}-{parsed.month:02d}-{parsed.day:02d}"
