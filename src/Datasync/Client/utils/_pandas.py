# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Internal pandas helpers"""

from __future__ import annotations

import dataclasses
from typing import Any, Dict, List, Sequence

import pandas as pd


def item_to_record(item: Any) -> Dict[str, Any]:
    """Convert one query result item (dataclass instance or dict) to a flat dict."""
    if dataclasses.is_dataclass(item) and not isinstance(item, type):
        return {f.name: getattr(item, f.name) for f in dataclasses.fields(item)}
    if isinstance(item, dict):
        return dict(item)
    raise TypeError(f"Cannot convert {type(item).__name__} to a DataFrame row")


def items_to_dataframe(items: Sequence[Any]) -> pd.DataFrame:
    """Build a DataFrame with one row per item, columns in first-seen order.

    :param items: Query result items.
    """
    records: List[Dict[str, Any]] = [item_to_record(item) for item in items]
    return pd.DataFrame.from_records(records)
