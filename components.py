"""Reusable Streamlit UI components."""
from __future__ import annotations

from typing import Any, Dict, List, Mapping

import pandas as pd
import streamlit as st

from shapes import LOCATION_LABELS
from storage import LOCATION_COLUMN

FILTER_ORDER = (LOCATION_COLUMN,)


def sidebar_filters(df: pd.DataFrame) -> Dict[str, List[Any]]:
    """Render sidebar filters and return selected values for each column."""

    filters: Dict[str, List[Any]] = {}
    if df.empty:
        st.sidebar.info("分類結果があるとフィルタが利用できます。")
        return filters

    st.sidebar.header("フィルタ")
    for column in FILTER_ORDER:
        if column not in df.columns:
            continue
        options = sorted(df[column].dropna().unique().tolist())
        if not options:
            continue
        label = column.capitalize()
        filters[column] = st.sidebar.multiselect(label, options, default=options)

    return filters


def render_location_counts(counts: Mapping[str, int]) -> None:
    """Display one metric per location label."""

    with st.container():
        columns = st.columns(len(LOCATION_LABELS))
        for column, label in zip(columns, LOCATION_LABELS):
            column.metric(label, counts.get(label, 0))
