"""Streamlit app for classifying query points against a polygon in one sweep."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import pandas as pd
import streamlit as st

try:
    import matplotlib.pyplot as plt
except ModuleNotFoundError as exc:
    st.error(
        "matplotlib が必要です。環境にインストールされていない場合は `pip install matplotlib` を実行してください。"
    )
    st.stop()

from components import render_location_counts, sidebar_filters
from geom import Point
from shapes import Shape, load_default_shapes, random_queries
from storage import (
    LOCATION_COLUMN,
    attach_locations,
    normalize_columns,
    points_from_frame,
    read_csv,
    write_csv,
)
from sweep import QueryEngine

st.set_page_config(page_title="ポリゴン内外判定", layout="wide")
st.title("📐 ポリゴン内外判定アプリ")

LOCATION_STYLES = {
    "INSIDE": ("tab:green", "o"),
    "OUTSIDE": ("tab:gray", "x"),
    "BORDER": ("tab:red", "s"),
}


def init_session_state(shapes: Iterable[Shape]) -> None:
    """Ensure session_state holds persistent data structures."""

    if "shapes" not in st.session_state:
        st.session_state["shapes"] = list(shapes)
    if "polygon_df" not in st.session_state:
        st.session_state["polygon_df"] = None
    if "query_df" not in st.session_state:
        st.session_state["query_df"] = None
    if "results" not in st.session_state:
        st.session_state["results"] = pd.DataFrame(columns=["x", "y", LOCATION_COLUMN])


def frame_from_points(points: Iterable[Point]) -> pd.DataFrame:
    """Build an x/y DataFrame from points in their given order."""

    return pd.DataFrame([(p.x, p.y) for p in points], columns=["x", "y"])


def choose_mapping(df: pd.DataFrame, key: str) -> Dict[str, str]:
    """Let the user map two CSV columns onto x and y."""

    columns = df.columns.tolist()
    mapping: Dict[str, str] = {}
    for position, target in enumerate(("x", "y")):
        default = target if target in columns else columns[min(position, len(columns) - 1)]
        mapping[target] = st.selectbox(
            f"{target} 列", columns, index=columns.index(default), key=f"{key}_{target}"
        )
    return mapping


def load_frame(label: str, key: str) -> Optional[pd.DataFrame]:
    """Upload a CSV and normalise its coordinate columns, reporting errors."""

    uploaded_file = st.file_uploader(label, type=["csv"], key=f"{key}_upload")
    if uploaded_file is None:
        return None
    try:
        dataframe = read_csv(uploaded_file)
    except Exception as exc:  # pragma: no cover - Streamlit runtime feedback
        st.error(f"読み込みエラー: {exc}")
        return None

    mapping = choose_mapping(dataframe, key)
    try:
        return normalize_columns(dataframe, mapping)
    except ValueError as exc:
        st.error(f"マッピングエラー: {exc}")
        return None


def classify_dataframe(polygon_df: pd.DataFrame, query_df: pd.DataFrame) -> pd.DataFrame:
    """Append a location column by sweeping all queries at once."""

    engine = QueryEngine()
    states = engine.run(points_from_frame(polygon_df), points_from_frame(query_df))
    return attach_locations(query_df, states)


def render_page_a(shapes: List[Shape]) -> None:
    """Render polygon and query import, classification, and download workflow."""

    st.subheader("Page A: データ取り込みと判定")

    st.markdown("#### ポリゴン")
    names = ["--CSV--"] + [shape.name for shape in shapes]
    choice = st.selectbox("デモ図形", names, index=1)
    if choice == "--CSV--":
        polygon_df = load_frame("頂点CSVファイル", "polygon")
        if polygon_df is not None:
            st.session_state["polygon_df"] = polygon_df
    else:
        shape = next(shape for shape in shapes if shape.name == choice)
        st.session_state["polygon_df"] = frame_from_points(shape.points())

    st.markdown("#### クエリ点")
    query_df = load_frame("クエリCSVファイル", "query")
    if query_df is not None:
        st.session_state["query_df"] = query_df

    count = st.number_input("ランダム点の個数", min_value=1, max_value=5000, value=200)
    if st.button("ランダムなクエリ点を生成"):
        if choice == "--CSV--":
            st.warning("ランダム生成はデモ図形を選択した場合のみ利用できます。")
        else:
            shape = next(shape for shape in shapes if shape.name == choice)
            st.session_state["query_df"] = frame_from_points(random_queries(shape, int(count)))
            st.info("ランダムなクエリ点を生成しました。")

    polygon_df = st.session_state["polygon_df"]
    query_df = st.session_state["query_df"]
    if polygon_df is None or query_df is None:
        st.warning("ポリゴンとクエリ点の両方を用意してください。")
        return

    if st.button("判定を実行"):
        try:
            st.session_state["results"] = classify_dataframe(polygon_df, query_df)
        except ValueError as exc:
            st.error(f"ポリゴンエラー: {exc}")
            return
        st.success("判定が完了しました。Page Bで可視化できます。")

    results: pd.DataFrame = st.session_state["results"]
    if results.empty:
        st.info("判定結果がありません。")
        return

    st.markdown("#### 判定結果のプレビュー")
    st.dataframe(results.head())

    st.download_button(
        label="判定結果CSVをダウンロード",
        data=write_csv(results),
        file_name="points_with_locations.csv",
        mime="text/csv",
    )


def apply_filters(df: pd.DataFrame, filters: Dict[str, List[Any]]) -> pd.DataFrame:
    """Filter the dataframe based on sidebar selections."""

    filtered = df.copy()
    for column, selected in filters.items():
        if column not in filtered.columns or not selected:
            continue
        filtered = filtered[filtered[column].isin(selected)]
    return filtered


def render_page_b(filters: Dict[str, List[Any]]) -> None:
    """Render the polygon with classified points and per-label counts."""

    st.subheader("Page B: 可視化と集計")
    results: pd.DataFrame = st.session_state["results"]
    polygon_df: Optional[pd.DataFrame] = st.session_state["polygon_df"]

    if results.empty or polygon_df is None:
        st.warning("Page Aで判定を実行すると可視化できます。")
        return

    filtered_df = apply_filters(results, filters)
    if filtered_df.empty:
        st.warning("選択されたフィルタに一致するデータがありません。")
        return

    counts = filtered_df[LOCATION_COLUMN].value_counts().to_dict()
    render_location_counts(counts)

    fig, ax = plt.subplots(figsize=(6, 6))
    outline = pd.concat([polygon_df, polygon_df.head(1)])
    ax.plot(outline["x"], outline["y"], c="tab:blue", linewidth=1.5)

    for label, (color, marker) in LOCATION_STYLES.items():
        subset = filtered_df[filtered_df[LOCATION_COLUMN] == label]
        if not subset.empty:
            ax.scatter(subset["x"], subset["y"], c=color, label=label, marker=marker)

    ax.set_aspect("equal")
    ax.legend()
    ax.set_title("Point Location")

    st.pyplot(fig)
    plt.close(fig)

    st.markdown("#### フィルタ後データ")
    st.dataframe(filtered_df)


def main() -> None:
    """Application entry point."""

    init_session_state(load_default_shapes())

    filters = sidebar_filters(st.session_state["results"])
    page = st.selectbox("表示ページ", ("Page A", "Page B"))

    if page == "Page A":
        render_page_a(st.session_state["shapes"])
    else:
        render_page_b(filters)


if __name__ == "__main__":
    main()
