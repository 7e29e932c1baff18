"""IO helpers for reading test cases and CSV data, and exporting results."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import (
    IO,
    Callable,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Sequence,
    Union,
)

import pandas as pd

from geom import Classification, Coordinate, Point

PathLike = Union[str, Path]
FileLike = Union[IO[str], IO[bytes]]
CoordinateParser = Callable[[str], Coordinate]

LOCATION_COLUMN = "location"


@dataclass
class QueryBatch:
    """One test case: a polygon and the points to classify against it."""

    number: int
    vertices: List[Point]
    queries: List[Point]


def _tokens(stream: IO[str]) -> Iterator[str]:
    """Yield whitespace-separated tokens across all lines of ``stream``."""

    for line in stream:
        yield from line.split()


def _next_token(tokens: Iterator[str], what: str) -> str:
    try:
        return next(tokens)
    except StopIteration as exc:
        raise ValueError(f"Unexpected end of input while reading {what}.") from exc


def _read_count(tokens: Iterator[str], what: str) -> int:
    token = _next_token(tokens, what)
    try:
        value = int(token)
    except ValueError as exc:
        raise ValueError(f"Expected an integer {what}, got '{token}'.") from exc
    if value < 0:
        raise ValueError(f"The {what} cannot be negative, got {value}.")
    return value


def _read_points(
    tokens: Iterator[str], count: int, parse: CoordinateParser, what: str
) -> List[Point]:
    points = []
    for index in range(count):
        coordinates = []
        for axis in ("x", "y"):
            token = _next_token(tokens, f"{what} {index} {axis}")
            try:
                coordinates.append(parse(token))
            except (ValueError, ZeroDivisionError) as exc:
                raise ValueError(
                    f"Coordinate '{token}' of {what} {index} is not a number."
                ) from exc
        points.append(Point(coordinates[0], coordinates[1], index))
    return points


def read_test_cases(
    stream: IO[str], parse: CoordinateParser = float
) -> Iterator[QueryBatch]:
    """Lazily read ``T`` test cases of polygon vertices followed by queries."""

    tokens = _tokens(stream)
    total = _read_count(tokens, "test case count")
    for number in range(total):
        size = _read_count(tokens, "vertex count")
        vertices = _read_points(tokens, size, parse, "vertex")
        count = _read_count(tokens, "query count")
        queries = _read_points(tokens, count, parse, "query")
        yield QueryBatch(number, vertices, queries)


def write_labels(labels: Iterable[str], stream: IO[str]) -> None:
    """Write one label per line."""

    for label in labels:
        stream.write(f"{label}\n")


def read_csv(path_or_file: Union[PathLike, FileLike]) -> pd.DataFrame:
    """Load a CSV into a DataFrame and raise a ValueError on failure."""

    try:
        df = pd.read_csv(path_or_file)
    except FileNotFoundError as exc:
        raise FileNotFoundError("CSV file not found.") from exc
    except Exception as exc:  # pragma: no cover - pandas composes different errors
        raise ValueError(f"Failed to read CSV: {exc}") from exc

    if df.empty:
        raise ValueError("CSV is empty. Add coordinate rows before importing.")
    return df


def normalize_columns(df: pd.DataFrame, mapping: Mapping[str, str]) -> pd.DataFrame:
    """Rename the mapped coordinate columns to x and y and validate them."""

    required = {"x", "y"}
    missing_targets = required.difference(mapping.keys())
    if missing_targets:
        raise ValueError(f"Missing mappings for: {', '.join(sorted(missing_targets))}.")

    rename_map: Dict[str, str] = {}
    for target, source in mapping.items():
        if source not in df.columns:
            raise ValueError(f"Source column '{source}' not found in the imported data.")
        rename_map[source] = target

    normalized = df.rename(columns=rename_map).copy()

    for coordinate in ("x", "y"):
        normalized[coordinate] = pd.to_numeric(
            normalized[coordinate], errors="coerce"
        )
        if normalized[coordinate].isna().any():
            raise ValueError(
                f"Column '{coordinate}' contains non-numeric values after conversion."
            )
        if (normalized[coordinate].abs() == float("inf")).any():
            raise ValueError(f"Column '{coordinate}' contains infinite values.")

    return normalized.reset_index(drop=True)


def points_from_frame(df: pd.DataFrame) -> List[Point]:
    """Turn the x and y columns into points numbered by row position."""

    return [
        Point(float(x), float(y), index)
        for index, (x, y) in enumerate(zip(df["x"], df["y"]))
    ]


def attach_locations(
    df: pd.DataFrame, classifications: Sequence[Classification]
) -> pd.DataFrame:
    """Return a copy of the queries with a location label per row."""

    if len(classifications) != len(df):
        raise ValueError(
            f"Got {len(classifications)} classifications for {len(df)} rows."
        )
    located = df.copy()
    located[LOCATION_COLUMN] = [state.name for state in classifications]
    return located


def write_csv(df: pd.DataFrame) -> bytes:
    """Serialise the DataFrame into UTF-8 encoded CSV bytes."""

    return df.to_csv(index=False).encode("utf-8")
