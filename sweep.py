"""Batched point location by sweeping a vertical line across a polygon.

All queries for one polygon are answered together. Queries whose x matches a
vertical edge are resolved by a sweep along y at that abscissa; everything
else is resolved by a single left-to-right sweep that keeps the edges crossed
by the sweep line ordered by height.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from geom import (
    Classification,
    Coordinate,
    Direction,
    Edge,
    Point,
    Polygon,
    make_points,
    require_finite,
)
from logging_util import timed_log

log = logging.getLogger("polysweep.sweep")


class EventKind(IntEnum):
    """Event kinds, valued by their precedence at equal x in the general sweep."""

    QUERY = 0
    CLOSE = 1
    OPEN = 2


# At equal y an interval opens before a query is read and closes after it,
# so endpoints belong to the interval.
VERTICAL_PRECEDENCE: Dict[EventKind, int] = {
    EventKind.OPEN: -1,
    EventKind.QUERY: 0,
    EventKind.CLOSE: 1,
}


@dataclass(frozen=True)
class Event:
    owner_id: int
    kind: EventKind
    position: Point


class Stage(IntEnum):
    EMPTY = 0
    LOADED = 1
    EDGED = 2
    EVENTED = 3
    ANSWERED = 4


def compare_edges(first: Edge, second: Edge) -> int:
    """Three-way order of two edges by height over their common x-span.

    Both edges are sampled at the left and right ends of the overlap of their
    x-spans and compared on the pair of heights, so edges meeting at a shared
    endpoint are still told apart by where they go next.
    """

    start = max(first.min_x.x, second.min_x.x)
    stop = min(first.max_x.x, second.max_x.x)
    lhs = (first.y_at(start), first.y_at(stop))
    rhs = (second.y_at(start), second.y_at(stop))
    if lhs < rhs:
        return -1
    if lhs > rhs:
        return 1
    return 0


class ActiveEdges:
    """Edges crossed by the sweep line, kept sorted by ``compare_edges``."""

    def __init__(self) -> None:
        self._edges: List[Edge] = []

    def __len__(self) -> int:
        return len(self._edges)

    def __iter__(self) -> Iterator[Edge]:
        return iter(self._edges)

    def __getitem__(self, index: int) -> Edge:
        return self._edges[index]

    def _bisect(self, probe: Edge, right: bool = False) -> int:
        lo, hi = 0, len(self._edges)
        while lo < hi:
            mid = (lo + hi) // 2
            order = compare_edges(self._edges[mid], probe)
            if order < 0 or (right and order == 0):
                lo = mid + 1
            else:
                hi = mid
        return lo

    def insert(self, edge: Edge) -> None:
        self._edges.insert(self._bisect(edge, right=True), edge)

    def remove(self, edge: Edge) -> None:
        """Remove ``edge``, matching its id among comparator-equal entries."""

        index = self._bisect(edge)
        while index < len(self._edges) and compare_edges(self._edges[index], edge) == 0:
            if self._edges[index].id == edge.id:
                del self._edges[index]
                return
            index += 1
        raise KeyError(f"Edge {edge.id} is not in the active set.")

    def lower_bound(self, point: Point) -> int:
        """Index of the first edge whose height at ``point.x`` is >= ``point.y``."""

        return self._bisect(Edge(point, point))

    def neighbours(self, point: Point) -> Tuple[Optional[Edge], Optional[Edge]]:
        """Return the active edges directly below and at-or-above ``point``."""

        index = self.lower_bound(point)
        below = self._edges[index - 1] if index > 0 else None
        above = self._edges[index] if index < len(self._edges) else None
        return below, above


class QueryEngine:
    """Classifies a batch of query points against one polygon.

    The engine walks through ``load``, ``build_edges``, ``build_events`` and
    ``answer`` in that order; ``reset`` returns it to the empty state so the
    instance can serve the next test case. ``run`` performs the whole cycle.
    """

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        """Drop all per-test-case state and return to the empty stage."""

        self.stage = Stage.EMPTY
        self.polygon: Optional[Polygon] = None
        self.queries: List[Point] = []
        self.answers: List[Classification] = []
        self._queries_by_x: Dict[Coordinate, List[Point]] = {}
        self._events: List[Event] = []

    def _require(self, stage: Stage) -> None:
        """Raise a RuntimeError unless the engine is at ``stage``."""

        if self.stage is not stage:
            raise RuntimeError(
                f"Query engine is at stage {self.stage.name}, expected {stage.name}."
            )

    def _raise(self, query_id: int, state: Classification) -> None:
        """Store ``state`` for the query unless a stronger one is recorded."""

        if state > self.answers[query_id]:
            self.answers[query_id] = state

    def load(self, vertices: Sequence[Point], queries: Sequence[Point]) -> None:
        """Ingest the polygon and the queries, numbering both by position."""

        self._require(Stage.EMPTY)
        self.polygon = Polygon(make_points((p.x, p.y) for p in vertices))
        self.queries = make_points((q.x, q.y) for q in queries)
        require_finite(self.queries, "query")
        self.answers = [Classification.OUTSIDE] * len(self.queries)

        by_x: Dict[Coordinate, List[Point]] = defaultdict(list)
        for query in self.queries:
            if self.polygon.contains_vertex(query):
                self._raise(query.id, Classification.BORDER)
            by_x[query.x].append(query)
        self._queries_by_x = dict(by_x)

        log.debug(
            "loaded %d vertices and %d queries", len(self.polygon), len(self.queries)
        )
        self.stage = Stage.LOADED

    def build_edges(self) -> None:
        """Normalize the polygon orientation and derive its edges."""

        self._require(Stage.LOADED)
        self.polygon.normalize()
        self.polygon.build_edges()
        self.stage = Stage.EDGED

    def build_events(self) -> None:
        """Create and sort the events of the general sweep."""

        self._require(Stage.EDGED)
        events: List[Event] = []
        for edge in self.polygon.edges:
            if edge.direction is Direction.VERTICAL:
                continue
            events.append(Event(edge.id, EventKind.OPEN, edge.min_x))
            events.append(Event(edge.id, EventKind.CLOSE, edge.max_x))
        events.extend(Event(q.id, EventKind.QUERY, q) for q in self.queries)

        events.sort(key=lambda event: (event.position.x, event.kind))
        self._events = events
        self.stage = Stage.EVENTED

    def answer(self) -> List[Classification]:
        """Run both passes and return one classification per query."""

        self._require(Stage.EVENTED)
        with timed_log(log.debug, "vertical-edge pass took {time:.6f}s"):
            self._answer_vertical()
        with timed_log(log.debug, "general sweep took {time:.6f}s"):
            self._answer_general()
        self.stage = Stage.ANSWERED
        return list(self.answers)

    def _answer_vertical(self) -> None:
        for x, queries in self._queries_by_x.items():
            events: List[Event] = []
            for index, edge in enumerate(self.polygon.vertical_edges_at(x)):
                events.append(Event(index, EventKind.OPEN, edge.min_y))
                events.append(Event(index, EventKind.CLOSE, edge.max_y))
            if not events:
                continue
            events.extend(Event(q.id, EventKind.QUERY, q) for q in queries)
            events.sort(
                key=lambda event: (event.position.y, VERTICAL_PRECEDENCE[event.kind])
            )

            depth = 0
            for event in events:
                if event.kind is EventKind.OPEN:
                    depth += 1
                elif event.kind is EventKind.CLOSE:
                    depth -= 1
                elif depth > 0:
                    self._raise(event.owner_id, Classification.BORDER)

    def _answer_general(self) -> None:
        active = ActiveEdges()
        edges = self.polygon.edges
        for event in self._events:
            if event.kind is EventKind.OPEN:
                active.insert(edges[event.owner_id])
            elif event.kind is EventKind.CLOSE:
                active.remove(edges[event.owner_id])
            elif len(active):
                self._locate(active, event.owner_id, event.position)

    def _locate(self, active: ActiveEdges, query_id: int, point: Point) -> None:
        below, above = active.neighbours(point)
        if above is not None and above.y_at(point.x) == point.y:
            self._raise(query_id, Classification.BORDER)
        # The lower chain runs towards decreasing x once the polygon is normalized.
        if below is not None and below.direction is Direction.FALLING_X:
            self._raise(query_id, Classification.INSIDE)

    @property
    def labels(self) -> List[str]:
        self._require(Stage.ANSWERED)
        return [state.name for state in self.answers]

    def run(
        self, vertices: Sequence[Point], queries: Sequence[Point]
    ) -> List[Classification]:
        """Classify ``queries`` against ``vertices`` from a clean state."""

        self.reset()
        self.load(vertices, queries)
        self.build_edges()
        self.build_events()
        return self.answer()


def classify_points(
    vertices: Iterable[Tuple[Coordinate, Coordinate]],
    queries: Iterable[Tuple[Coordinate, Coordinate]],
) -> List[Classification]:
    """Classify coordinate pairs against the polygon through ``vertices``."""

    return QueryEngine().run(make_points(vertices), make_points(queries))
