"""Geometry primitives for batched point-location queries."""
from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from fractions import Fraction
from typing import Dict, FrozenSet, Iterable, Iterator, List, Sequence, Tuple, Union

log = logging.getLogger("polysweep.geom")

Coordinate = Union[int, float, Fraction]


class Classification(IntEnum):
    """Location of a query point; larger values take precedence."""

    OUTSIDE = 0
    INSIDE = 1
    BORDER = 2


class Direction(Enum):
    """Sweep class of an edge, derived from the x order of its endpoints."""

    VERTICAL = "vertical"
    RISING_X = "rising_x"
    FALLING_X = "falling_x"


@dataclass(frozen=True, order=True)
class Point:
    """Represents a 2D point; ``id`` is its index within the input list."""

    x: Coordinate
    y: Coordinate
    id: int = field(default=-1, compare=False)

    def cross(self, other: Point) -> Coordinate:
        """Return the z component of the cross product with ``other``."""

        return self.x * other.y - self.y * other.x


def make_points(pairs: Iterable[Tuple[Coordinate, Coordinate]]) -> List[Point]:
    """Wrap coordinate pairs into points numbered by input position."""

    return [Point(x, y, index) for index, (x, y) in enumerate(pairs)]


def require_finite(points: Iterable[Point], what: str) -> None:
    """Raise a ValueError when any coordinate is NaN or infinite."""

    for point in points:
        # Only floats can be non-finite; exact types may not fit in a float.
        if any(isinstance(c, float) and not math.isfinite(c) for c in (point.x, point.y)):
            raise ValueError(
                f"The {what} {point.id} has a non-finite coordinate ({point.x}, {point.y})."
            )


@dataclass(frozen=True)
class Edge:
    """Directed segment between two consecutive polygon vertices."""

    left: Point
    right: Point
    id: int = -1
    direction: Direction = field(init=False, compare=False)

    def __post_init__(self) -> None:
        if self.left.x == self.right.x:
            direction = Direction.VERTICAL
        elif self.left.x < self.right.x:
            direction = Direction.RISING_X
        else:
            direction = Direction.FALLING_X
        object.__setattr__(self, "direction", direction)

    @property
    def min_x(self) -> Point:
        """Endpoint with the smaller x; the right one when the x values tie."""

        return self.left if self.left.x < self.right.x else self.right

    @property
    def max_x(self) -> Point:
        """Endpoint with the larger x; the left one when the x values tie."""

        return self.right if self.left.x < self.right.x else self.left

    @property
    def min_y(self) -> Point:
        """Endpoint with the smaller y."""

        return self.left if self.left.y < self.right.y else self.right

    @property
    def max_y(self) -> Point:
        """Endpoint with the larger y."""

        return self.right if self.left.y < self.right.y else self.left

    def y_at(self, x: Coordinate) -> Coordinate:
        """Interpolate the height of the edge's supporting line at ``x``.

        A zero-width edge has no slope, so the height of its first endpoint is
        returned. Endpoint abscissae return the endpoint height verbatim so
        that edges sharing a vertex agree exactly there.
        """

        low, high = self.min_x, self.max_x
        if low.x == high.x:
            return self.left.y
        if x == low.x:
            return low.y
        if x == high.x:
            return high.y
        return low.y + (high.y - low.y) * (x - low.x) / (high.x - low.x)


@dataclass
class Polygon:
    """Represents a simple polygon defined by a sequence of vertices."""

    vertices: Sequence[Point]
    edges: Tuple[Edge, ...] = field(init=False, default=())
    vertical_edges: Dict[Coordinate, List[Edge]] = field(
        init=False, default_factory=dict
    )
    vertex_set: FrozenSet[Point] = field(init=False, default=frozenset())

    def __post_init__(self) -> None:
        if len(self.vertices) < 3:
            raise ValueError("A polygon requires at least three vertices.")
        require_finite(self.vertices, "vertex")
        # Convert to tuple to avoid accidental mutation of the original sequence.
        self.vertices = tuple(self.vertices)
        self.vertex_set = frozenset(self.vertices)

    def __iter__(self) -> Iterator[Point]:
        """Iterate over points that belong to the polygon."""

        return iter(self.vertices)

    def __len__(self) -> int:
        return len(self.vertices)

    def signed_area(self) -> Coordinate:
        """Return the shoelace area; positive for counter-clockwise input."""

        count = len(self.vertices)
        total = sum(
            self.vertices[i].cross(self.vertices[(i + 1) % count])
            for i in range(count)
        )
        return total / 2

    def normalize(self) -> Polygon:
        """Reverse the vertex order when the shoelace sum is positive."""

        area = self.signed_area()
        if area == 0:
            raise ValueError("Polygon encloses zero area.")
        if area > 0:
            log.debug("reversing %d vertices (area %s)", len(self.vertices), area)
            self.vertices = tuple(reversed(self.vertices))
        return self

    def build_edges(self) -> Tuple[Edge, ...]:
        """Derive the cyclic edge list and index vertical edges by x."""

        count = len(self.vertices)
        edges: List[Edge] = []
        vertical: Dict[Coordinate, List[Edge]] = defaultdict(list)
        for index, start in enumerate(self.vertices):
            edge = Edge(start, self.vertices[(index + 1) % count], index)
            edges.append(edge)
            if edge.direction is Direction.VERTICAL:
                vertical[start.x].append(edge)

        self.edges = tuple(edges)
        self.vertical_edges = dict(vertical)
        return self.edges

    def vertical_edges_at(self, x: Coordinate) -> Sequence[Edge]:
        """Return the vertical edges lying on the line through ``x``."""

        return self.vertical_edges.get(x, ())

    def contains_vertex(self, point: Point) -> bool:
        """Return True when ``point`` coincides with a vertex."""

        return point in self.vertex_set


def _on_segment(point: Point, start: Point, end: Point) -> bool:
    if (end.x - start.x) * (point.y - start.y) != (end.y - start.y) * (point.x - start.x):
        return False
    min_x, max_x = sorted((start.x, end.x))
    min_y, max_y = sorted((start.y, end.y))
    return min_x <= point.x <= max_x and min_y <= point.y <= max_y


def point_in_polygon(point: Point, polygon: Polygon) -> Classification:
    """Classify one point by crossing parity, testing every edge."""

    x, y = point.x, point.y
    inside = False
    vertices = polygon.vertices
    n = len(vertices)

    for i in range(n):
        j = (i - 1) % n
        if _on_segment(point, vertices[j], vertices[i]):
            return Classification.BORDER

        xi, yi = vertices[i].x, vertices[i].y
        xj, yj = vertices[j].x, vertices[j].y
        if (yi > y) != (yj > y):
            intersect_x = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < intersect_x:
                inside = not inside

    return Classification.INSIDE if inside else Classification.OUTSIDE
