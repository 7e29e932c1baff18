"""Named demo polygons and query generators built on the geometry primitives."""
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Final, List, Optional, Sequence, Tuple

from geom import Classification, Point, make_points

LOCATION_LABELS: Final[Tuple[str, ...]] = tuple(
    state.name for state in Classification
)
"""Location labels in precedence order."""


@dataclass(frozen=True)
class Shape:
    """Named polygon given by its vertex coordinates in traversal order."""

    name: str
    vertices: Tuple[Tuple[float, float], ...]

    def points(self) -> List[Point]:
        return make_points(self.vertices)

    def bounds(self) -> Tuple[float, float, float, float]:
        """Return ``(min_x, min_y, max_x, max_y)`` of the vertices."""

        xs = [x for x, _ in self.vertices]
        ys = [y for _, y in self.vertices]
        return min(xs), min(ys), max(xs), max(ys)


def load_default_shapes() -> List[Shape]:
    """Create the demo polygons offered by the app and used in examples."""

    return [
        Shape("SQUARE", ((0, 0), (4, 0), (4, 4), (0, 4))),
        Shape("TRIANGLE", ((0, 0), (4, 0), (0, 4))),
        Shape("CLOCKWISE_SQUARE", ((0, 0), (0, 4), (4, 4), (4, 0))),
        Shape("L_SHAPE", ((0, 0), (0, 4), (2, 4), (2, 2), (4, 2), (4, 0))),
        Shape(
            "COMB",
            (
                (0, 0), (8, 0), (8, 6), (6, 6), (6, 2), (5, 2),
                (5, 6), (3, 6), (3, 2), (2, 2), (2, 6), (0, 6),
            ),
        ),
        Shape(
            "STAR",
            (
                (5, 0), (6, 3), (9, 3), (7, 5), (8, 8),
                (5, 6), (2, 8), (3, 5), (1, 3), (4, 3),
            ),
        ),
    ]


def find_shape(name: str, shapes: Optional[Sequence[Shape]] = None) -> Shape:
    """Return the shape called ``name`` or raise a ValueError."""

    for shape in shapes if shapes is not None else load_default_shapes():
        if shape.name == name:
            return shape
    raise ValueError(f"Unknown shape '{name}'.")


def random_queries(
    shape: Shape, count: int, seed: Optional[int] = None
) -> List[Point]:
    """Draw integer points from the shape's bounding box padded by one unit.

    Integer coordinates land on vertices and edges often enough to exercise
    the BORDER cases.
    """

    rng = random.Random(seed)
    min_x, min_y, max_x, max_y = shape.bounds()
    low_x, high_x = int(min_x) - 1, int(max_x) + 1
    low_y, high_y = int(min_y) - 1, int(max_y) + 1
    return make_points(
        (rng.randint(low_x, high_x), rng.randint(low_y, high_y))
        for _ in range(count)
    )
