from fractions import Fraction

import pytest

from geom import Classification, Edge, Point, make_points
from shapes import find_shape
from sweep import (
    ActiveEdges,
    EventKind,
    QueryEngine,
    Stage,
    classify_points,
    compare_edges,
)

INSIDE = Classification.INSIDE
OUTSIDE = Classification.OUTSIDE
BORDER = Classification.BORDER


def _edge(a, b, edge_id=-1):
    return Edge(Point(*a), Point(*b), edge_id)


def test_compare_edges_by_height_over_common_span():
    low = _edge((0, 0), (4, 0))
    high = _edge((1, 2), (5, 3))
    assert compare_edges(low, high) == -1
    assert compare_edges(high, low) == 1
    assert compare_edges(low, low) == 0


def test_compare_edges_sharing_an_endpoint():
    flat = _edge((0, 0), (4, 0))
    steep = _edge((4, 4), (0, 0))
    assert compare_edges(flat, steep) == -1

    # Meeting on the right: equal at the shared end, split on the left.
    upper = _edge((0, 3), (4, 2))
    lower = _edge((4, 2), (1, 1))
    assert compare_edges(lower, upper) == -1


def test_compare_edges_against_probe():
    edge = _edge((0, 0), (4, 4))
    assert compare_edges(edge, Edge(Point(2, 3), Point(2, 3))) == -1
    assert compare_edges(edge, Edge(Point(2, 2), Point(2, 2))) == 0
    assert compare_edges(edge, Edge(Point(2, 1), Point(2, 1))) == 1


def test_active_edges_keep_height_order():
    active = ActiveEdges()
    top = _edge((0, 4), (6, 4), 0)
    bottom = _edge((6, 0), (0, 0), 1)
    middle = _edge((1, 2), (5, 2), 2)
    for edge in (top, bottom, middle):
        active.insert(edge)

    assert [edge.id for edge in active] == [1, 2, 0]
    assert active.lower_bound(Point(3, 1)) == 1
    assert active.lower_bound(Point(3, 2)) == 1
    assert active.lower_bound(Point(3, 5)) == 3

    below, above = active.neighbours(Point(3, 3))
    assert below is middle
    assert above is top

    active.remove(middle)
    assert [edge.id for edge in active] == [1, 0]
    with pytest.raises(KeyError):
        active.remove(middle)


def test_active_edges_remove_matches_id_among_equals():
    active = ActiveEdges()
    first = _edge((0, 0), (4, 4), 0)
    twin = _edge((0, 0), (4, 4), 1)
    active.insert(first)
    active.insert(twin)
    active.remove(twin)
    assert [edge.id for edge in active] == [0]


def test_active_edges_remove_rejects_unknown_geometry():
    active = ActiveEdges()
    edge = _edge((0, 0), (4, 4), 5)
    active.insert(edge)
    with pytest.raises(KeyError):
        active.remove(_edge((0, 8), (4, 9), 5))
    assert list(active) == [edge]


def test_event_precedence_at_equal_x():
    assert EventKind.QUERY < EventKind.CLOSE < EventKind.OPEN


@pytest.mark.parametrize(
    "query, expected",
    [
        ((2, 2), INSIDE),
        ((0, 0), BORDER),
        ((4, 2), BORDER),
        ((5, 5), OUTSIDE),
        ((2, 0), BORDER),
    ],
)
def test_square(query, expected):
    square = [(0, 0), (4, 0), (4, 4), (0, 4)]
    assert classify_points(square, [query]) == [expected]


def test_triangle():
    triangle = [(0, 0), (4, 0), (0, 4)]
    assert classify_points(triangle, [(1, 1), (3, 3), (2, 2)]) == [
        INSIDE,
        OUTSIDE,
        BORDER,
    ]


def test_vertical_edge_is_found_by_vertical_pass():
    engine = QueryEngine()
    engine.load(make_points([(0, 0), (0, 4), (4, 4), (4, 0)]), make_points([(0, 2)]))
    engine.build_edges()
    engine.build_events()

    engine._answer_general()
    assert engine.answers == [OUTSIDE]
    engine._answer_vertical()
    assert engine.answers == [BORDER]


def test_vertical_pass_includes_interval_endpoints():
    # The inner wall of the L runs from (2, 2) up to (2, 4).
    shape = find_shape("L_SHAPE")
    queries = [(2, 2), (2, 3), (2, 4), (2, 1), (2, 5), (2, -1)]
    assert classify_points(shape.vertices, queries) == [
        BORDER,
        BORDER,
        BORDER,
        INSIDE,
        OUTSIDE,
        OUTSIDE,
    ]


@pytest.mark.parametrize(
    "query, expected",
    [
        ((2.5, 4), OUTSIDE),
        ((2.5, 1), INSIDE),
        ((2.5, 2), BORDER),
        ((2, 4), BORDER),
        ((2, 1), INSIDE),
        ((2, 7), OUTSIDE),
        ((4, 6), BORDER),
        ((4, 7), OUTSIDE),
        ((1, 5), INSIDE),
        ((5, 4), BORDER),
        ((5.5, 6), OUTSIDE),
        ((8, 3), BORDER),
        ((9, 3), OUTSIDE),
    ],
)
def test_comb(query, expected):
    shape = find_shape("COMB")
    assert classify_points(shape.vertices, [query]) == [expected]


def test_star_center_and_tips():
    shape = find_shape("STAR")
    assert classify_points(shape.vertices, [(5, 4), (5, 0), (9, 3), (5, 7), (0, 0)]) == [
        INSIDE,
        BORDER,
        BORDER,
        OUTSIDE,
        OUTSIDE,
    ]


def test_reversing_vertices_changes_nothing():
    for name in ("SQUARE", "TRIANGLE", "L_SHAPE", "COMB", "STAR"):
        vertices = list(find_shape(name).vertices)
        queries = [(x / 2, y / 2) for x in range(-2, 20) for y in range(-2, 18)]
        assert classify_points(vertices, queries) == classify_points(
            vertices[::-1], queries
        )


def test_run_is_idempotent():
    engine = QueryEngine()
    vertices = find_shape("COMB").points()
    queries = make_points((x, y) for x in range(-1, 10) for y in range(-1, 8))
    first = engine.run(vertices, queries)
    second = engine.run(vertices, queries)
    assert first == second
    assert engine.stage is Stage.ANSWERED


def test_vertex_queries_are_border_at_ingestion():
    engine = QueryEngine()
    engine.load(
        make_points([(0, 0), (4, 0), (4, 4), (0, 4)]), make_points([(4, 4), (1, 1)])
    )
    assert engine.answers == [BORDER, OUTSIDE]


def test_exact_fractions_find_border_points():
    third = Fraction(1, 3)
    triangle = [(Fraction(0), Fraction(0)), (Fraction(4), Fraction(0)), (Fraction(0), Fraction(4))]
    assert classify_points(triangle, [(third, 4 - third), (third, third)]) == [
        BORDER,
        INSIDE,
    ]


def test_huge_exact_coordinates_pass_the_finiteness_check():
    big = Fraction(10 ** 400)
    triangle = [(0, 0), (big, 0), (0, big)]
    assert classify_points(triangle, [(1, 1), (big, big)]) == [INSIDE, OUTSIDE]


def test_degenerate_zero_length_edge_is_tolerated():
    polygon = [(0, 0), (4, 0), (4, 0), (4, 4), (0, 4)]
    assert classify_points(polygon, [(2, 2), (4, 0), (4, 2), (5, 0)]) == [
        INSIDE,
        BORDER,
        BORDER,
        OUTSIDE,
    ]


def test_no_queries():
    assert classify_points([(0, 0), (4, 0), (0, 4)], []) == []


def test_stage_order_is_enforced():
    engine = QueryEngine()
    with pytest.raises(RuntimeError):
        engine.build_edges()

    engine.load(make_points([(0, 0), (4, 0), (0, 4)]), make_points([(1, 1)]))
    with pytest.raises(RuntimeError):
        engine.answer()
    with pytest.raises(RuntimeError):
        engine.labels

    engine.build_edges()
    engine.build_events()
    assert engine.answer() == [INSIDE]
    assert engine.labels == ["INSIDE"]

    with pytest.raises(RuntimeError):
        engine.load(make_points([(0, 0), (4, 0), (0, 4)]), [])
    engine.reset()
    assert engine.stage is Stage.EMPTY


def test_malformed_polygons_are_reported():
    with pytest.raises(ValueError):
        classify_points([(0, 0), (1, 1)], [(0, 0)])
    with pytest.raises(ValueError):
        classify_points([(0, 0), (1, 1), (3, 3)], [(0, 0)])


def test_non_finite_queries_are_rejected():
    with pytest.raises(ValueError, match="non-finite"):
        classify_points([(0, 0), (4, 0), (0, 4)], [(1, 1), (float("nan"), 1)])
