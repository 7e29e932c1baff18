"""Command line entry point: classify query points read from a text stream."""
from __future__ import annotations

import argparse
import logging
import sys
from fractions import Fraction
from typing import IO, List, Optional, Sequence

from geom import Polygon, point_in_polygon, require_finite
from logging_util import configure_logging, timed_log
from storage import CoordinateParser, QueryBatch, read_test_cases, write_labels
from sweep import QueryEngine

log = logging.getLogger("polysweep.solve")


def solve_batch(batch: QueryBatch, naive: bool = False) -> List[str]:
    """Return one label per query; raises ValueError for malformed polygons."""

    if naive:
        polygon = Polygon(batch.vertices).normalize()
        require_finite(batch.queries, "query")
        return [point_in_polygon(query, polygon).name for query in batch.queries]

    engine = QueryEngine()
    engine.run(batch.vertices, batch.queries)
    return engine.labels


def solve(
    source: IO[str],
    sink: IO[str],
    parse: CoordinateParser = float,
    naive: bool = False,
) -> int:
    """Answer every test case in ``source`` and return how many were malformed."""

    malformed = 0
    for batch in read_test_cases(source, parse):
        try:
            with timed_log(log.info, f"test case {batch.number} took {{time:.4f}}s"):
                labels = solve_batch(batch, naive=naive)
        except ValueError as exc:
            malformed += 1
            log.error("test case %d skipped: %s", batch.number, exc)
            continue
        write_labels(labels, sink)
    return malformed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="polysweep",
        description="Classify points as INSIDE, OUTSIDE or BORDER of a polygon.",
    )
    parser.add_argument(
        "input",
        nargs="?",
        type=argparse.FileType("r"),
        default=sys.stdin,
        help="test cases to read (default: stdin)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=argparse.FileType("w"),
        default=sys.stdout,
        help="where to write the labels (default: stdout)",
    )
    parser.add_argument(
        "--exact",
        action="store_true",
        help="parse coordinates as exact fractions instead of floats",
    )
    parser.add_argument(
        "--naive",
        action="store_true",
        help="test each point against every edge instead of sweeping",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    parse: CoordinateParser = Fraction if args.exact else float
    try:
        malformed = solve(args.input, args.output, parse=parse, naive=args.naive)
    except ValueError as exc:
        log.error("cannot read input: %s", exc)
        return 2
    finally:
        args.output.flush()

    return 1 if malformed else 0


if __name__ == "__main__":
    sys.exit(main())
