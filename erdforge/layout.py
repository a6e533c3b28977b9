"""
Deterministic placement of table footprints on the diagram surface.

- arrange_tables: batch grid scan used after an import (algorithm A).
- place_new_table: the same scan for one interactively added table (algorithm B).
- resolve_overlaps: pushes tables down once real rendered sizes are known (algorithm C).

All three share rects_overlap and the configured margin, so a layout from A or B
is already a fixpoint of C when the estimated sizes hold.
"""

import logging
from collections import namedtuple
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from .config import DEFAULT_LAYOUT, LayoutConfig
from .model import Column, SchemaModel, Table, next_table_name

logger = logging.getLogger(__name__)

Rect = namedtuple("Rect", ["x", "y", "width", "height"])

Size = Tuple[float, float]


def rects_overlap(a: Rect, b: Rect, margin: float) -> bool:
    """True when the margin-inflated boxes of a and b intersect on both axes."""
    overlaps_x = a.x < b.x + b.width + margin and a.x + a.width + margin > b.x
    overlaps_y = a.y < b.y + b.height + margin and a.y + a.height + margin > b.y
    return overlaps_x and overlaps_y


def estimate_table_size(table: Table, config: LayoutConfig = DEFAULT_LAYOUT) -> Size:
    max_chars = max(len(table.name or ""), len(table.comment or ""))
    for column in table.columns:
        max_chars = max(max_chars, len(column.name or ""))
        if column.data_type:
            max_chars = max(max_chars, len(column.data_type) + config.type_padding_chars)
        max_chars = max(max_chars, len(column.comment or ""))

    width = max_chars * config.char_width + config.width_padding
    width = min(max(width, config.min_width), config.max_width)
    height = config.base_height + len(table.columns) * config.row_height
    return width, height


def find_free_position(
    placed: Sequence[Rect],
    width: float,
    height: float,
    config: LayoutConfig = DEFAULT_LAYOUT,
) -> Tuple[float, float]:
    """First row-major origin inside the bounds that collides with nothing placed.

    Falls back to the start position (accepting an overlap) when the scan is exhausted.
    """
    y = config.start_y
    while y < config.max_y:
        x = config.start_x
        while x < config.max_x:
            candidate = Rect(x, y, width, height)
            if not any(rects_overlap(candidate, other, config.margin) for other in placed):
                return x, y
            x += config.step_x
        y += config.step_y
    logger.debug("No free slot for %sx%s footprint; using start position", width, height)
    return config.start_x, config.start_y


def arrange_tables(tables: Iterable[Table], config: LayoutConfig = DEFAULT_LAYOUT) -> List[Rect]:
    """Place tables in input order; mutates x/y and returns the placed rectangles."""
    placed: List[Rect] = []
    for table in tables:
        width, height = estimate_table_size(table, config)
        x, y = find_free_position(placed, width, height, config)
        table.x, table.y = x, y
        placed.append(Rect(x, y, width, height))
    return placed


def _footprint(
    table: Table, sizes: Optional[Mapping[str, Size]], config: LayoutConfig
) -> Size:
    if sizes is not None and table.id in sizes:
        return sizes[table.id]
    return estimate_table_size(table, config)


def place_new_table(
    model: SchemaModel,
    table: Table,
    config: LayoutConfig = DEFAULT_LAYOUT,
    sizes: Optional[Mapping[str, Size]] = None,
) -> Tuple[float, float]:
    """Position one table against the tables already in the model.

    `sizes` maps table id -> measured (width, height); missing entries are estimated.
    """
    placed = [
        Rect(t.x, t.y, *_footprint(t, sizes, config)) for t in model.tables if t.id != table.id
    ]
    width, height = _footprint(table, sizes, config)
    table.x, table.y = find_free_position(placed, width, height, config)
    return table.x, table.y


def new_default_table(model: SchemaModel, config: LayoutConfig = DEFAULT_LAYOUT) -> Table:
    """A fresh two-column table with a unique NEW_TABLE name, already positioned."""
    table = Table(name=next_table_name(model), comment="comment")
    table.columns = [
        Column("ID", "NUMBER", is_primary_key=True, is_nullable=False),
        Column("NAME", "VARCHAR2(100)"),
    ]
    place_new_table(model, table, config)
    return table


def _measured(table: Table, sizes: Mapping[str, Size], config: LayoutConfig) -> Rect:
    width, height = sizes.get(table.id, (config.default_width, config.default_height))
    return Rect(table.x, table.y, width, height)


def resolve_overlaps(
    tables: Sequence[Table],
    sizes: Mapping[str, Size],
    config: LayoutConfig = DEFAULT_LAYOUT,
) -> int:
    """Push colliding tables down until no ordered pair overlaps or the cap is hit.

    Iterates in the given (creation) order, so the result is deterministic.
    Returns the number of passes run.
    """
    tables = list(tables)
    passes = 0
    changed = True
    while changed and passes < config.max_iterations:
        changed = False
        for first in tables:
            for second in tables:
                if first is second:
                    continue
                a = _measured(first, sizes, config)
                b = _measured(second, sizes, config)
                if rects_overlap(a, b, config.margin):
                    second.y = a.y + a.height + config.margin
                    changed = True
        passes += 1
    if changed:
        logger.warning("Overlap resolution stopped after %d passes", passes)
    return passes


def diagram_bounds(
    tables: Iterable[Table],
    sizes: Optional[Mapping[str, Size]] = None,
    config: LayoutConfig = DEFAULT_LAYOUT,
) -> Optional[Rect]:
    """Bounding box of all tables, or None for an empty diagram."""
    rects = []
    for table in tables:
        if sizes is not None and table.id in sizes:
            width, height = sizes[table.id]
        else:
            width, height = estimate_table_size(table, config)
        rects.append(Rect(table.x, table.y, width, height))
    if not rects:
        return None
    min_x = min(r.x for r in rects)
    min_y = min(r.y for r in rects)
    max_x = max(r.x + r.width for r in rects)
    max_y = max(r.y + r.height for r in rects)
    return Rect(min_x, min_y, max_x - min_x, max_y - min_y)
