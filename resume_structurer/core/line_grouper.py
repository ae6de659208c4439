import logging
from typing import List, Sequence

from resume_structurer.core.schemas import Line, TextItem

logger = logging.getLogger(__name__)

LINE_Y_TOLERANCE = 3.0


def _close_line(items: List[TextItem]) -> Line:
    """Order items left to right and move the end-of-line marker onto the last one."""
    ordered = sorted(items, key=lambda item: item.x)
    last = len(ordered) - 1
    return Line(items=[item.model_copy(update={"has_eol": i == last}) for i, item in enumerate(ordered)])


def group_text_items_into_lines(
    items: Sequence[TextItem],
    y_tolerance: float = LINE_Y_TOLERANCE,
) -> List[Line]:
    """
    Cluster text items into lines.

    An item joins the open line while the vertical span of the line (including
    the item) stays within y_tolerance; an item flagged has_eol closes the line.
    Lines come back top to bottom (descending y), items left to right.

    Regrouping the flattened output yields the same lines: every output line
    ends with exactly one has_eol item and its span is already within tolerance.
    """
    lines: List[Line] = []
    current: List[TextItem] = []
    low = high = 0.0

    for item in items:
        if not item.text.strip():
            if item.has_eol and current:
                lines.append(_close_line(current))
                current = []
            continue

        if current and (max(high, item.y) - min(low, item.y) > y_tolerance):
            lines.append(_close_line(current))
            current = []

        if not current:
            low = high = item.y
        current.append(item)
        low, high = min(low, item.y), max(high, item.y)

        if item.has_eol:
            lines.append(_close_line(current))
            current = []

    if current:
        lines.append(_close_line(current))

    # Stable: lines at the same height keep reading order
    lines.sort(key=lambda line: -line.y)
    logger.debug(f"Grouped {len(items)} text items into {len(lines)} lines")
    return lines
