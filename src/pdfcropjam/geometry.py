from __future__ import annotations

import logging
from typing import Sequence, Tuple

import numpy as np

from .errors import SelectorRangeError
from .margins import round_half_away
from .selector import expand_pages
from .types import BoundingBox, Margin, SelectorToken

log = logging.getLogger(__name__)


def union_box(boxes: Sequence[BoundingBox], pages: Sequence[int]) -> Tuple[float, float, float, float]:
    """Smallest rectangle enclosing the boxes of the given 1-based pages."""
    arr = np.asarray([boxes[page - 1].as_tuple() for page in pages], dtype=float)
    return (
        float(arr[:, 0].min()),
        float(arr[:, 1].min()),
        float(arr[:, 2].max()),
        float(arr[:, 3].max()),
    )


def format_viewport(edges: Sequence[float]) -> str:
    return " ".join(f"{round_half_away(edge)}bp" for edge in edges)


def resolve_viewport(
    selector: Sequence[SelectorToken],
    boxes: Sequence[BoundingBox],
    margin: Margin,
) -> str:
    page_count = len(boxes)
    pages = expand_pages(selector, page_count)
    if not pages:
        raise SelectorRangeError("page selector does not include any page", page_count=page_count)
    if pages[-1] > page_count:
        raise SelectorRangeError(
            f"page {pages[-1]} requested but the document has {page_count} page(s)",
            page=pages[-1],
            page_count=page_count,
        )

    left, top, right, bottom = union_box(boxes, pages)
    m_left, m_top, m_right, m_bottom = (int(component) for component in margin)
    log.debug(
        "bbox over %d page(s): %.2f %.2f %.2f %.2f", len(pages), left, top, right, bottom
    )
    return format_viewport(
        (left - m_left, top - m_top, right + m_right, bottom + m_bottom)
    )


__all__ = ["union_box", "format_viewport", "resolve_viewport"]
