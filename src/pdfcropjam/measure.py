"""Per-page bounding boxes of the visible content of a PDF.

Two backends report ``(x0, y0, x1, y1)`` in big points, PDF user space:

* ``pdfium``: union of the page-object bounds reported by PDFium.
* ``ghostscript``: the ``bbox`` output device of ``gs``.

Pages without any marks report ``(0, 0, 0, 0)`` in both.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pypdfium2 as pdfium

from .errors import ExternalToolError
from .types import BoundingBox

log = logging.getLogger(__name__)

Measure = Callable[[str, int, Optional[int]], List[BoundingBox]]

_HIRES_RE = re.compile(
    r"^%%HiResBoundingBox:\s*(\S+)\s+(\S+)\s+(\S+)\s+(\S+)\s*$", re.MULTILINE
)
_GS_CANDIDATES = ["gs", "gswin64c", "gswin32c"]
_EMPTY = BoundingBox(0.0, 0.0, 0.0, 0.0)


def _page_bounds(page: "pdfium.PdfPage") -> BoundingBox:
    x0 = y0 = float("inf")
    x1 = y1 = float("-inf")
    found = False
    for obj in page.get_objects(max_depth=1):
        left, bottom, right, top = obj.get_pos()
        x0 = min(x0, left)
        y0 = min(y0, bottom)
        x1 = max(x1, right)
        y1 = max(y1, top)
        found = True
    if not found:
        return _EMPTY
    return BoundingBox(float(x0), float(y0), float(x1), float(y1))


def measure_pdfium(path: str, first: int = 1, last: Optional[int] = None) -> List[BoundingBox]:
    try:
        doc = pdfium.PdfDocument(path)
    except pdfium.PdfiumError as exc:
        raise ExternalToolError(f"PDFium cannot open {path}: {exc}", tool="pdfium") from exc
    try:
        page_count = len(doc)
        stop = page_count if last is None else last
        if first < 1 or stop > page_count:
            raise ExternalToolError(
                f"{path}: pages {first}-{stop} outside the document (1-{page_count})",
                tool="pdfium",
            )
        boxes: List[BoundingBox] = []
        for index in range(first - 1, stop):
            page = doc[index]
            try:
                boxes.append(_page_bounds(page))
            finally:
                page.close()
    finally:
        doc.close()
    log.debug("pdfium measured %d page(s) of %s", len(boxes), path)
    return boxes


def _which_gs() -> str:
    for name in _GS_CANDIDATES:
        path = shutil.which(name)
        if path:
            return path
    raise ExternalToolError(
        "Ghostscript not found in PATH (tried %s)" % ", ".join(_GS_CANDIDATES),
        tool="ghostscript",
    )


def parse_gs_bbox(output: str) -> List[BoundingBox]:
    boxes: List[BoundingBox] = []
    for match in _HIRES_RE.finditer(output):
        try:
            x0, y0, x1, y1 = (float(value) for value in match.groups())
        except ValueError as exc:
            raise ExternalToolError(
                f"unparseable Ghostscript bbox line: {match.group(0)!r}", tool="ghostscript"
            ) from exc
        boxes.append(BoundingBox(x0, y0, x1, y1))
    return boxes


def measure_ghostscript(path: str, first: int = 1, last: Optional[int] = None) -> List[BoundingBox]:
    cmd = [
        _which_gs(),
        "-q",
        "-dBATCH",
        "-dNOPAUSE",
        "-dSAFER",
        "-sDEVICE=bbox",
        f"-dFirstPage={first}",
    ]
    if last is not None:
        cmd.append(f"-dLastPage={last}")
    cmd.append(str(Path(path)))
    log.debug("running %s", " ".join(cmd))
    try:
        proc = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, check=False)
    except OSError as exc:
        raise ExternalToolError(f"could not run Ghostscript: {exc}", tool="ghostscript") from exc

    stderr = proc.stderr.decode("utf-8", errors="replace") if proc.stderr else ""
    if proc.returncode != 0:
        raise ExternalToolError(
            f"Ghostscript failed on {path} (exit {proc.returncode}): {stderr.strip()}",
            tool="ghostscript",
        )
    boxes = parse_gs_bbox(stderr)
    if not boxes:
        raise ExternalToolError(f"Ghostscript reported no bounding boxes for {path}", tool="ghostscript")
    return boxes


BACKENDS: Dict[str, Measure] = {
    "pdfium": measure_pdfium,
    "ghostscript": measure_ghostscript,
    "gs": measure_ghostscript,
}


def get_backend(name: str) -> Measure:
    try:
        return BACKENDS[name.strip().lower()]
    except KeyError:
        raise ValueError(
            f"unknown measurement backend {name!r} (choose from {', '.join(sorted(BACKENDS))})"
        ) from None


__all__ = [
    "Measure",
    "measure_pdfium",
    "measure_ghostscript",
    "parse_gs_bbox",
    "BACKENDS",
    "get_backend",
]
