from __future__ import annotations

import enum
import re
from typing import List, Tuple

from .errors import MarginCountError, MarginSyntaxError
from .types import Margin

# big points per unit; a TeX point is slightly smaller than a big point
UNIT_TO_BP = {
    "mm": 2.83464566929134,
    "pc": 11.9551681195517,
    "cm": 28.3464566929134,
    "in": 72.0,
    "pt": 0.99626400996264,
    "bp": 1.0,
}

_MEASUREMENT_RE = re.compile(r"^(?P<number>[+-]?(?:\d+(?:\.\d*)?|\.\d+))(?P<unit>mm|pc|cm|in|pt|bp)?$")


class MarginMode(enum.Enum):
    CROP = "crop"
    TRIM = "trim"


def round_half_away(value: float) -> int:
    if value >= 0:
        return int(value + 0.5)
    return int(value - 0.5)


def _split_measurement(text: str) -> Tuple[str, str]:
    match = _MEASUREMENT_RE.match(text)
    if match is None:
        raise MarginSyntaxError(text)
    return match.group("number"), match.group("unit") or "pt"


def _expand(values: List[str], raw: str) -> List[str]:
    if len(values) == 1:
        return values * 4
    if len(values) == 2:
        return [values[0], values[1], values[0], values[1]]
    if len(values) == 4:
        return values
    raise MarginCountError(raw, len(values))


def _negate(number: str) -> str:
    if number.startswith("-"):
        return number[1:]
    if number.startswith("+"):
        return "-" + number[1:]
    return "-" + number


def resolve_margins(raw: str, mode: MarginMode = MarginMode.CROP) -> Margin:
    """Return (left, top, right, bottom).

    Crop mode yields integer big points. Trim mode yields negated measurement
    strings for the layout step, e.g. ``"1in"`` -> ``("-1in",) * 4``.
    """
    values = _expand(raw.split(), raw)
    parsed = [_split_measurement(value) for value in values]
    if mode is MarginMode.TRIM:
        left, top, right, bottom = (f"{_negate(number)}{unit}" for number, unit in parsed)
    else:
        left, top, right, bottom = (
            round_half_away(float(number) * UNIT_TO_BP[unit]) for number, unit in parsed
        )
    return (left, top, right, bottom)


def is_zero_margin(raw: str) -> bool:
    values = raw.split()
    try:
        return all(float(_split_measurement(value)[0]) == 0.0 for value in values)
    except MarginSyntaxError:
        return False


def format_trim(margin: Margin) -> str:
    return " ".join(str(component) for component in margin)


__all__ = [
    "UNIT_TO_BP",
    "MarginMode",
    "round_half_away",
    "resolve_margins",
    "is_zero_margin",
    "format_trim",
]
