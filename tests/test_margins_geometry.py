import pytest

from pdfcropjam.errors import MarginCountError, MarginSyntaxError, SelectorRangeError
from pdfcropjam.geometry import resolve_viewport, union_box
from pdfcropjam.margins import (
    MarginMode,
    format_trim,
    is_zero_margin,
    resolve_margins,
    round_half_away,
)
from pdfcropjam.selector import compile_selector
from pdfcropjam.types import BoundingBox

FAR = BoundingBox(-500.0, -500.0, 900.0, 900.0)


def _boxes(count: int, **pages: BoundingBox):
    boxes = [FAR] * count
    for name, box in pages.items():
        boxes[int(name[1:]) - 1] = box
    return boxes


def test_one_inch_is_72_big_points() -> None:
    assert resolve_margins("1in", MarginMode.CROP) == (72, 72, 72, 72)


@pytest.mark.parametrize("raw", ["5mm", "3", "2.5cm", "1pc", "-4bp", ".5in"])
def test_single_value_fills_all_sides(raw: str) -> None:
    margin = resolve_margins(raw)

    assert len(set(margin)) == 1


def test_two_values_alternate() -> None:
    margin = resolve_margins("1cm 2cm")

    assert margin[0] == margin[2] == 28
    assert margin[1] == margin[3] == 57


def test_four_values_in_order() -> None:
    assert resolve_margins("1bp 2bp 3bp 4bp") == (1, 2, 3, 4)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("10pt", 10),
        ("10", 10),
        ("100pt", 100),
        ("1.5bp", 2),
        ("-1.5bp", -2),
        ("1mm", 3),
        ("1pc", 12),
    ],
)
def test_unit_conversion_and_rounding(raw: str, expected: int) -> None:
    assert resolve_margins(raw)[0] == expected


@pytest.mark.parametrize(
    "value, expected",
    [(0.5, 1), (-0.5, -1), (2.4, 2), (-2.6, -3), (0.0, 0), (-0.49, 0)],
)
def test_round_half_away_from_zero(value: float, expected: int) -> None:
    assert round_half_away(value) == expected


@pytest.mark.parametrize("raw", ["", "1 2 3", "1 2 3 4 5"])
def test_margin_count_error(raw: str) -> None:
    with pytest.raises(MarginCountError):
        resolve_margins(raw)


@pytest.mark.parametrize("raw", ["1px", "abc", "1 in", "1in 2em"])
def test_margin_syntax_error(raw: str) -> None:
    with pytest.raises(MarginSyntaxError):
        resolve_margins(raw)


def test_trim_mode_negates_textually() -> None:
    assert resolve_margins("1in", MarginMode.TRIM) == ("-1in",) * 4
    margin = resolve_margins("-2mm 3", MarginMode.TRIM)
    assert margin == ("2mm", "-3pt", "2mm", "-3pt")
    assert format_trim(margin) == "2mm -3pt 2mm -3pt"


def test_is_zero_margin() -> None:
    assert is_zero_margin("0")
    assert is_zero_margin("0mm 0.0in")
    assert not is_zero_margin("1mm")
    assert not is_zero_margin("junk")


def test_viewport_encloses_selected_pages_only() -> None:
    boxes = _boxes(
        7,
        p3=BoundingBox(0, 0, 100, 200),
        p5=BoundingBox(10, 10, 90, 190),
        p7=BoundingBox(5, 5, 95, 195),
    )

    viewport = resolve_viewport(compile_selector("3,5,7"), boxes, (0, 0, 0, 0))

    assert viewport == "0bp 0bp 100bp 200bp"


def test_margin_expands_viewport() -> None:
    margin = resolve_margins("1in", MarginMode.CROP)

    viewport = resolve_viewport(compile_selector("-"), [BoundingBox(0, 0, 100, 200)], margin)

    assert viewport == "-72bp -72bp 172bp 272bp"


def test_blank_pages_contribute_nothing() -> None:
    boxes = _boxes(2, p1=BoundingBox(1, 2, 3, 4))

    assert resolve_viewport(compile_selector("{},1,{}"), boxes, (0, 0, 0, 0)) == "1bp 2bp 3bp 4bp"


def test_last_resolves_to_page_count() -> None:
    boxes = _boxes(4, p4=BoundingBox(10, 20, 30, 40))

    assert resolve_viewport(compile_selector("last"), boxes, (1, 2, 3, 4)) == "9bp 18bp 33bp 44bp"


def test_edges_round_half_away_from_zero() -> None:
    boxes = [BoundingBox(0.5, -0.5, 10.49, 10.5)]

    assert resolve_viewport(compile_selector("1"), boxes, (0, 0, 0, 0)) == "1bp -1bp 10bp 11bp"


@pytest.mark.parametrize("text", ["9", "{}", "5-", "2-8"])
def test_out_of_range_or_empty_selection(text: str) -> None:
    with pytest.raises(SelectorRangeError):
        resolve_viewport(compile_selector(text), _boxes(3), (0, 0, 0, 0))


def test_no_pages_measured() -> None:
    with pytest.raises(SelectorRangeError):
        resolve_viewport(compile_selector("last"), [], (0, 0, 0, 0))


def test_union_box_folds_min_and_max() -> None:
    boxes = [BoundingBox(5, 6, 7, 8), BoundingBox(1, 9, 10, 2)]

    assert union_box(boxes, [1, 2]) == (1.0, 6.0, 10.0, 8.0)
