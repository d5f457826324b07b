from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union


class _Last:
    """Sentinel for the final page of a document."""

    _instance: "_Last | None" = None

    def __new__(cls) -> "_Last":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "LAST"

    def __reduce__(self) -> str:
        return "LAST"


LAST = _Last()

PageBound = Union[int, _Last]


@dataclass(frozen=True)
class SinglePage:
    page: int


@dataclass(frozen=True)
class PageRange:
    lo: PageBound
    hi: PageBound


@dataclass(frozen=True)
class BlankPage:
    pass


SelectorToken = Union[SinglePage, PageRange, BlankPage]
Selector = Tuple[SelectorToken, ...]


@dataclass(frozen=True)
class BoundingBox:
    x0: float; y0: float; x1: float; y1: float

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x0, self.y0, self.x1, self.y1)


Margin = Tuple[Union[int, str], Union[int, str], Union[int, str], Union[int, str]]
