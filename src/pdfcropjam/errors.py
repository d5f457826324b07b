from __future__ import annotations

from typing import Optional


class PdfCropJamError(Exception):
    """Base class for every fatal condition raised by the front end."""


class SchemaError(PdfCropJamError, ValueError):
    pass


class ArgumentSyntaxError(PdfCropJamError, ValueError):
    def __init__(self, message: str, *, source: Optional[str] = None, line: Optional[int] = None) -> None:
        self.source = source
        self.line = line
        if source is not None and line is not None:
            message = f"{source}:{line}: {message}"
        elif source is not None:
            message = f"{source}: {message}"
        super().__init__(message)


class SelectorSyntaxError(PdfCropJamError, ValueError):
    def __init__(self, text: str, segment: str, reason: str) -> None:
        self.text = text
        self.segment = segment
        self.reason = reason
        super().__init__(f"invalid page selector '{text}': segment '{segment}' {reason}")


class SelectorRangeError(PdfCropJamError, ValueError):
    def __init__(self, message: str, *, page: Optional[int] = None, page_count: Optional[int] = None) -> None:
        self.page = page
        self.page_count = page_count
        super().__init__(message)


class MarginSyntaxError(PdfCropJamError, ValueError):
    def __init__(self, measurement: str) -> None:
        self.measurement = measurement
        super().__init__(
            f"invalid margin '{measurement}' (expected NUMBER[mm|pc|cm|in|pt|bp])"
        )


class MarginCountError(PdfCropJamError, ValueError):
    def __init__(self, raw: str, count: int) -> None:
        self.raw = raw
        self.count = count
        super().__init__(f"margins '{raw}': expected 1, 2 or 4 values, got {count}")


class ExternalToolError(PdfCropJamError, RuntimeError):
    def __init__(self, message: str, *, tool: Optional[str] = None) -> None:
        self.tool = tool
        super().__init__(message)


__all__ = [
    "PdfCropJamError",
    "SchemaError",
    "ArgumentSyntaxError",
    "SelectorSyntaxError",
    "SelectorRangeError",
    "MarginSyntaxError",
    "MarginCountError",
    "ExternalToolError",
]
