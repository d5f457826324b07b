from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from .schema import Schema, canonical_keys

_BARE_PAPER_RE = re.compile(r"^(?:[a-z]\d|letter|executive|legal)$", re.IGNORECASE)
_MEASURE = r"[+-]?(?:\d+\.?\d*|\.\d+)\s*[a-z]*"
_CUSTOM_PAPER_RE = re.compile(
    rf"^\s*(?P<w>{_MEASURE})\s*(?:,|\s)\s*(?P<h>{_MEASURE})\s*$", re.IGNORECASE
)


def _frozen(mapping: Optional[Mapping[str, Any]] = None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class ResolvedOptions:
    """Merged configuration, read-only for the rest of the run."""

    engine: Mapping[str, Any] = field(default_factory=_frozen)
    passthrough: Mapping[str, Any] = field(default_factory=_frozen)

    def get(self, key: str, default: Any = None) -> Any:
        return self.engine.get(key, default)

    def flag(self, key: str, default: bool = False) -> bool:
        value = self.engine.get(key, default)
        if isinstance(value, str):
            return value.strip().lower() not in ("", "false", "0", "no")
        return bool(value)

    def global_options(self) -> str:
        """Pass-through options as a ``key=value`` list with sorted keys."""
        return ",".join(
            f"{key}={format_value(self.passthrough[key])}"
            for key in sorted(self.passthrough)
        )

    def with_passthrough(self, extra: Mapping[str, Any]) -> "ResolvedOptions":
        merged = dict(self.passthrough)
        merged.update(extra)
        return ResolvedOptions(engine=self.engine, passthrough=_frozen(merged))


def format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def normalize_paper(value: str) -> str:
    """``a4`` -> ``a4paper``; ``21cm 29.7cm`` -> ``{21cm,29.7cm}``."""
    stripped = value.strip()
    if _BARE_PAPER_RE.match(stripped):
        return f"{stripped}paper"
    custom = _CUSTOM_PAPER_RE.match(stripped)
    if custom:
        return "{%s,%s}" % (custom.group("w").replace(" ", ""), custom.group("h").replace(" ", ""))
    return value


def passthrough_key(key: str) -> str:
    if key.endswith("2"):
        return key[:-1] + "*"
    return key


def merge_options(
    file_options: Mapping[str, Any],
    cmd_options: Mapping[str, Any],
    schema: Schema,
) -> ResolvedOptions:
    merged: Dict[str, Any] = dict(file_options)
    for key, value in cmd_options.items():
        merged[key] = value

    paper = merged.get("paper")
    if isinstance(paper, str) and paper:
        merged["paper"] = normalize_paper(paper)

    known = canonical_keys(schema)
    engine: Dict[str, Any] = {}
    passthrough: Dict[str, Any] = {}
    for key, value in merged.items():
        if key in known:
            engine[key] = value
        else:
            passthrough[passthrough_key(key)] = value
    return ResolvedOptions(engine=_frozen(engine), passthrough=_frozen(passthrough))


__all__ = [
    "ResolvedOptions",
    "format_value",
    "normalize_paper",
    "passthrough_key",
    "merge_options",
]
