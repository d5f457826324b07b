"""Option schema built from compact spec strings.

Each spec string describes one option::

    quiet|q!          flag, aliases ``quiet`` and ``q``
    verbose|v!quiet   flag that sets ``quiet`` to the negated value
    a4paper=v:paper   bare flag that sets ``paper=a4paper``
    preamble.         string option, repeated values are newline-joined
    suffix            plain string option

The first name is the canonical key.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Mapping, Optional

from .errors import SchemaError


class OptionKind(enum.Enum):
    FLAG = "flag"
    VALUE_ALIAS = "value-alias"
    CONCAT = "concat"
    PLAIN = "plain"


@dataclass(frozen=True)
class OptionDescriptor:
    names: FrozenSet[str]
    kind: OptionKind
    key: str
    invert: Optional[str] = None
    alias_value: Optional[str] = None

    @property
    def target(self) -> str:
        """Key that receives the value when this option is set."""
        if self.kind is OptionKind.VALUE_ALIAS:
            return self.alias_value or self.key
        if self.kind is OptionKind.FLAG and self.invert:
            return self.invert
        return self.key


Schema = Mapping[str, OptionDescriptor]

_NAME_RE = re.compile(r"^[a-z0-9][a-z0-9-]*$")
_SPEC_RE = re.compile(
    r"""
    ^(?P<names>[^!=.]+)
    (?:
        (?P<flag>!)(?P<invert>[^!=.]*)
      | =v:(?P<alias>[^!=.]+)
      | (?P<concat>\.)
    )?$
    """,
    re.VERBOSE,
)


def parse_spec(spec: str) -> OptionDescriptor:
    match = _SPEC_RE.match(spec.strip())
    if match is None:
        raise SchemaError(f"malformed option spec: {spec!r}")
    names = [name.strip().lower() for name in match.group("names").split("|")]
    if not names or any(not _NAME_RE.match(name) for name in names):
        raise SchemaError(f"option spec {spec!r} has an empty or invalid name")

    invert: Optional[str] = None
    alias: Optional[str] = None
    if match.group("flag"):
        kind = OptionKind.FLAG
        invert = match.group("invert").strip().lower() or None
    elif match.group("alias"):
        kind = OptionKind.VALUE_ALIAS
        alias = match.group("alias").strip().lower()
    elif match.group("concat"):
        kind = OptionKind.CONCAT
    else:
        kind = OptionKind.PLAIN

    return OptionDescriptor(
        names=frozenset(names),
        kind=kind,
        key=names[0],
        invert=invert,
        alias_value=alias,
    )


def build_schema(specs: Iterable[str]) -> Dict[str, OptionDescriptor]:
    """Map every alias to its descriptor; later specs win on collisions."""
    table: Dict[str, OptionDescriptor] = {}
    for spec in specs:
        descriptor = parse_spec(spec)
        for name in descriptor.names:
            table[name] = descriptor
    return table


def canonical_keys(schema: Schema) -> FrozenSet[str]:
    """Keys that belong to the engine partition after a merge."""
    keys = set()
    for descriptor in schema.values():
        keys.add(descriptor.key)
        if descriptor.invert:
            keys.add(descriptor.invert)
        if descriptor.alias_value:
            keys.add(descriptor.alias_value)
    return frozenset(keys)


__all__ = [
    "OptionKind",
    "OptionDescriptor",
    "Schema",
    "parse_spec",
    "build_schema",
    "canonical_keys",
]
