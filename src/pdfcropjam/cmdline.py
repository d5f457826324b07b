from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .errors import ArgumentSyntaxError
from .schema import OptionDescriptor, OptionKind, Schema

log = logging.getLogger(__name__)

OptionValue = Union[bool, str]
Options = Dict[str, OptionValue]

_SHORT_OPTION_RE = re.compile(r"^-[A-Za-z]$")
_FALSE_WORDS = ("false", "0")
_TRUE_WORDS = ("true", "1")


def is_option_token(token: str) -> bool:
    """``--name`` or ``-x``; a bare ``-`` or ``-5`` is positional."""
    if token.startswith("--"):
        return len(token) > 2
    return bool(_SHORT_OPTION_RE.match(token))


def lookup_option(name: str, schema: Schema) -> Tuple[str, bool, Optional[OptionDescriptor]]:
    """Return ``(key, polarity, descriptor)`` for a lower-cased option name.

    A name the schema declares in full wins. Otherwise a leading ``no-`` is
    stripped and flips the polarity, for known and unknown names alike.
    """
    if name in schema:
        return name, True, schema[name]
    if name.startswith("no-") and len(name) > 3:
        stripped = name[3:]
        return stripped, False, schema.get(stripped)
    return name, True, None


def store_value(options: Options, descriptor: Optional[OptionDescriptor], key: str, value: str) -> None:
    """Record a string value for plain, concatenating and unknown options."""
    if descriptor is not None and descriptor.kind is OptionKind.CONCAT:
        previous = options.get(key)
        if isinstance(previous, str):
            options[key] = f"{previous}\n{value}"
            return
    options[key] = value


def parse_command_line(tokens: Sequence[str], schema: Schema) -> Tuple[Options, List[str]]:
    """Split raw argv tokens into an option map and positional remainder."""
    options: Options = {}
    remainder: List[str] = []
    awaiting: List[Tuple[str, Optional[OptionDescriptor]]] = []

    def take_positional(token: str) -> None:
        if awaiting:
            key, descriptor = awaiting.pop(0)
            store_value(options, descriptor, key, token)
        else:
            remainder.append(token)

    idx = 0
    count = len(tokens)
    while idx < count:
        token = tokens[idx]
        idx += 1

        if token == "--":
            for rest in tokens[idx:]:
                take_positional(rest)
            break

        if not is_option_token(token):
            take_positional(token)
            continue

        raw_name = token[2:] if token.startswith("--") else token[1:]
        key, polarity, descriptor = lookup_option(raw_name.lower(), schema)
        if descriptor is None or descriptor.kind in (OptionKind.CONCAT, OptionKind.PLAIN):
            store_key = key if descriptor is None else descriptor.key
            # "--" is never taken as a value; the option waits instead
            if idx < count and tokens[idx] != "--":
                store_value(options, descriptor, store_key, tokens[idx])
                idx += 1
            else:
                log.debug("option --%s waits for a later value", store_key)
                awaiting.append((store_key, descriptor))
            continue

        if descriptor.kind is OptionKind.VALUE_ALIAS:
            options[descriptor.target] = descriptor.key
            continue

        if descriptor.kind is OptionKind.FLAG:
            value = polarity
            if idx < count:
                lookahead = tokens[idx]
                if lookahead in _FALSE_WORDS:
                    value = not value
                    idx += 1
                elif lookahead in _TRUE_WORDS:
                    idx += 1
            if descriptor.invert:
                options[descriptor.invert] = not value
            else:
                options[descriptor.key] = value
            continue

        raise AssertionError(f"unhandled option kind: {descriptor.kind}")

    if awaiting:
        missing = ", ".join(f"--{key}" for key, _ in awaiting)
        raise ArgumentSyntaxError(f"option(s) {missing} require a value")

    return options, remainder


__all__ = [
    "OptionValue",
    "Options",
    "is_option_token",
    "lookup_option",
    "store_value",
    "parse_command_line",
]
