from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import yaml

from .cmdline import Options, lookup_option, store_value
from .errors import ArgumentSyntaxError
from .schema import OptionKind, Schema

log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "configs" / "default.yaml"

_COMMENT_RE = re.compile(r"(?<!\\)#.*$")
_LINE_RE = re.compile(r"^(?P<key>[A-Za-z0-9-]+)\s*(?:[=:]\s*)?(?P<value>.*)$")
_FALSE_WORDS = ("false", "0")


def load_config(path: str | Path = DEFAULT_CONFIG_PATH) -> dict:
    """Read the packaged YAML defaults (option schema, default values, search path)."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {p}")
    loaded = yaml.safe_load(p.read_text(encoding="utf-8"))
    if loaded is None:
        return {}
    if not isinstance(loaded, Mapping):
        raise ValueError(f"{p}: config root must be a mapping")
    return dict(loaded)


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def parse_config_lines(
    lines: Iterable[str],
    schema: Schema,
    *,
    source: str = "<config>",
    options: Optional[Options] = None,
) -> Options:
    """Resolve ``key [=|:] value`` lines against *schema*.

    Passing an existing *options* map continues accumulation into it, which is
    how several files on the search path layer on top of each other.
    """
    result: Options = {} if options is None else options
    for lineno, raw in enumerate(lines, start=1):
        line = _COMMENT_RE.sub("", raw.rstrip("\r\n")).replace("\\#", "#").strip()
        if not line:
            continue
        match = _LINE_RE.match(line)
        if match is None:
            raise ArgumentSyntaxError(f"cannot parse line {line!r}", source=source, line=lineno)

        value = _strip_quotes(match.group("value").strip())
        key, polarity, descriptor = lookup_option(match.group("key").lower(), schema)
        if descriptor is None:
            store_value(result, None, key, value)
        elif descriptor.kind is OptionKind.VALUE_ALIAS:
            result[descriptor.target] = descriptor.key
        elif descriptor.kind is OptionKind.FLAG:
            flag = not polarity if value in _FALSE_WORDS else polarity
            if descriptor.invert:
                result[descriptor.invert] = not flag
            else:
                result[descriptor.key] = flag
        elif descriptor.kind in (OptionKind.CONCAT, OptionKind.PLAIN):
            store_value(result, descriptor, descriptor.key, value)
        else:
            raise AssertionError(f"unhandled option kind: {descriptor.kind}")
    return result


def config_search_path(
    env: Mapping[str, str],
    variable: str,
    default_paths: Sequence[str],
) -> List[Path]:
    """Config files to consult, in override order (later wins)."""
    raw = env.get(variable)
    if raw:
        entries = [entry for entry in raw.split(os.pathsep) if entry.strip()]
    else:
        entries = list(default_paths)
    return [Path(os.path.expanduser(entry.strip())) for entry in entries]


def load_config_files(paths: Iterable[Path], schema: Schema) -> Options:
    options: Options = {}
    for path in paths:
        if not path.is_file():
            log.debug("config file %s not present, skipped", path)
            continue
        log.info("Reading config file %s", path)
        text = path.read_text(encoding="utf-8")
        parse_config_lines(text.splitlines(), schema, source=str(path), options=options)
    return options


def layer_defaults(defaults: Mapping[str, Any], options: Mapping[str, Any]) -> Dict[str, Any]:
    """Packaged defaults beneath *options*; YAML scalars become option values."""
    layered: Dict[str, Any] = {}
    for key, value in defaults.items():
        layered[str(key)] = value if isinstance(value, bool) else str(value)
    layered.update(options)
    return layered


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "load_config",
    "parse_config_lines",
    "config_search_path",
    "load_config_files",
    "layer_defaults",
]
