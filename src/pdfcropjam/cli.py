from __future__ import annotations

import logging
import os
import sys
import textwrap
import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.theme import Theme

from .cmdline import parse_command_line
from .config import (
    DEFAULT_CONFIG_PATH,
    config_search_path,
    layer_defaults,
    load_config,
    load_config_files,
)
from .errors import ArgumentSyntaxError, PdfCropJamError
from .geometry import resolve_viewport
from .margins import MarginMode, format_trim, is_zero_margin, resolve_margins
from .measure import Measure, get_backend
from .merge import ResolvedOptions, format_value, merge_options
from .schema import Schema, build_schema
from .selector import compile_selector, format_selector, looks_like_selector
from .types import Margin


log = logging.getLogger(__name__)

PROG_NAME = "pdfcropjam"
DEFAULT_SELECTOR = "-"


class Logger:
    def __init__(self, verbose: bool = False, quiet: bool = False) -> None:
        self.verbose = verbose
        self.quiet = quiet
        theme = Theme({
            "info": "cyan",
            "step": "bold cyan",
            "warning": "bold yellow",
            "error": "bold red",
        })
        self.console = Console(theme=theme, highlight=False, stderr=True)

    def _print(self, message: str, style: str | None = None) -> None:
        if style:
            self.console.print(f"[{style}]{escape(message)}[/{style}]")
        else:
            self.console.print(escape(message))

    def info(self, message: str) -> None:
        if not self.quiet:
            self._print(message, style="info")

    def step(self, message: str) -> None:
        if not self.quiet:
            self.console.print(f"[step]▶ {escape(message)}")

    def warn(self, message: str) -> None:
        self._print(message, style="warning")

    def error(self, message: str) -> None:
        self._print(message, style="error")

    def debug(self, message: str) -> None:
        if self.verbose:
            self.console.print(f"[dim]{escape(message)}[/dim]")


class _LoggingBridge(logging.Handler):
    """Route package log records to the console logger.

    Debug records are only forwarded while ``--debug`` is active and carry the
    short module name, e.g. ``[measure] running gs ...``.
    """

    def __init__(self, cli_logger: Logger, level: int) -> None:
        super().__init__(level)
        self._cli_logger = cli_logger

    def emit(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        msg = self.format(record)
        if record.levelno >= logging.ERROR:
            self._cli_logger.error(msg)
        elif record.levelno >= logging.WARNING:
            self._cli_logger.warn(msg)
        elif record.levelno >= logging.INFO:
            self._cli_logger.info(msg)
        elif self._cli_logger.verbose:
            module = record.name.rsplit(".", 1)[-1]
            self._cli_logger.debug(f"[{module}] {msg}")


def _install_bridge(logger: Logger, level: int) -> None:
    package_logger = logging.getLogger("pdfcropjam")
    package_logger.setLevel(level)
    package_logger.propagate = False
    for handler in list(package_logger.handlers):
        if isinstance(handler, _LoggingBridge):
            package_logger.removeHandler(handler)
    bridge = _LoggingBridge(logger, level)
    bridge.setFormatter(logging.Formatter("%(message)s"))
    package_logger.addHandler(bridge)


@dataclass(frozen=True)
class InputFile:
    path: Path
    selector: str


def split_inputs(remainder: Sequence[str]) -> List[InputFile]:
    """Pair each FILE with the SELECTOR that may follow it."""
    inputs: List[InputFile] = []
    pending: Optional[Path] = None
    for token in remainder:
        if looks_like_selector(token) and not os.path.exists(token):
            if pending is None:
                raise ArgumentSyntaxError(f"page selector '{token}' does not follow an input file")
            inputs.append(InputFile(pending, token))
            pending = None
            continue
        if pending is not None:
            inputs.append(InputFile(pending, DEFAULT_SELECTOR))
        pending = Path(token)
    if pending is not None:
        inputs.append(InputFile(pending, DEFAULT_SELECTOR))
    if not inputs:
        raise ArgumentSyntaxError("no input files given")
    return inputs


def output_names(inputs: Sequence[InputFile], options: ResolvedOptions) -> List[Path]:
    suffix = str(options.get("suffix") or "cropped")
    outfile = options.get("outfile")
    if outfile and len(inputs) == 1 and not Path(str(outfile)).is_dir():
        return [Path(str(outfile))]
    if outfile and not Path(str(outfile)).is_dir():
        raise ArgumentSyntaxError("--outfile must name a directory when several input files are given")
    base = Path(str(outfile)) if outfile else Path.cwd()

    names: List[Path] = []
    seen: Dict[str, int] = {}
    for item in inputs:
        stem = f"{item.path.stem}-{suffix}"
        seen[stem] = seen.get(stem, 0) + 1
        if seen[stem] > 1:
            stem = f"{stem}-{seen[stem]}"
        names.append(base / f"{stem}.pdf")
    return names


def load_schema(defaults_cfg: Mapping[str, Any]) -> Schema:
    specs = defaults_cfg.get("options") or []
    if not isinstance(specs, list):
        raise ValueError("'options' in the packaged defaults must be a list")
    return build_schema(str(spec) for spec in specs)


def resolve_run_options(
    argv: Sequence[str],
    defaults_cfg: Mapping[str, Any],
    env: Mapping[str, str],
) -> Tuple[ResolvedOptions, List[str]]:
    schema = load_schema(defaults_cfg)
    cmd_options, remainder = parse_command_line(argv, schema)

    file_options: Dict[str, Any] = {}
    if cmd_options.get("config", True) is not False:
        paths = config_search_path(
            env,
            str(defaults_cfg.get("config_env", "PDFCROPJAM_CONFIG_PATH")),
            [str(p) for p in defaults_cfg.get("config_search_path") or []],
        )
        file_options = load_config_files(paths, schema)
    else:
        log.debug("external config files disabled")

    layered = layer_defaults(defaults_cfg.get("defaults") or {}, file_options)
    return merge_options(layered, cmd_options, schema), remainder


def process_file(
    item: InputFile,
    output: Path,
    margin: Optional[Margin],
    measure: Optional[Measure],
) -> Dict[str, Any]:
    if not item.path.is_file():
        raise FileNotFoundError(f"input file not found: {item.path}")
    tokens = compile_selector(item.selector)
    entry: Dict[str, Any] = {
        "path": str(item.path),
        "output": str(output),
        "selector": item.selector,
        "pages": format_selector(tokens),
        "viewport": None,
    }
    if margin is not None and measure is not None:
        boxes = measure(str(item.path), 1, None)
        entry["viewport"] = resolve_viewport(tokens, boxes, margin)
        log.info("%s: viewport %s", item.path, entry["viewport"])
    return entry


def build_job(options: ResolvedOptions, files: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
    return {
        "engine": {key: options.engine[key] for key in options.engine},
        "passthrough": {
            key: format_value(options.passthrough[key]) for key in sorted(options.passthrough)
        },
        "global_options": options.global_options(),
        "files": [dict(entry) for entry in files],
    }


def run_pipeline(
    argv: Sequence[str],
    logger: Logger,
    *,
    env: Optional[Mapping[str, str]] = None,
    defaults_path: Path = DEFAULT_CONFIG_PATH,
) -> Dict[str, Any]:
    defaults_cfg = load_config(defaults_path)
    options, remainder = resolve_run_options(argv, defaults_cfg, os.environ if env is None else env)

    logger.quiet = options.flag("quiet")
    logger.verbose = options.flag("debug") or logger.verbose
    level = logging.INFO
    if logger.quiet:
        level = logging.WARNING
    elif logger.verbose:
        level = logging.DEBUG
    _install_bridge(logger, level)
    logger.step("Optionen aufgelöst")

    active = yaml.safe_dump(
        {"engine": dict(options.engine), "passthrough": dict(options.passthrough)},
        sort_keys=False,
        default_flow_style=False,
    ).strip()
    logger.debug("Aktive Konfiguration:\n" + textwrap.indent(active, "  "))

    inputs = split_inputs(remainder)
    outputs = output_names(inputs, options)

    raw_margins = str(options.get("margins") or "0")
    margin: Optional[Margin] = None
    measure: Optional[Measure] = None
    if options.flag("crop", True):
        margin = resolve_margins(raw_margins, MarginMode.CROP)
        measure = get_backend(str(options.get("measure-with") or "pdfium"))
    elif not is_zero_margin(raw_margins):
        trim = format_trim(resolve_margins(raw_margins, MarginMode.TRIM))
        options = options.with_passthrough({"trim": trim, "clip": True})

    files: List[Dict[str, Any]] = []
    for index, (item, output) in enumerate(zip(inputs, outputs), start=1):
        logger.step(f"[{index}/{len(inputs)}] {item.path} ({item.selector})")
        files.append(process_file(item, output, margin, measure))

    return build_job(options, files)


def _handle_known_exception(logger: Logger, exc: Exception, *, prefix: str | None = None) -> None:
    message = str(exc) if str(exc) else exc.__class__.__name__
    tool = getattr(exc, "tool", None)
    if prefix and tool:
        message = f"{prefix} ({tool}): {message}"
    elif prefix:
        message = f"{prefix}: {message}"
    logger.error(message)


app = typer.Typer(help="Resolve options, page selectors and crop geometry for PDF jobs", add_completion=False)


@app.command()
def run(
    tokens: Optional[List[str]] = typer.Argument(
        None,
        metavar="[OPTIONS] [--] FILE [SELECTOR] [FILE [SELECTOR]]...",
        help="Options, input files and page selectors",
    ),
) -> None:
    logger = Logger()
    _install_bridge(logger, logging.INFO)
    verbose_requested = any(token == "--debug" for token in tokens or [])

    try:
        job = run_pipeline(list(tokens or []), logger)
        document = yaml.safe_dump(job, sort_keys=False, default_flow_style=False)
        target = job["engine"].get("job")
        if target:
            Path(str(target)).write_text(document, encoding="utf-8")
            logger.info(f"Job geschrieben: {target}")
        else:
            typer.echo(document, nl=False)
    except (PdfCropJamError, FileNotFoundError, ValueError, RuntimeError) as exc:
        _handle_known_exception(logger, exc, prefix="Fehler")
        raise typer.Exit(code=2) from exc
    except Exception as exc:  # pragma: no cover - fallback path
        _handle_known_exception(logger, exc, prefix="Unerwarteter Fehler")
        if verbose_requested:
            traceback.print_exc()
        raise typer.Exit(code=1) from exc


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = list(sys.argv[1:] if argv is None else argv)
    # leading "--" hands every token, including a user "--", to the schema parser
    app(args=["--", *args], prog_name=PROG_NAME)


if __name__ == "__main__":
    main()
