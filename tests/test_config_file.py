import os
import textwrap
from pathlib import Path

import pytest

from pdfcropjam.config import (
    DEFAULT_CONFIG_PATH,
    config_search_path,
    layer_defaults,
    load_config,
    load_config_files,
    parse_config_lines,
)
from pdfcropjam.errors import ArgumentSyntaxError
from pdfcropjam.schema import build_schema

SCHEMA = build_schema(["tidy!", "verbose!quiet", "a4paper=v:paper", "paper", "suffix", "preamble."])


def _parse(text: str):
    return parse_config_lines(textwrap.dedent(text).strip().splitlines(), SCHEMA, source="test.conf")


def test_negated_flag_line_without_value() -> None:
    assert _parse("no-tidy") == {"tidy": False}


def test_unknown_key_drops_no_prefix() -> None:
    assert _parse("no-frame = x") == {"frame": "x"}


@pytest.mark.parametrize(
    "line, expected",
    [
        ("tidy", True),
        ("tidy = true", True),
        ("tidy = 0", False),
        ("tidy false", False),
        ("tidy: yes", True),
        ("no-tidy = false", True),
        ("no-tidy = 1", False),
    ],
)
def test_flag_values(line: str, expected: bool) -> None:
    assert _parse(line)["tidy"] is expected


def test_comments_separators_and_quotes() -> None:
    options = _parse(
        """
        # full-line comment

        paper = a4  # trailing comment
        suffix: 'my suffix'
        title "quoted"
        path = a\\#b
        pagecommand2 = {}
        """
    )

    assert options == {
        "paper": "a4",
        "suffix": "my suffix",
        "title": "quoted",
        "path": "a#b",
        "pagecommand2": "{}",
    }


def test_only_one_layer_of_quotes_is_stripped() -> None:
    assert _parse("suffix = \"'x'\"")["suffix"] == "'x'"
    assert _parse("suffix = 'x\"")["suffix"] == "'x\""


def test_value_alias_and_inversion_in_config() -> None:
    options = _parse(
        """
        a4paper
        verbose
        """
    )

    assert options == {"paper": "a4paper", "quiet": False}


def test_concatenating_key_accumulates_across_lines() -> None:
    options = _parse(
        r"""
        preamble \usepackage{a}
        preamble = \usepackage{b}
        suffix one
        suffix two
        """
    )

    assert options["preamble"] == "\\usepackage{a}\n\\usepackage{b}"
    assert options["suffix"] == "two"


def test_line_without_key_reports_location() -> None:
    with pytest.raises(ArgumentSyntaxError, match=r"test\.conf:2"):
        _parse(
            """
            paper a4
            = oops
            """
        )


def test_search_path_from_environment() -> None:
    env = {"PDFCROPJAM_CONFIG_PATH": os.pathsep.join(["~/one.conf", "/etc/two.conf", ""])}

    paths = config_search_path(env, "PDFCROPJAM_CONFIG_PATH", ["/ignored.conf"])

    assert paths == [Path(os.path.expanduser("~/one.conf")), Path("/etc/two.conf")]


def test_search_path_defaults_when_unset() -> None:
    paths = config_search_path({}, "PDFCROPJAM_CONFIG_PATH", ["/etc/a.conf", "~/b.conf"])

    assert paths == [Path("/etc/a.conf"), Path(os.path.expanduser("~/b.conf"))]


def test_later_config_files_override_earlier(tmp_path: Path) -> None:
    first = tmp_path / "first.conf"
    second = tmp_path / "second.conf"
    first.write_text("suffix = a\npreamble x\nno-tidy\n", encoding="utf-8")
    second.write_text("suffix = b\npreamble y\n", encoding="utf-8")

    options = load_config_files([first, tmp_path / "missing.conf", second], SCHEMA)

    assert options == {"suffix": "b", "preamble": "x\ny", "tidy": False}


def test_packaged_defaults_load() -> None:
    cfg = load_config(DEFAULT_CONFIG_PATH)

    assert "crop!" in cfg["options"]
    assert cfg["defaults"]["measure-with"] == "pdfium"
    assert cfg["config_env"] == "PDFCROPJAM_CONFIG_PATH"


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_layer_defaults_stringifies_scalars() -> None:
    layered = layer_defaults({"crop": True, "margins": 0}, {"margins": "1in"})

    assert layered == {"crop": True, "margins": "1in"}
    assert layer_defaults({"margins": 0}, {}) == {"margins": "0"}
