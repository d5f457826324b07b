from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

import fitz
import yaml


def _write_pdf(path: Path, rects: list[tuple[float, float, float, float]]) -> None:
    doc = fitz.open()
    try:
        for x0, y0, x1, y1 in rects:
            page = doc.new_page(width=200, height=200)
            page.draw_rect(fitz.Rect(x0, y0, x1, y1), color=(0, 0, 0), fill=(0, 0, 0), width=0)
        doc.save(path)
    finally:
        doc.close()


def _run_cli(args: list[str], cwd: Path) -> subprocess.CompletedProcess[str]:
    env = os.environ.copy()
    project_root = Path(__file__).resolve().parents[1]
    src_path = project_root / "src"
    pythonpath = env.get("PYTHONPATH", "")
    new_path = str(src_path)
    if pythonpath:
        new_path = os.pathsep.join([new_path, pythonpath])
    env["PYTHONPATH"] = new_path
    env["PDFCROPJAM_CONFIG_PATH"] = str(cwd / "pdfcropjam.conf")
    return subprocess.run(
        [sys.executable, "-m", "pdfcropjam.cli", *args],
        cwd=str(cwd),
        env=env,
        text=True,
        capture_output=True,
    )


def test_cli_crops_selected_pages(tmp_path: Path) -> None:
    pdf = tmp_path / "input.pdf"
    _write_pdf(pdf, [(20, 20, 60, 60), (100, 120, 180, 190), (10, 10, 190, 190)])
    (tmp_path / "pdfcropjam.conf").write_text("margins = 10bp\nnup 2x1\n", encoding="utf-8")

    result = _run_cli(["-q", "input.pdf", "1-2"], tmp_path)

    assert result.returncode == 0, result.stderr
    job = yaml.safe_load(result.stdout)
    entry = job["files"][0]
    assert entry["pages"] == "1-2"
    edges = entry["viewport"].split()
    assert len(edges) == 4
    assert all(edge.endswith("bp") for edge in edges)
    left, bottom, right, top = (int(edge[:-2]) for edge in edges)
    # page 1 spans x 20..60, page 2 spans x 100..180; 10bp margin on each side
    assert abs(left - 10) <= 2
    assert abs(right - 190) <= 2
    assert bottom < top
    assert job["passthrough"] == {"nup": "2x1"}


def test_cli_reports_range_error(tmp_path: Path) -> None:
    pdf = tmp_path / "input.pdf"
    _write_pdf(pdf, [(20, 20, 60, 60)])

    result = _run_cli(["--no-config", "input.pdf", "4"], tmp_path)

    assert result.returncode == 2
    assert "Fehler" in result.stderr


def test_cli_double_dash_keeps_option_like_file_names(tmp_path: Path) -> None:
    pdf = tmp_path / "--odd.pdf"
    _write_pdf(pdf, [(20, 20, 60, 60)])

    result = _run_cli(["-q", "--no-config", "--", "--odd.pdf"], tmp_path)

    assert result.returncode == 0, result.stderr
    job = yaml.safe_load(result.stdout)
    assert job["files"][0]["path"] == "--odd.pdf"
