"""
Tests for the command line entry point.

Usage:
    pytest tests/test_cli.py
"""

import json
import sys
from pathlib import Path

from PIL import Image

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

import main as cli
from billscan.ocr import TemplateOCREngine

from synthetic import screenshot, write_template_dir


def _write_screenshot(path: Path, lines) -> Path:
    Image.fromarray(screenshot(lines)).save(path)
    return path


def test_cli_prints_amount_and_date(tmp_path, capsys):
    charlib = write_template_dir(tmp_path / "charlib")
    image = _write_screenshot(tmp_path / "shot.png", ["-9.99", "2024-03-07 14:05"])

    code = cli.main([str(image), "--templates", str(charlib), "--config", str(tmp_path / "none.json")])

    out = capsys.readouterr().out
    assert code == 0
    assert out.strip() == "-9.99\t2024-03-07T00:00:00+08:00"


def test_cli_not_found(tmp_path):
    charlib = write_template_dir(tmp_path / "charlib")
    image = _write_screenshot(tmp_path / "shot.png", ["12345"])

    assert cli.main([str(image), "-t", str(charlib), "-c", str(tmp_path / "none.json")]) == 1


def test_cli_uses_config_file(tmp_path, capsys):
    charlib = write_template_dir(tmp_path / "charlib")
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"template_dir": str(charlib), "timezone": "UTC"}), encoding="utf-8")
    image = _write_screenshot(tmp_path / "shot.png", ["+3.00", "2024-03-07 14:05"])

    assert cli.main([str(image), "--config", str(config)]) == 0
    assert capsys.readouterr().out.strip() == "3.00\t2024-03-07T00:00:00+00:00"


def test_cli_list_templates(tmp_path, capsys):
    charlib = write_template_dir(tmp_path / "charlib", chars="0-")

    code = cli.main(["--list-templates", "-t", str(charlib), "-c", str(tmp_path / "none.json")])

    lines = capsys.readouterr().out.strip().split("\n")
    assert code == 0
    assert [line.split("\t")[0] for line in lines] == ["-", "0"]


def test_cli_bad_template_dir(tmp_path):
    image = _write_screenshot(tmp_path / "shot.png", ["-9.99"])

    assert cli.main([str(image), "-t", str(tmp_path / "missing"), "-c", str(tmp_path / "none.json")]) == 1


def test_cli_debug_mode_reads_once(tmp_path, capsys, monkeypatch):
    charlib = write_template_dir(tmp_path / "charlib")
    image = _write_screenshot(tmp_path / "shot.png", ["-9.99", "2024-03-07 14:05"])
    monkeypatch.chdir(tmp_path)
    scans = []
    original_scan = TemplateOCREngine.scan

    def counting_scan(self, img):
        scans.append(img)
        return original_scan(self, img)

    monkeypatch.setattr(TemplateOCREngine, "scan", counting_scan)

    code = cli.main([str(image), "-t", str(charlib), "-c", str(tmp_path / "none.json"), "--debug"])

    assert code == 0
    assert len(scans) == 1
    assert capsys.readouterr().out.strip() == "-9.99\t2024-03-07T00:00:00+08:00"
    assert len(list((tmp_path / "debug").glob("debug_*.png"))) == 1


def test_cli_debug_mode_not_found(tmp_path, monkeypatch):
    charlib = write_template_dir(tmp_path / "charlib")
    image = _write_screenshot(tmp_path / "shot.png", ["-9.99"])
    monkeypatch.chdir(tmp_path)

    assert cli.main([str(image), "-t", str(charlib), "-c", str(tmp_path / "none.json"), "-d"]) == 1


def test_cli_save_config_persists_templates(tmp_path):
    charlib = write_template_dir(tmp_path / "charlib")
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"timezone": "UTC"}), encoding="utf-8")

    code = cli.main(["--list-templates", "-t", str(charlib), "-c", str(config), "--save-config"])

    saved = json.loads(config.read_text(encoding="utf-8"))
    assert code == 0
    assert saved["template_dir"] == str(charlib)
    assert saved["timezone"] == "UTC"
