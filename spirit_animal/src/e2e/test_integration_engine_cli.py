import json
from pathlib import Path

import pytest

from animal_engine.__main__ import main


def _seed(tmp: Path) -> str:
    p = tmp / "animals.json"
    p.write_text(json.dumps([
        {"name": "Cat", "description": "hunter"},
        {"name": "Dog", "description": "companion"},
    ]), encoding="utf-8")
    return str(p)


@pytest.mark.e2e
def test_cli_json_output(tmp_path: Path, capsys):
    assert main(["--data", _seed(tmp_path), "--q", "Cat", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["animal"]["name"] == "Cat"
    assert data["animal"]["similarityScore"] == 0
    assert data["totalAnimals"] == 2


@pytest.mark.e2e
def test_cli_text_output(tmp_path: Path, capsys):
    assert main(["--data", _seed(tmp_path), "--q", "good dog"]) == 0
    out = capsys.readouterr().out
    assert "good dog -> Dog" in out
    assert "ties=1/2" in out


@pytest.mark.e2e
def test_cli_falls_back_on_missing_catalog(tmp_path: Path, capsys):
    assert main(["--data", str(tmp_path / "missing.json"), "--q", "Penguin", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["animal"]["name"] == "Penguin"
    assert data["totalAnimals"] == 3
