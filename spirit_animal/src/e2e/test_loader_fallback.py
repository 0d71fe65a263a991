import json
import logging
from pathlib import Path

import pytest

from animal_engine.loader import load_dataset, parse_dataset, FALLBACK_DATASET, DatasetFormatError
from animal_engine.engine import Engine
from animal_engine.models import AnimalRecord


def _seed(tmp: Path, payload) -> str:
    p = tmp / "animals.json"
    p.write_text(payload if isinstance(payload, str) else json.dumps(payload), encoding="utf-8")
    return str(p)


def test_loads_valid_catalog(tmp_path: Path):
    path = _seed(tmp_path, [{"name": "Otter", "description": "playful"}, {"name": "Lynx"}])
    ds = load_dataset(path)
    assert ds == (AnimalRecord("Otter", "playful"), AnimalRecord("Lynx", ""))
    assert isinstance(ds, tuple)


@pytest.mark.parametrize("payload", [
    "{not json",
    [],
    {"name": "Otter"},
    [{"description": "no name"}],
    [{"name": 42, "description": "bad"}],
])
def test_bad_catalog_falls_back(tmp_path: Path, payload, caplog):
    path = _seed(tmp_path, payload)
    with caplog.at_level(logging.ERROR, logger="animal_engine.loader"):
        assert load_dataset(path) == FALLBACK_DATASET
    assert "fallback" in caplog.text


def test_missing_file_falls_back(tmp_path: Path):
    assert load_dataset(str(tmp_path / "nope.json")) == FALLBACK_DATASET


def test_fallback_has_the_three_placeholders():
    assert [a.name for a in FALLBACK_DATASET] == ["Elephant", "Giraffe", "Penguin"]


def test_packaged_catalog_loads():
    ds = load_dataset()
    assert ds != FALLBACK_DATASET
    assert len(ds) > 3
    assert all(a.name for a in ds)


def test_parse_dataset_rejects_non_list():
    with pytest.raises(DatasetFormatError):
        parse_dataset({"animals": []})


def test_engine_loads_once(tmp_path: Path):
    first = _seed(tmp_path, [{"name": "Otter", "description": "playful"}])
    eng = Engine().load(first)
    (tmp_path / "animals.json").write_text(json.dumps([{"name": "Lynx", "description": ""}]), encoding="utf-8")
    eng.load(first)
    assert [a.name for a in eng.dataset] == ["Otter"]
    eng.load(first, reload=True)
    assert [a.name for a in eng.dataset] == ["Lynx"]


def test_engine_requires_load():
    with pytest.raises(RuntimeError):
        Engine().match("Ada")


def test_deeply_nested_catalog_falls_back(tmp_path: Path):
    path = _seed(tmp_path, "[" * 100_000 + "]" * 100_000)
    assert load_dataset(path) == FALLBACK_DATASET
    assert Engine().load(path).total_animals == 3
