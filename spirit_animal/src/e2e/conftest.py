import random
import pytest

import animal_web.web as webmod
from animal_engine.engine import Engine
from animal_engine.gate import OpenGate
from animal_engine.models import AnimalRecord


class FirstChoice:
    """Deterministic tie-break: always the first animal of the tie set."""
    def choice(self, seq):
        return seq[0]


@pytest.fixture
def small_dataset():
    return (
        AnimalRecord("Cat", "A small, independent hunter"),
        AnimalRecord("Tac", "A cat spelled backwards"),
        AnimalRecord("Dog", "A loyal companion"),
    )


@pytest.fixture
def engine(small_dataset):
    eng = Engine(small_dataset, rng=FirstChoice())
    yield eng
    eng.shutdown()


@pytest.fixture
def seeded_engine(small_dataset):
    return Engine(small_dataset, rng=random.Random(1234))


@pytest.fixture
def client(engine, monkeypatch):
    """Flask test client wired to the small catalog with no payment gate."""
    monkeypatch.setattr(webmod, "_engine", engine)
    monkeypatch.setattr(webmod, "_gate", OpenGate())
    return webmod.app.test_client()
