import json
from pathlib import Path

import pytest

from careerbridge.storage import MemoryStorage
from careerbridge.store import ProfileStore, Session
from factories import make_employer, make_veteran

# Path to tests/fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    """
    Exposes the fixtures directory in case a test needs direct file access.
    """
    return FIXTURES_DIR


@pytest.fixture
def load_text(fixtures_dir):
    """
    Fixture that returns a function: load_text("file.ext") -> str
    """
    def _load(name: str) -> str:
        return (fixtures_dir / name).read_text(encoding="utf-8")
    return _load


@pytest.fixture
def load_json(load_text):
    """
    Fixture that returns a function: load_json("file.json") -> dict
    Built on load_text so there's one source of truth for file IO.
    """
    def _load(name: str) -> dict:
        return json.loads(load_text(name))
    return _load


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def store(storage) -> ProfileStore:
    return ProfileStore.load(storage)


@pytest.fixture
def employer_session(store) -> Session:
    session = Session()
    assert store.register(session, make_employer()).ok
    return session


@pytest.fixture
def veteran_session(store) -> Session:
    session = Session()
    assert store.register(session, make_veteran()).ok
    return session
