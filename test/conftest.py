import os
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app
from storage import TaskStore


# This fixture will be automatically used by every test.
@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """
    Strip TASKS_* variables so a developer's shell or .env never leaks
    into the settings a test sees.
    """
    for name in list(os.environ):
        if name.startswith("TASKS_"):
            monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """A data directory that does not exist yet; the store creates it."""
    return tmp_path / "data"


@pytest.fixture
def store(data_dir: Path) -> TaskStore:
    return TaskStore(data_dir)


@pytest.fixture
def static_dir(tmp_path: Path) -> Path:
    static = tmp_path / "static"
    static.mkdir()
    (static / "index.html").write_text("<h1>Tasks</h1>", encoding="utf-8")
    return static


@pytest.fixture
def settings(data_dir: Path, static_dir: Path) -> Settings:
    return Settings(data_dir=data_dir, static_dir=static_dir)


@pytest.fixture
def client(settings: Settings):
    """A TestClient whose lifespan opened a fresh store in the temp data dir."""
    with TestClient(create_app(settings)) as c:
        yield c
