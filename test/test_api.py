import json

import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app
from storage import PersistenceError

URL = "/api/tasks"


def test_list_starts_empty(client):
    response = client.get(URL)
    assert response.status_code == 200
    assert response.json() == {"tasks": []}


def test_create_task(client):
    response = client.post(URL, json={"title": "  Buy milk "})
    assert response.status_code == 201
    body = response.json()
    assert body["id"] == 1
    assert body["title"] == "Buy milk"
    assert body["done"] is False
    assert body["createdAt"].endswith("Z")


def test_list_after_creates(client):
    for title in ["a", "b", "c"]:
        client.post(URL, json={"title": title})
    tasks = client.get(URL).json()["tasks"]
    assert [t["title"] for t in tasks] == ["a", "b", "c"]
    assert [t["id"] for t in tasks] == [1, 2, 3]


@pytest.mark.parametrize(
    "payload",
    [
        {"title": ""},
        {"title": "   "},
        {},
        {"title": 5},
        {"title": None},
        ["Buy milk"],
    ],
)
def test_create_rejects_bad_payload(client, payload):
    response = client.post(URL, json=payload)
    assert response.status_code == 400
    assert "detail" in response.json()
    assert client.get(URL).json() == {"tasks": []}


def test_create_rejects_invalid_json(client):
    response = client.post(URL, content=b"{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400


def test_toggle_task(client):
    client.post(URL, json={"title": "Buy milk"})
    first = client.patch(f"{URL}/1")
    assert first.status_code == 200
    assert first.json()["done"] is True
    second = client.patch(f"{URL}/1")
    assert second.json()["done"] is False


def test_delete_task(client):
    client.post(URL, json={"title": "Buy milk"})
    response = client.delete(f"{URL}/1")
    assert response.status_code == 204
    assert response.content == b""
    assert client.get(URL).json() == {"tasks": []}
    assert client.patch(f"{URL}/1").status_code == 404


@pytest.mark.parametrize("method", ["patch", "delete"])
def test_unknown_id_is_404(client, method):
    response = getattr(client, method)(f"{URL}/99")
    assert response.status_code == 404


@pytest.mark.parametrize("method", ["patch", "delete"])
@pytest.mark.parametrize("task_id", ["abc", "1.5", "1_0", "%2010", "10%20", "%D9%A1%D9%A0"])
def test_non_integer_id_is_400(client, method, task_id):
    response = getattr(client, method)(f"{URL}/{task_id}")
    assert response.status_code == 400


@pytest.mark.parametrize("method", ["put", "patch", "delete", "options"])
def test_collection_method_not_allowed(client, method):
    response = client.request(method.upper(), URL)
    assert response.status_code == 405
    assert response.headers["allow"] == "GET, POST"


@pytest.mark.parametrize("method", ["get", "post", "put"])
def test_item_method_not_allowed(client, method):
    response = client.request(method.upper(), f"{URL}/1")
    assert response.status_code == 405
    assert response.headers["allow"] == "PATCH, DELETE"


@pytest.mark.parametrize("path", ["/api", "/api/", "/api/nope", "/api/tasks/", "/api/tasks/1/extra"])
def test_unknown_api_paths_are_404(client, path):
    assert client.get(path).status_code == 404


def test_static_index_is_served(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "<h1>Tasks</h1>" in response.text


def test_state_survives_restart(settings):
    with TestClient(create_app(settings)) as c:
        c.post(URL, json={"title": "a"})
        c.post(URL, json={"title": "b"})
        c.post(URL, json={"title": "c"})
        c.delete(f"{URL}/1")
        c.patch(f"{URL}/3")

    with TestClient(create_app(settings)) as c:
        tasks = c.get(URL).json()["tasks"]
        assert [(t["id"], t["title"], t["done"]) for t in tasks] == [(2, "b", False), (3, "c", True)]
        assert c.post(URL, json={"title": "d"}).json()["id"] == 4


def test_next_id_after_restart_follows_highest_remaining_id(settings):
    with TestClient(create_app(settings)) as c:
        c.post(URL, json={"title": "a"})
        c.post(URL, json={"title": "b"})
        c.delete(f"{URL}/2")

    with TestClient(create_app(settings)) as c:
        assert c.post(URL, json={"title": "c"}).json()["id"] == 2


def test_persistence_failure_is_500(settings, store):
    def broken_save(tasks):
        raise PersistenceError("disk full")

    store._save = broken_save
    with TestClient(create_app(settings, store=store)) as c:
        response = c.post(URL, json={"title": "Buy milk"})
        assert response.status_code == 500
        assert c.get(URL).json() == {"tasks": []}


def test_unloadable_store_aborts_startup(tmp_path):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "tasks.json").write_text("{broken", encoding="utf-8")
    app = create_app(Settings(data_dir=data_dir, static_dir=tmp_path / "missing"))

    with pytest.raises(PersistenceError):
        with TestClient(app):
            pass


def test_api_works_without_static_dir(tmp_path):
    app = create_app(Settings(data_dir=tmp_path / "data", static_dir=tmp_path / "missing"))
    with TestClient(app) as c:
        assert c.get(URL).status_code == 200
        assert c.get("/").status_code == 404


def test_response_matches_file(client, settings):
    created = client.post(URL, json={"title": "Buy milk"}).json()
    on_disk = json.loads((settings.data_dir / "tasks.json").read_text(encoding="utf-8"))
    assert on_disk == [created]


def test_request_before_startup_is_503(settings):
    # without the context manager TestClient skips the lifespan, so no store is attached
    c = TestClient(create_app(settings))
    response = c.get(URL)
    assert response.status_code == 503
    assert response.json() == {"detail": "Task store is not initialized."}
