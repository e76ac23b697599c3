"""Content file routes against the in-memory storage client."""
from concurrent.futures import ThreadPoolExecutor

from app.api import routes
from app.main import app

BASE = "/api/v1/pictures/contentfiles"


def _upload(client, name="photo.png", content=b"\x89PNG data", content_type="image/png", method="put"):
    return client.request(
        method.upper(),
        f"{BASE}/{name}",
        files={"formFile": (name, content, content_type)},
    )


def test_upload_creates_blob_and_points_at_it(client, storage):
    response = _upload(client)

    assert response.status_code == 201
    assert response.content == b""
    assert response.headers["location"].endswith(f"{BASE}/photo.png")
    assert storage.containers["pictures"]["photo.png"] == (b"\x89PNG data", "image/png")


def test_upload_overwrites_existing_blob(client, storage):
    _upload(client, content=b"first")
    response = _upload(client, content=b"second")

    assert response.status_code == 201
    assert storage.containers["pictures"]["photo.png"][0] == b"second"


def test_upload_without_form_file_is_rejected(client, storage):
    response = client.put(f"{BASE}/photo.png")

    assert response.status_code == 400
    assert response.json() == [{
        "errorNumber": 3,
        "parameterName": "fileData",
        "parameterValue": None,
        "errorDescription": "The parameter is required.",
    }]
    assert storage.containers == {}


def test_upload_with_short_file_name_is_rejected(client):
    response = _upload(client, name="ab")

    assert response.status_code == 400
    body = response.json()
    assert [e["errorNumber"] for e in body] == [5]
    assert body[0]["parameterName"] == "fileName"
    assert body[0]["parameterValue"] == "ab"


def test_upload_reports_every_invalid_parameter(client):
    container = "c" * 76
    name = "f" * 64
    response = client.put(f"/api/v1/{container}/contentfiles/{name}")

    assert response.status_code == 400
    assert [(e["parameterName"], e["errorNumber"]) for e in response.json()] == [
        ("containerName", 2),
        ("fileName", 2),
        ("fileData", 3),
    ]


def test_upload_into_invalid_container_name(client):
    response = client.put(
        "/api/v1/Bad_Container/contentfiles/photo.png",
        files={"formFile": ("photo.png", b"x", "image/png")},
    )

    assert response.status_code == 400
    body = response.json()
    assert body["errorNumber"] is None
    assert body["parameterName"] == "containerName"
    assert body["parameterValue"] == "Bad_Container"
    assert "InvalidResourceName" in body["errorDescription"]


def test_upload_provider_error_is_bad_request(client, storage, provider_error):
    storage.fail_with = provider_error

    response = _upload(client)

    assert response.status_code == 400
    assert response.content == b""


def test_upload_unexpected_error_is_server_error(client, storage):
    storage.fail_with = ConnectionError("connection reset")

    response = _upload(client)

    assert response.status_code == 500
    assert response.json() == {"detail": "Failed to upload file"}


def test_upload_defaults_content_type(client, storage):
    response = client.put(f"{BASE}/notes.bin", files={"formFile": ("notes.bin", b"raw")})

    assert response.status_code == 201
    _, content_type = storage.containers["pictures"]["notes.bin"]
    assert content_type == "application/octet-stream"


def test_get_file_returns_content_and_type(client):
    _upload(client, content=b"pixels", content_type="image/png")

    response = client.get(f"{BASE}/photo.png")

    assert response.status_code == 200
    assert response.content == b"pixels"
    assert response.headers["content-type"] == "image/png"


def test_get_missing_file_is_not_found(client):
    response = client.get(f"{BASE}/missing.png")

    assert response.status_code == 404
    assert response.json() == {
        "errorNumber": 4,
        "parameterName": "fileName",
        "parameterValue": "missing.png",
        "errorDescription": "The entity could not be found.",
    }


def test_list_files(client):
    _upload(client, name="one.png")
    _upload(client, name="two.png")

    response = client.get(BASE)

    assert response.status_code == 200
    assert sorted(response.json()) == ["one.png", "two.png"]


def test_list_empty_container(client):
    response = client.get("/api/v1/empty-container/contentfiles")

    assert response.status_code == 200
    assert response.json() == []


def test_list_container_name_too_long(client):
    container = "a" * 76

    response = client.get(f"/api/v1/{container}/contentfiles")

    assert response.status_code == 400
    assert response.json() == [{
        "errorNumber": 2,
        "parameterName": "containerName",
        "parameterValue": container,
        "errorDescription": "The parameter value is too large.",
    }]


def test_list_invalid_container_name(client):
    response = client.get("/api/v1/UPPER/contentfiles")

    assert response.status_code == 400
    assert response.json()["parameterName"] == "containerName"


def test_update_existing_file(client, storage):
    _upload(client, content=b"old", content_type="text/plain")

    response = _upload(client, content=b"new", content_type="text/markdown", method="patch")

    assert response.status_code == 204
    assert storage.containers["pictures"]["photo.png"] == (b"new", "text/markdown")


def test_update_missing_file_is_not_found(client, storage):
    response = _upload(client, name="ghost.png", method="patch")

    assert response.status_code == 404
    assert response.json()["errorNumber"] == 4
    assert "ghost.png" not in storage.containers.get("pictures", {})


def test_update_without_form_file_is_rejected(client):
    _upload(client)

    response = client.patch(f"{BASE}/photo.png")

    assert response.status_code == 400
    assert response.json()[0]["parameterName"] == "fileData"


def test_delete_existing_file(client, storage):
    _upload(client)

    response = client.delete(f"{BASE}/photo.png")

    assert response.status_code == 204
    assert storage.containers["pictures"] == {}


def test_delete_missing_file_is_not_found(client):
    response = client.delete(f"{BASE}/missing.png")

    assert response.status_code == 404
    assert response.json()["parameterValue"] == "missing.png"


def test_delete_invalid_container_name(client):
    response = client.delete("/api/v1/no_underscores/contentfiles/photo.png")

    assert response.status_code == 400
    assert "InvalidResourceName" in response.json()["errorDescription"]


def test_operation_ids_follow_route_names():
    paths = app.openapi()["paths"]

    item = paths["/api/v1/{container_name}/contentfiles/{file_name}"]
    assert item["put"]["operationId"] == "UploadFile"
    assert item["patch"]["operationId"] == "UpdateFile"
    assert item["delete"]["operationId"] == "DeleteFile"
    assert item["get"]["operationId"] == "GetFileById"
    assert paths["/api/v1/{container_name}/contentfiles"]["get"]["operationId"] == "GetContainerFiles"


def test_health_endpoints(client):
    assert client.get("/healthz").json() == {"ok": True}
    assert client.get("/api/health/live").json() == {"status": "alive"}


def test_ready_when_storage_client_builds(client, storage, monkeypatch):
    monkeypatch.setattr(routes, "_storage_client", storage)

    response = client.get("/api/health/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ready"}


def test_not_ready_when_storage_is_misconfigured(client, monkeypatch):
    monkeypatch.setattr(routes, "_storage_client", None)
    monkeypatch.setenv("STORAGE_TYPE", "tape")

    response = client.get("/api/health/ready")

    assert response.status_code == 503
    assert response.json() == {"status": "unavailable"}


def test_get_text_file_keeps_stored_content_type(client):
    _upload(client, name="notes.txt", content="caf\xe9".encode("latin-1"), content_type="text/plain")

    response = client.get(f"{BASE}/notes.txt")

    assert response.status_code == 200
    assert response.headers["content-type"] == "text/plain"
    assert response.content == b"caf\xe9"


def test_upload_location_is_percent_encoded(client, storage):
    response = _upload(client, name="my photo.png")

    assert response.status_code == 201
    assert response.headers["location"].endswith(f"{BASE}/my%20photo.png")
    assert "my photo.png" in storage.containers["pictures"]


def test_storage_client_is_built_once(storage, monkeypatch):
    calls = []

    def build():
        calls.append(1)
        return storage

    monkeypatch.setattr(routes, "_storage_client", None)
    monkeypatch.setattr(routes, "get_storage_client", build)

    with ThreadPoolExecutor(max_workers=8) as pool:
        clients = list(pool.map(lambda _: routes.get_storage(), range(16)))

    assert len(calls) == 1
    assert all(c is storage for c in clients)
    assert routes.get_storage() is storage
