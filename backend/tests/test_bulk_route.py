import httpx

from conftest import ANONYMOUS, DONE_STATUS, PRO, USER

PNG = b"\x89PNG\r\n\x1a\n" + b"\0" * 64


def batch(n):
    return [("files[]", (f"{i}.png", PNG, "image/png")) for i in range(n)]


def test_bulk_six_files_for_user(client, upstream):
    response = client.post("/bulk-upload", files=batch(6), headers=USER)

    assert response.status_code == 200
    assert response.json() == {"success": True, "batchId": "batch_123"}
    assert upstream.last.content.count(b'name="files[]"') == 6


def test_bulk_eleven_files_for_user(client, upstream):
    response = client.post("/bulk-upload", files=batch(11), headers=USER)

    assert response.status_code == 400
    assert response.json()["error"] == "Too many files. Limit is 10"
    assert upstream.requests == []


def test_bulk_oversized_file_is_413(client, upstream):
    big = PNG + b"\0" * (6 * 1024 * 1024)
    files = batch(2) + [("files[]", ("big.png", big, "image/png"))]
    response = client.post("/bulk-upload", files=files, headers=ANONYMOUS)

    assert response.status_code == 413
    assert "big.png" in response.json()["error"]
    assert upstream.requests == []


def test_bulk_no_files(client, upstream):
    response = client.post("/bulk-upload", data={"expiration": "7"}, headers=PRO)
    assert response.status_code == 400
    assert response.json()["error"] == "No files provided"


def test_bulk_expiration_requires_pro(client, upstream):
    response = client.post("/bulk-upload", files=batch(2), data={"expiration": "30"}, headers=ANONYMOUS)
    assert response.status_code == 403


def test_bulk_upstream_without_batch_id(client, upstream):
    upstream.routes[("POST", "/bulk-upload")] = lambda request: httpx.Response(500, text="Internal Error")
    response = client.post("/bulk-upload", files=batch(2), headers=USER)
    assert response.status_code == 502


def test_status_completed_batch(client, upstream):
    response = client.get("/bulk-status/batch_123")

    assert response.status_code == 200
    assert response.headers["cache-control"] == "no-store"
    status = response.json()
    assert status == DONE_STATUS
    assert status["percent"] == 100
    assert status["completed"] + status["failed"] == status["total"]


def test_status_polling_is_idempotent(client, upstream):
    first = client.get("/bulk-status/batch_123").json()
    second = client.get("/bulk-status/batch_123").json()
    assert first == second
    assert len(upstream.requests) == 2


def test_status_progress_only_advances(client, upstream):
    snapshots = iter([
        {**DONE_STATUS, "completed": 0, "failed": 0, "percent": 0},
        {**DONE_STATUS, "completed": 1, "failed": 1, "percent": 66.67},
        DONE_STATUS,
    ])
    upstream.routes[("GET", "/bulk-status/batch_123")] = lambda request: httpx.Response(200, json=next(snapshots))

    percents = [client.get("/bulk-status/batch_123").json()["percent"] for _ in range(3)]
    assert percents == [0, 66.67, 100]


def test_status_is_not_rate_limited(client, upstream):
    for _ in range(15):
        assert client.get("/bulk-status/batch_123").status_code == 200


def test_status_upstream_unavailable(client, upstream):
    upstream.routes[("GET", "/bulk-status/batch_123")] = lambda request: httpx.Response(503, text="down")
    response = client.get("/bulk-status/batch_123")
    assert response.status_code == 502
    assert response.json()["success"] is False


def test_status_rejects_invalid_batch_id(client, upstream):
    response = client.get("/bulk-status/bad.id")
    assert response.status_code == 400
