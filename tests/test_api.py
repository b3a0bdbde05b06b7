"""
End-to-end API tests.

Tests the full flow: API → service → SQLAlchemy stores (in-memory SQLite)
"""

import pytest
from fastapi.testclient import TestClient
from starlette.concurrency import run_in_threadpool

from cms_gateway.main import app
from cms_gateway.routers import uploads
from cms_gateway.storage.database import (
    get_post_repo,
    get_field_repo,
    get_search_engine,
    get_upload_handler,
)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def client(post_repo, field_repo, search_engine, upload_handler):
    app.dependency_overrides[get_post_repo] = lambda: post_repo
    app.dependency_overrides[get_field_repo] = lambda: field_repo
    app.dependency_overrides[get_search_engine] = lambda: search_engine
    app.dependency_overrides[get_upload_handler] = lambda: upload_handler
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def create(client, post, fields=None):
    response = client.post("/posts/", json={"post": post, "fields": fields or {}})
    assert response.status_code == 200
    return response.json()["data"]["id"]


# ============================================================================
# Posts
# ============================================================================

class TestPostsAPI:

    def test_root(self, client):
        assert client.get("/").status_code == 200

    def test_insert_and_get(self, client):
        post_id = create(client, {"title": "T", "status": "publish"}, {"color": "red"})

        body = client.get(f"/posts/{post_id}").json()

        assert body["code"] == 200
        assert body["data"]["title"] == "T"
        assert body["data"]["fields"] == {"color": "red"}

    def test_insert_failure(self, client):
        response = client.post("/posts/", json={"post": {}, "fields": {}})

        assert response.status_code == 400

    def test_get_missing_post(self, client):
        assert client.get("/posts/999").status_code == 404

    def test_list_with_query_string(self, client):
        create(client, {"title": "A", "status": "publish"})
        create(client, {"title": "B", "status": "publish", "post_type": "page"})
        create(client, {"title": "C", "status": "publish", "post_type": "note"})

        body = client.get("/posts/?post_type[]=post&post_type[]=page&orderby=title&order=ASC").json()

        assert body["data"]["count"] == 2
        assert [p["title"] for p in body["data"]["items"]] == ["A", "B"]
        assert all(p["fields"] == {} for p in body["data"]["items"])

    def test_first(self, client):
        create(client, {"title": "Old", "status": "publish"})
        create(client, {"title": "New", "status": "publish"})

        body = client.get("/posts/first?orderby=ID&numberposts=10").json()

        assert body["data"]["title"] == "New"
        assert client.get("/posts/first?post_type=nothing").status_code == 404

    def test_search(self, client):
        create(client, {"title": "Cat care", "content": "cat", "status": "publish"})
        create(client, {"title": "Dogs", "content": "dogs", "status": "publish"})

        body = client.get("/posts/search?s=cat").json()

        assert [p["title"] for p in body["data"]["items"]] == ["Cat care"]

    def test_update_fields(self, client):
        post_id = create(client, {"title": "T"})

        body = client.put(f"/posts/{post_id}/fields", json={"a": 1, "b": [1, 2]}).json()

        assert body["data"] == {"failed": []}
        assert client.get(f"/posts/{post_id}").json()["data"]["fields"] == {"a": 1, "b": [1, 2]}

    def test_delete(self, client):
        post_id = create(client, {"title": "T", "status": "publish"})

        assert client.delete(f"/posts/{post_id}").status_code == 200
        assert client.get(f"/posts/{post_id}").json()["data"]["status"] == "trash"

        assert client.delete(f"/posts/{post_id}?soft_delete=false").status_code == 200
        assert client.get(f"/posts/{post_id}").status_code == 404

    def test_delete_missing(self, client):
        assert client.delete("/posts/999").status_code == 404


# ============================================================================
# Uploads
# ============================================================================

class TestUploadsAPI:

    def test_single_upload_with_custom_field(self, client):
        post_id = create(client, {"title": "T", "status": "publish"})

        response = client.post(
            f"/posts/{post_id}/upload/doc?custom_field=doc_url",
            files={"doc": ("notes.txt", b"hello", "text/plain")},
        )

        assert response.status_code == 200
        attachment_id = response.json()["data"]["id"]
        post = client.get(f"/posts/{post_id}").json()["data"]
        assert post["fields"]["doc_url"] == "http://cdn.test/uploads/notes.txt"
        assert client.get(f"/posts/{attachment_id}").json()["data"]["post_parent"] == post_id

    def test_single_upload_rejected(self, client):
        post_id = create(client, {"title": "T"})

        response = client.post(
            f"/posts/{post_id}/upload/doc",
            files={"doc": ("virus.exe", b"MZ", "application/octet-stream")},
        )

        assert response.status_code == 400

    def test_batch_upload(self, client):
        post_id = create(client, {"title": "T"})

        response = client.post(
            f"/posts/{post_id}/uploads/files",
            files=[
                ("files[]", ("a.txt", b"aaa", "text/plain")),
                ("files[]", ("b.exe", b"MZ", "application/octet-stream")),
                ("files[]", ("c.txt", b"ccc", "text/plain")),
            ],
        )

        assert response.status_code == 200
        results = response.json()["data"]
        assert [(r["name"], r["success"]) for r in results] == [
            ("a.txt", True),
            ("b.exe", False),
            ("c.txt", True),
        ]
        assert results[1]["id"] is None

    def test_temp_file_io_runs_in_threadpool(self, client, monkeypatch):
        called = []

        async def recording_threadpool(func, *args, **kwargs):
            called.append(func.__name__)
            return await run_in_threadpool(func, *args, **kwargs)

        monkeypatch.setattr(uploads, "run_in_threadpool", recording_threadpool)
        post_id = create(client, {"title": "T"})

        response = client.post(
            f"/posts/{post_id}/uploads/files",
            files=[
                ("files[]", ("a.txt", b"aaa", "text/plain")),
                ("files[]", ("b.txt", b"bbb", "text/plain")),
            ],
        )

        assert response.status_code == 200
        assert called.count("_spool") == 2
        assert called[-1] == "_cleanup"

    def test_batch_upload_single_file_field(self, client):
        post_id = create(client, {"title": "T"})

        response = client.post(
            f"/posts/{post_id}/uploads/file",
            files={"file": ("a.txt", b"aaa", "text/plain")},
        )

        results = response.json()["data"]
        assert len(results) == 1
        assert results[0]["name"] == "a.txt"
        assert results[0]["success"] is True

    def test_batch_upload_missing_key(self, client):
        post_id = create(client, {"title": "T"})

        response = client.post(
            f"/posts/{post_id}/uploads/files",
            files={"other": ("a.txt", b"aaa", "text/plain")},
        )

        assert response.status_code == 400
        assert response.json()["data"]["code"] == "uploadParameterNotSet"

    def test_delete_post_with_attachments(self, client, post_repo):
        post_id = create(client, {"title": "T", "status": "publish"})
        client.post(f"/posts/{post_id}/upload/doc", files={"doc": ("a.txt", b"a", "text/plain")})

        response = client.delete(f"/posts/{post_id}?soft_delete=false&delete_attachments=true")

        assert response.status_code == 200
        assert post_repo.query_posts({"post_type": "attachment", "post_status": "any", "posts_per_page": -1}) == []
