"""End-to-end tests of the HTTP and WebSocket surface."""

from collections.abc import Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from cvfs.app import App
from cvfs.config import Config
from cvfs.web.server import create_fastapi_app


@pytest.fixture
def client(config: Config) -> Iterator[TestClient]:
    app = create_fastapi_app(App(config), config)
    with TestClient(app) as test_client:
        yield test_client


def register(client: TestClient, username: str, password: str) -> tuple[dict[str, str], str]:
    """Sign up and log in; returns auth headers and the user id."""
    assert client.post("/api/auth/signup", json={"username": username, "password": password}).status_code == 201
    response = client.post("/api/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200
    body = response.json()
    return {"Authorization": f"Bearer {body['token']}"}, body["userId"]


@pytest.fixture
def alice_headers(client: TestClient) -> dict[str, str]:
    headers, _ = register(client, "alice", "alice-pass")
    return headers


def receive_until(ws: Any, predicate, limit: int = 200) -> dict[str, Any]:
    for _ in range(limit):
        message = ws.receive_json()
        if predicate(message):
            return message
    raise AssertionError("expected message not received")


class TestAuth:
    """Tests for signup, login, refresh and logout."""

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_login_returns_token_and_expiry(self, client):
        client.post("/api/auth/signup", json={"username": "alice", "password": "alice-pass"})
        response = client.post("/api/auth/login", json={"username": "alice", "password": "alice-pass"})
        body = response.json()
        assert set(body) == {"token", "userId", "expiresIn"}
        assert body["expiresIn"] == 300

    def test_duplicate_signup(self, client):
        register(client, "alice", "alice-pass")
        response = client.post("/api/auth/signup", json={"username": "alice", "password": "other"})
        assert response.status_code == 409
        assert response.json()["type"] == "already_exists"

    def test_invalid_username(self, client):
        response = client.post("/api/auth/signup", json={"username": "has space", "password": "pw"})
        assert response.status_code == 400

    @pytest.mark.parametrize(("username", "password"), [("alice", "wrong"), ("nobody", "alice-pass")])
    def test_bad_credentials_look_the_same(self, client, username, password):
        register(client, "alice", "alice-pass")
        response = client.post("/api/auth/login", json={"username": username, "password": password})
        assert response.status_code == 401
        assert response.json() == {"message": "Invalid username or password", "type": "authentication_error"}

    @pytest.mark.parametrize("username", ["alice", "nobody"])
    def test_overlong_password_is_401(self, client, username):
        register(client, "alice", "alice-pass")
        response = client.post("/api/auth/login", json={"username": username, "password": "x" * 80})
        assert response.status_code == 401
        assert response.json()["type"] == "authentication_error"

    def test_missing_token_is_401(self, client):
        response = client.get("/api/cvfs/list")
        assert response.status_code == 401
        assert response.json()["type"] == "authentication_error"

    def test_unknown_token_is_403(self, client):
        response = client.get("/api/cvfs/list", headers={"Authorization": "Bearer not-a-session"})
        assert response.status_code == 403
        assert response.json() == {"message": "Invalid or expired session", "type": "session_expired"}

    def test_refresh_rotates_token(self, client, alice_headers):
        response = client.post("/api/auth/refresh", headers=alice_headers)
        assert response.status_code == 200
        new_headers = {"Authorization": f"Bearer {response.json()['newToken']}"}

        assert client.get("/api/cvfs/list", headers=new_headers).status_code == 200
        assert client.get("/api/cvfs/list", headers=alice_headers).status_code == 403

    def test_logout_is_idempotent(self, client, alice_headers):
        assert client.post("/api/auth/logout", headers=alice_headers).status_code == 200
        assert client.get("/api/cvfs/list", headers=alice_headers).status_code == 403
        assert client.post("/api/auth/logout", headers=alice_headers).status_code == 200

    def test_current_user_and_user_list(self, client, alice_headers):
        register(client, "bob", "bob-pass")
        assert client.get("/api/users/me", headers=alice_headers).json()["username"] == "alice"
        users = client.get("/api/users", headers=alice_headers).json()
        assert [u["username"] for u in users] == ["alice", "bob"]

    def test_openapi_declares_bearer_auth(self, client):
        schema = client.get("/openapi.json").json()
        assert "BearerAuth" in schema["components"]["securitySchemes"]
        assert schema["paths"]["/api/auth/login"]["post"]["security"] == []


class TestFiles:
    """Tests for the VFS endpoints."""

    def test_create_write_read_list(self, client, alice_headers):
        response = client.post("/api/cvfs/create", json={"path": "/", "name": "docs", "type": "folder"}, headers=alice_headers)
        assert response.status_code == 201
        response = client.post("/api/cvfs/create", json={"path": "/docs", "name": "a.txt", "type": "file"}, headers=alice_headers)
        assert response.status_code == 201

        response = client.put("/api/cvfs/file", json={"path": "/docs/a.txt", "content": "hello"}, headers=alice_headers)
        assert response.status_code == 200

        assert client.get("/api/cvfs/file", params={"path": "/docs/a.txt"}, headers=alice_headers).json() == {"content": "hello"}
        assert client.get("/api/cvfs/list", params={"path": "/docs"}, headers=alice_headers).json() == [
            {"name": "a.txt", "type": "file", "size": 5}
        ]
        assert client.get("/api/cvfs/list", headers=alice_headers).json() == [{"name": "docs", "type": "folder"}]

    def test_create_duplicate_conflicts(self, client, alice_headers):
        body = {"path": "/", "name": "a.txt", "type": "file"}
        assert client.post("/api/cvfs/create", json=body, headers=alice_headers).status_code == 201
        assert client.post("/api/cvfs/create", json=body, headers=alice_headers).status_code == 409

    def test_invalid_item_type(self, client, alice_headers):
        response = client.post("/api/cvfs/create", json={"path": "/", "name": "x", "type": "symlink"}, headers=alice_headers)
        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"

    def test_missing_query_parameter(self, client, alice_headers):
        response = client.get("/api/cvfs/file", headers=alice_headers)
        assert response.status_code == 400

    @pytest.mark.parametrize("path", ["/..", "../etc", "/a/../../b", "..\\..\\windows"])
    def test_escape_is_forbidden(self, client, alice_headers, path):
        response = client.get("/api/cvfs/list", params={"path": path}, headers=alice_headers)
        assert response.status_code == 403
        assert response.json()["type"] == "security_error"

    def test_read_folder_is_400(self, client, alice_headers):
        client.post("/api/cvfs/create", json={"path": "/", "name": "docs", "type": "folder"}, headers=alice_headers)
        response = client.get("/api/cvfs/file", params={"path": "/docs"}, headers=alice_headers)
        assert response.status_code == 400

    def test_read_missing_is_404(self, client, alice_headers):
        response = client.get("/api/cvfs/file", params={"path": "/nope.txt"}, headers=alice_headers)
        assert response.status_code == 404
        assert response.json() == {"message": "'/nope.txt' not found", "type": "not_found"}

    def test_delete_and_delete_recursive(self, client, alice_headers):
        client.post("/api/cvfs/create", json={"path": "/docs", "name": "a.txt", "type": "file"}, headers=alice_headers)

        response = client.request("DELETE", "/api/cvfs/delete", json={"path": "/docs"}, headers=alice_headers)
        assert response.status_code == 409
        assert response.json()["type"] == "not_empty"

        response = client.request("DELETE", "/api/cvfs/delete-recursive", json={"path": "/docs"}, headers=alice_headers)
        assert response.status_code == 200
        assert client.get("/api/cvfs/list", headers=alice_headers).json() == []

    def test_delete_root_is_rejected(self, client, alice_headers):
        response = client.request("DELETE", "/api/cvfs/delete-recursive", json={"path": "/"}, headers=alice_headers)
        assert response.status_code == 400

    def test_move_and_copy(self, client, alice_headers):
        def transfer(action: str, source: str, destination: str):
            body = {"sourcePath": source, "destinationPath": destination}
            return client.post(f"/api/cvfs/{action}", json=body, headers=alice_headers)

        client.put("/api/cvfs/file", json={"path": "/a.txt", "content": "data"}, headers=alice_headers)

        assert transfer("copy", "/a.txt", "/b.txt").status_code == 200
        assert transfer("move", "/a.txt", "/dir/c.txt").status_code == 200
        response = transfer("move", "/b.txt", "/dir/c.txt")
        assert response.status_code == 409

        names = [item["name"] for item in client.get("/api/cvfs/list", headers=alice_headers).json()]
        assert names == ["dir", "b.txt"]
        assert client.get("/api/cvfs/file", params={"path": "/dir/c.txt"}, headers=alice_headers).json() == {"content": "data"}

    def test_metadata(self, client, alice_headers):
        client.put("/api/cvfs/file", json={"path": "/a.txt", "content": "abc"}, headers=alice_headers)
        body = client.get("/api/cvfs/metadata", params={"path": "/a.txt"}, headers=alice_headers).json()
        assert body["name"] == "a.txt"
        assert body["path"] == "/a.txt"
        assert body["type"] == "file"
        assert body["size"] == 3
        assert "createdAt" in body
        assert "modifiedAt" in body

    def test_upload_and_download_binary(self, client, alice_headers):
        data = bytes(range(256))
        response = client.post(
            "/api/cvfs/upload",
            data={"path": "/images"},
            files={"file": ("pic.png", data, "image/png")},
            headers=alice_headers,
        )
        assert response.status_code == 201

        response = client.get("/api/cvfs/file", params={"path": "/images/pic.png"}, headers=alice_headers)
        assert response.status_code == 200
        assert response.content == data
        assert response.headers["content-type"] == "image/png"

        response = client.get("/api/cvfs/serve-file", params={"path": "/images/pic.png"}, headers=alice_headers)
        assert response.content == data

    def test_users_cannot_see_each_other(self, client, alice_headers):
        bob_headers, _ = register(client, "bob", "bob-pass")
        client.put("/api/cvfs/file", json={"path": "/secret.txt", "content": "x"}, headers=alice_headers)

        assert client.get("/api/cvfs/list", headers=bob_headers).json() == []
        assert client.get("/api/cvfs/file", params={"path": "/secret.txt"}, headers=bob_headers).status_code == 404


class TestShares:
    """Tests for the sharing endpoints."""

    def test_share_accept_flow(self, client, alice_headers):
        bob_headers, bob_id = register(client, "bob", "bob-pass")
        client.put("/api/cvfs/file", json={"path": "/report.txt", "content": "numbers"}, headers=alice_headers)

        response = client.post("/api/cvfs/share", json={"path": "/report.txt", "targetUserId": bob_id}, headers=alice_headers)
        assert response.status_code == 201

        pending = client.get("/api/cvfs/pending-shares", headers=bob_headers).json()
        assert len(pending) == 1
        assert pending[0]["name"] == "report.txt"
        assert pending[0]["sourceUsername"] == "alice"

        assert client.post("/api/cvfs/accept-share", json={"name": "report.txt"}, headers=bob_headers).status_code == 200
        assert client.get("/api/cvfs/file", params={"path": "/report.txt"}, headers=bob_headers).json() == {"content": "numbers"}
        assert client.get("/api/cvfs/pending-shares", headers=bob_headers).json() == []

        response = client.post("/api/cvfs/accept-share", json={"name": "report.txt"}, headers=bob_headers)
        assert response.status_code == 404

    def test_deny(self, client, alice_headers):
        bob_headers, bob_id = register(client, "bob", "bob-pass")
        client.put("/api/cvfs/file", json={"path": "/a.txt", "content": "x"}, headers=alice_headers)
        client.post("/api/cvfs/share", json={"path": "/a.txt", "targetUserId": bob_id}, headers=alice_headers)

        assert client.post("/api/cvfs/deny-share", json={"name": "a.txt"}, headers=bob_headers).status_code == 200
        assert client.get("/api/cvfs/list", headers=bob_headers).json() == []

    def test_share_with_self_is_rejected(self, client):
        headers, user_id = register(client, "alice", "alice-pass")
        client.put("/api/cvfs/file", json={"path": "/a.txt", "content": "x"}, headers=headers)
        response = client.post("/api/cvfs/share", json={"path": "/a.txt", "targetUserId": user_id}, headers=headers)
        assert response.status_code == 400


class TestEvents:
    """Tests for the live update WebSocket."""

    def test_subscribe_and_receive_changes(self, client, alice_headers):
        token = alice_headers["Authorization"].removeprefix("Bearer ")
        with client.websocket_connect(f"/ws?token={token}") as ws:
            ws.send_json({"type": "subscribe", "path": "/"})
            listing = receive_until(ws, lambda m: m.get("type") == "file-list")
            assert listing == {"type": "file-list", "path": "/", "items": []}

            client.post("/api/cvfs/create", json={"path": "/", "name": "docs", "type": "folder"}, headers=alice_headers)

            change = receive_until(ws, lambda m: m.get("event") == "file-change")
            assert change == {"event": "file-change", "path": "/"}
            listing = receive_until(ws, lambda m: m.get("type") == "file-list" and m["items"])
            assert listing["items"] == [{"name": "docs", "type": "folder"}]

    def test_unknown_message_type(self, client, alice_headers):
        token = alice_headers["Authorization"].removeprefix("Bearer ")
        with client.websocket_connect(f"/ws?token={token}") as ws:
            ws.send_json({"type": "dance"})
            error = receive_until(ws, lambda m: m.get("type") == "error")
            assert "dance" in error["message"]

    def test_subscribe_outside_root(self, client, alice_headers):
        token = alice_headers["Authorization"].removeprefix("Bearer ")
        with client.websocket_connect(f"/ws?token={token}") as ws:
            ws.send_json({"type": "subscribe", "path": "/../../etc"})
            error = receive_until(ws, lambda m: m.get("type") == "error")
            assert "escapes" in error["message"]

    def test_invalid_token_is_rejected(self, client):
        with client.websocket_connect("/ws?token=bogus") as ws:
            with pytest.raises(WebSocketDisconnect) as exc_info:
                ws.receive_json()
        assert exc_info.value.code == 1008
